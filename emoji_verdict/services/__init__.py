"""Services Layer - pipeline stages and the stream orchestrator (imperative shell)."""
