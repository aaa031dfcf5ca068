"""Infrastructure Layer - SDK clients, logging, in-process state stores."""
