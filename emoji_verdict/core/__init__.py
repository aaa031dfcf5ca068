"""Core Layer - pure domain logic, no IO, no network, no SDK imports.

Invariants:
    - No module in core/ imports from services/, api/, or infrastructure/
    - All functions are deterministic, except where a random seed is documented

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
