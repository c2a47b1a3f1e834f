"""Core Layer: pure negotiation logic, no IO, no engine implementations.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - Shared mutable state is limited to PolicyFlags, guarded by its own lock

Design Decisions:
    - Functional core separated from imperative shell (services/ drives engines)
"""
