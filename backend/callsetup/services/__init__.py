"""Service Layer: engine construction, negotiation and per-call orchestration.

Invariants:
    - Services call engines and the filesystem; decisions are delegated to core/
"""
