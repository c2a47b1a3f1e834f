"""Call Setup: engine version negotiation and relay-server filtering for calls.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
