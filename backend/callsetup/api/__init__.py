"""API Layer: developer-facing HTTP surface over the call-setup context.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Routes never negotiate calls; they inspect and toggle policy only
"""
