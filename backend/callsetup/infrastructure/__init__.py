"""Infrastructure Layer: logging, server-pushed config, filesystem for call logs.

Invariants:
    - Infrastructure may import from core/, never from services/ or api/
"""
