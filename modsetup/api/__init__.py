"""API Layer — FastAPI probes and error handlers for worker hosts.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
"""
