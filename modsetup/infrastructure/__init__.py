"""Infrastructure Layer — document store client, connection setup, logging.

Invariants:
    - Infrastructure never imports from services/
    - All store failures mapped to DocumentStoreError (core/errors.py)
"""
