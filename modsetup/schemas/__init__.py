"""Pydantic Schemas — document shapes persisted in the document store.

Invariants:
    - Schemas validate at the store boundary (documents written by this package)
"""
