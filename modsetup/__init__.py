"""Worker installation assurance — bootstraps worker config from a shared document store.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
