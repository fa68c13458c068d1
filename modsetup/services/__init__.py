"""Services Layer — installation assurance orchestration.

Invariants:
    - Services compose core/ (classification, errors) with infrastructure/ (store I/O)
"""
