"""Store Error Classification — decides whether a failed worker-config read is recoverable.

Invariants:
    - reason "missing" or "deleted" → NOT_FOUND (recoverable by installing)
    - Anything else, including absent or non-string reasons → OTHER
    - Pure: reads `reason` off the error, never mutates it
"""

from enum import Enum

NOT_FOUND_REASONS = frozenset({"missing", "deleted"})


class RemoteErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    OTHER = "other"


def classify_store_error(error: object) -> RemoteErrorKind:
    """Classify a raw store error by its `reason` attribute or key."""
    if isinstance(error, dict):
        reason = error.get("reason")
    else:
        reason = getattr(error, "reason", None)
    if isinstance(reason, str) and reason in NOT_FOUND_REASONS:
        return RemoteErrorKind.NOT_FOUND
    return RemoteErrorKind.OTHER
