"""Error Hierarchy — typed, categorized exceptions for installation assurance failures.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Store-facing errors carry the store's `reason` as their message
    - ConfigCreateError.kind is the store's error code (conflict, bad_request, ...)
    - to_response() produces the REST envelope used by the host app

Design Decisions:
    - Single hierarchy with ModuleSetupError base: host error handler catches all
    - DocumentStoreError keeps the raw `error`/`reason` pair so recovery can
      classify it without string parsing
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    worker: str | None = None
    document_id: str | None = None
    database: str | None = None


class ModuleSetupError(Exception):
    """Base exception for all installation assurance errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "worker": self.context.worker,
                    "document_id": self.context.document_id,
                    "database": self.context.database,
                },
            }
        }


# ─── Startup Errors ─────────────────────────────────────────────

class ConnectionConfigError(ModuleSetupError):
    """Server address or admin credentials cannot be turned into a connection."""
    def __init__(self, message: str, server_url: str | None = None):
        super().__init__(
            message, "CONNECTION_CONFIG_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.CRITICAL, None, 500,
        )
        self.server_url = server_url


# ─── Store Errors ───────────────────────────────────────────────

class DocumentStoreError(ModuleSetupError):
    """Raw document store failure: `{"error": code, "reason": message}`."""
    def __init__(
        self,
        error: str | None,
        reason: str | None,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        category = (
            ErrorCategory.RESOURCE_NOT_FOUND if status_code == 404
            else ErrorCategory.DATABASE
        )
        super().__init__(
            str(reason) if reason is not None else str(error),
            "DOCUMENT_STORE_ERROR", category,
            ErrorSeverity.ERROR, context, 503,
        )
        self.error = error
        self.reason = reason
        self.status_code = status_code


class GlobalConfigError(ModuleSetupError):
    """Shared `module/appconfig` document could not be read."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            reason, "GLOBAL_CONFIG_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.reason = reason


class WorkerConfigReadError(ModuleSetupError):
    """Per-worker config document could not be read."""
    def __init__(
        self,
        reason: str,
        store_error: Exception,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            reason, "WORKER_CONFIG_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context, 503,
        )
        self.reason = reason
        self.store_error = store_error


class ConfigCreateError(ModuleSetupError):
    """Store rejected creation of a worker config document."""
    def __init__(self, kind: str, message: str, context: ErrorContext | None = None):
        conflict = kind == "conflict"
        super().__init__(
            message, "CONFIG_CREATE_FAILED",
            ErrorCategory.CONFLICT if conflict else ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context, 409 if conflict else 503,
        )
        self.kind = kind

    @property
    def name(self) -> str:
        """Store error code, e.g. `bad_request` or `conflict`."""
        return self.kind


class InvalidWorkerError(ModuleSetupError):
    """Worker cannot own a module/<name> document (missing or blank name)."""
    def __init__(self, message: str):
        super().__init__(
            message, "INVALID_WORKER", ErrorCategory.VALIDATION,
            ErrorSeverity.CRITICAL, None, 500,
        )
