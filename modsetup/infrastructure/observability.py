"""Structured Logging — JSON formatter and setup for worker startup logs.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (worker, version, database, document_id, error_code, reason, state)
      surfaced when present; the rest of the record dict is ignored
    - JSON format in production, human-readable in development

Design Decisions:
    - setup_logging called once on startup via the host lifespan
"""

import logging
import json
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "worker", "version", "database", "document_id", "error_code", "reason", "state",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the worker process."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
