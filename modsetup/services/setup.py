"""Installation Assurance — resolves a worker's config from the modules database, installing on first run.

Invariants:
    - Global config is read before worker config; its failures never trigger recovery
    - Only worker-config reads failing with reason "missing"/"deleted" trigger install()
    - install() completes before a config document is created; a failed install creates nothing
    - set_worker_config() receives the exact dict that was saved, and only after a successful save
    - No retries: every failure surfaces to the caller of assure_installation()

Design Decisions:
    - Each step is its own coroutine so hosts and tests can replace one step at a time
    - Concurrent first runs are not serialized here; the store's 409 conflict is the backstop
      and is raised as ConfigCreateError(kind="conflict")
"""

import logging
from datetime import datetime, timezone
from importlib import metadata
from collections.abc import Mapping
from typing import Any, Callable, NoReturn

from modsetup.core.classify import RemoteErrorKind, classify_store_error
from modsetup.core.errors import (
    ConfigCreateError, ConnectionConfigError, DocumentStoreError, ErrorContext,
    GlobalConfigError, InvalidWorkerError, WorkerConfigReadError,
)
from modsetup.core.worker import Worker
from modsetup.infrastructure.connection import init_connection
from modsetup.infrastructure.couch import CouchDatabase
from modsetup.schemas.documents import (
    GLOBAL_CONFIG_ID, MODULES_DATABASE, ConfigDocument, worker_config_id,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _reason_of(error: DocumentStoreError) -> str:
    return error.reason if error.reason is not None else str(error)


class Setup:
    """Config resolution state machine bound to one worker."""

    def __init__(self, worker: Worker, clock: Callable[[], datetime] = _utcnow):
        name = getattr(worker, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise InvalidWorkerError(f"Worker name must be a non-empty string, got {name!r}")
        self.worker = worker
        self.clock = clock
        self.init_couch_connection()

    def init_couch_connection(self) -> None:
        """Open worker.couch from config["server"] and config["admin"]."""
        config = self.worker.config
        admin = config.get("admin") or {}
        if not isinstance(admin, Mapping):
            raise ConnectionConfigError(
                f"config['admin'] must be a mapping with user/pass, got {type(admin).__name__}",
                config.get("server"),
            )
        self.worker.couch = init_connection(
            config.get("server"),
            admin.get("user"),
            admin.get("pass"),
            timeout_seconds=config.get("timeout_seconds", 30.0),
        )

    @property
    def modules(self) -> CouchDatabase:
        return self.worker.couch.database(MODULES_DATABASE)

    def _context(self, document_id: str) -> ErrorContext:
        return ErrorContext(
            worker=self.worker.name,
            document_id=document_id,
            database=MODULES_DATABASE,
        )

    async def assure_installation(self) -> dict[str, Any]:
        """Resolve the worker config document, installing the worker if it has none."""
        logger.debug(
            "Reading global config",
            extra={"worker": self.worker.name, "state": "reading_global"},
        )
        try:
            await self.read_global_config()
        except GlobalConfigError as e:
            return await self.handle_error(e)

        logger.debug(
            "Reading worker config",
            extra={"worker": self.worker.name, "state": "reading_user"},
        )
        try:
            doc = await self.read_user_config()
        except WorkerConfigReadError as e:
            return await self.handle_read_worker_config_error(e.store_error)
        logger.info(
            "Worker config resolved",
            extra={"worker": self.worker.name, "state": "resolved"},
        )
        return doc

    async def read_global_config(self) -> dict[str, Any]:
        try:
            doc = await self.modules.get(GLOBAL_CONFIG_ID)
        except DocumentStoreError as e:
            raise GlobalConfigError(
                _reason_of(e), self._context(GLOBAL_CONFIG_ID),
            ) from e
        self.set_global_config(doc)
        return doc

    async def read_user_config(self) -> dict[str, Any]:
        doc_id = worker_config_id(self.worker.name)
        try:
            doc = await self.modules.get(doc_id)
        except DocumentStoreError as e:
            raise WorkerConfigReadError(
                _reason_of(e), e, self._context(doc_id),
            ) from e
        self.set_worker_config(doc)
        return doc

    async def handle_error(self, error: Exception) -> NoReturn:
        """Terminal path for failures that must not trigger installation."""
        logger.error(
            f"Installation assurance failed: {error}",
            extra={
                "worker": self.worker.name,
                "error_code": getattr(error, "code", type(error).__name__),
                "state": "failed",
            },
        )
        raise error

    async def handle_read_worker_config_error(self, error: Exception) -> dict[str, Any]:
        """Install and create the config document if it is missing, else re-raise unchanged."""
        reason = getattr(error, "reason", None)
        if classify_store_error(error) is not RemoteErrorKind.NOT_FOUND:
            logger.error(
                f"Cannot read worker config: {error}",
                extra={"worker": self.worker.name, "reason": reason, "state": "failed"},
            )
            raise error

        logger.info(
            f"Worker config is {reason}, installing",
            extra={"worker": self.worker.name, "reason": reason, "state": "recovering"},
        )
        await self.worker.install()
        return await self.create_config_in_modules_database()

    async def create_config_in_modules_database(self) -> dict[str, Any]:
        """Save a fresh, empty config document; returns the store's save result."""
        doc = ConfigDocument.new(self.worker.name, self.clock()).to_store()
        try:
            result = await self.modules.save(doc)
        except DocumentStoreError as e:
            logger.error(
                f"Creating {doc['_id']} failed: {e.error}",
                extra={
                    "worker": self.worker.name,
                    "document_id": doc["_id"],
                    "error_code": e.error,
                },
            )
            raise ConfigCreateError(
                e.error or "unknown", _reason_of(e), self._context(doc["_id"]),
            ) from e
        self.set_worker_config(doc)
        logger.info(
            f"Created {doc['_id']}",
            extra={"worker": self.worker.name, "document_id": doc["_id"]},
        )
        return result

    def set_global_config(self, doc: dict[str, Any]) -> None:
        self.worker.config["app"] = doc.get("config", {})

    def set_worker_config(self, doc: dict[str, Any]) -> None:
        self.worker.config["worker"] = doc.get("config", {})


def read_worker_version(worker: Worker) -> str:
    """Version from the worker's installed distribution metadata."""
    distribution = getattr(worker, "distribution", None) or worker.name
    return metadata.version(distribution)


async def setup(worker: Worker, config: dict[str, Any]) -> dict[str, Any]:
    """Entry point called by a worker at startup."""
    worker.version = read_worker_version(worker)
    worker.config = config
    return await Setup(worker).assure_installation()
