"""Worker Contract — the collaborator installation assurance drives.

Invariants:
    - Setup only touches name, version, config, couch and install()
    - config is replaced by reference in setup(), never merged
    - install() must complete before a config document is created

Design Decisions:
    - Protocol over abstract base: any object with these members qualifies,
      BaseWorker is a convenience for workers that have nothing else to inherit
"""

import logging
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Worker(Protocol):
    name: str
    version: str | None
    config: dict[str, Any]
    couch: Any

    async def install(self) -> None:
        ...


class BaseWorker:
    """Minimal worker; subclasses override install() with real provisioning."""

    def __init__(self, name: str, distribution: str | None = None):
        self.name = name
        self.distribution = distribution or name
        self.version: str | None = None
        self.config: dict[str, Any] = {}
        self.couch: Any = None

    async def install(self) -> None:
        logger.info("Nothing to install", extra={"worker": self.name})
