"""Worker Host — FastAPI application that assures installation on startup.

Invariants:
    - setup() runs inside the lifespan; a failed installation aborts startup
    - Routes registered explicitly (no auto-discovery)
    - The worker's document store connection is closed on shutdown and on failed startup

Design Decisions:
    - Factory over module-level app: each worker process hosts exactly one worker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from modsetup.api.error_handlers import register_error_handlers
from modsetup.api.routes import health
from modsetup.config import Settings, get_settings
from modsetup.core.worker import Worker
from modsetup.infrastructure.observability import setup_logging
from modsetup.services.setup import setup

logger = logging.getLogger(__name__)


def create_app(worker: Worker, settings: Settings | None = None) -> FastAPI:
    """Build the host app for one worker."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        try:
            app.state.worker_config = await setup(worker, settings.worker_config())
            logger.info(
                f"Worker {worker.name} {worker.version} ready",
                extra={"worker": worker.name, "version": worker.version},
            )
            yield
            logger.info("Worker host shutting down", extra={"worker": worker.name})
        finally:
            # setup() may have opened the connection before failing
            if worker.couch is not None:
                await worker.couch.aclose()

    app = FastAPI(
        title=f"{worker.name} worker", lifespan=lifespan,
    )
    app.state.worker = worker
    app.state.worker_config = None
    register_error_handlers(app)
    app.include_router(health.router)
    return app
