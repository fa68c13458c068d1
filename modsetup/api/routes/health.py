"""Health & Readiness Probes — liveness and readiness endpoints for worker hosts.

Invariants:
    - GET /api/v1/health/ always returns 200 if the process is up (liveness)
    - GET /api/v1/health/ready returns 503 until installation is assured and the store answers
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Basic liveness probe. Returns 200 if the process is up."""
    worker = request.app.state.worker
    return {
        "status": "healthy",
        "worker": worker.name,
        "version": worker.version,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — installation assured and document store reachable."""
    state = request.app.state
    if getattr(state, "worker_config", None) is None:
        return _not_ready("installation_pending")
    couch = state.worker.couch
    if couch is None or not await couch.ping():
        return _not_ready("document_store_unavailable")
    return {"status": "ready", "checks": {"installation": "assured", "document_store": "healthy"}}


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )
