"""Health & Readiness Probes — liveness, readiness and ping endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the store is unreachable (readiness)
    - GET /health/ping never touches the store

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ledger_backend import __version__
from ledger_backend.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "ledger-backend",
        "version": __version__,
    }


@router.get("/ping", status_code=status.HTTP_200_OK)
async def ping():
    return {"message": "Pong from the ledger backend"}


@router.get("/ready")
async def readiness_check():
    """Readiness probe: includes database connectivity."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        logger.warning("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
