"""Health & Readiness Probes: liveness and pool-backed readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 when the pool is missing or cannot
      hand out a working connection within its timeout
    - Readiness reports pool usage, never the database URL
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import groupchat.infrastructure.database as database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness: no pool access."""
    return {"status": "healthy", "service": "groupchat-api"}


@router.get("/ready")
async def readiness_check():
    """Readiness: borrows one pooled connection and reports pool usage."""
    manager = database.db_manager
    if manager is None:
        return _not_ready("pool_not_initialized")
    if not await manager.health_check():
        logger.warning("Readiness failed: no usable pooled connection")
        return _not_ready("database_unavailable")
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "pool": manager.pool_status(),
    }
