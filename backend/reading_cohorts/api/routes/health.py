"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if database is unreachable (readiness)
    - The maintenance scheduler is reported but never fails readiness: it is
      disabled by configuration in some deployments
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from reading_cohorts import __version__
from reading_cohorts.infrastructure import database
from reading_cohorts.infrastructure.scheduler import scheduler_running

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "reading-cohorts-api",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe — includes database connectivity."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "scheduler": "running" if scheduler_running() else "stopped",
        },
    }
