"""Health Probes — liveness and database readiness.

Invariants:
    - /api/health/ answers 200 whenever the process serves requests
    - /api/health/ready answers 503 with reason database_unavailable when the
      database cannot be reached or was never initialized
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from zorgdossier.config import get_settings
from zorgdossier.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])

SERVICE_NAME = "zorgdossier-api"
SERVICE_VERSION = "1.0.0"


@router.get("/")
async def liveness():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "ai_evaluation": get_settings().ai_configured,
    }


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        logger.warning("Readiness probe failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
