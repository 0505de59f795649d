"""
Health Check Endpoints
Service and dependency health
"""

from typing import Any, Dict
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from forum_access.core.database import check_database_health
from forum_access.schemas.base import HealthCheck

logger = structlog.get_logger()
router = APIRouter()

SERVICE_NAME = "forum-access"
SERVICE_VERSION = "1.0.0"


@router.get("", response_model=HealthCheck)
async def health_check():
    """
    Health check endpoint

    Returns 503 when the database is unreachable.
    """
    db_healthy = await check_database_health()
    health = HealthCheck(
        status="healthy" if db_healthy else "unhealthy",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        checks={"database": {"status": "healthy" if db_healthy else "unhealthy"}},
    )
    if not db_healthy:
        logger.error("Health check failed", check="database")
        return JSONResponse(status_code=503, content=health.model_dump(mode="json"))
    return health


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness probe"""
    return {"status": "alive", "timestamp": time.time()}
