"""Health check endpoints for load balancers and monitoring."""

import logging
from datetime import datetime

import redis.asyncio as redis
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from desicargo.config import settings
from desicargo.database import engine
from desicargo.utils.cache import get_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Lightweight liveness check (no DB/Redis round trip)."""
    return {
        "status": "ok",
        "service": "DesiCargo",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness check: 200 only when the database and Redis both answer."""
    checks = {"service": "ok", "database": "unknown", "redis": "unknown"}
    healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Readiness: database check failed: {e}")
        checks["database"] = f"error: {str(e)[:100]}"
        healthy = False

    try:
        redis_client = await get_redis()
        await redis_client.ping()
        checks["redis"] = "ok"
    except (redis.RedisError, OSError) as e:
        logger.error(f"Readiness: redis check failed: {e}")
        checks["redis"] = f"error: {str(e)[:100]}"
        healthy = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "DesiCargo",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
