"""Health check endpoints."""

from fastapi import APIRouter, Request

from scholarsync.config import get_settings
from scholarsync.core.database import AsyncCassandraConnection
from scholarsync.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool | int]:
    """Readiness probe - reports backing services and live learning sessions."""
    settings = get_settings()
    quiz_service = getattr(request.app.state, "quiz_service", None)
    return {
        "status": "ready",
        "environment": settings.environment,
        "debug": settings.debug,
        "cassandra": AsyncCassandraConnection.is_connected(),
        "redis": get_redis() is not None,
        "active_quiz_sessions": quiz_service.active_session_count if quiz_service else 0,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
