"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from .. import __version__

router = APIRouter()


@router.get("/health", summary="Basic health check")
async def basic_health_check():
    """Basic health check used by the HTTP readiness probe."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "fastapi-docker-demo",
    }
