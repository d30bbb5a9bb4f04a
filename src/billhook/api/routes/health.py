"""Health check endpoints."""

from fastapi import APIRouter, Request, Response

from billhook import __version__
from billhook.config import settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {
        "status": "healthy",
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Kubernetes readiness check."""
    app_settings = getattr(request.app.state, "settings", settings)

    if app_settings.clients_backend == "redis":
        from billhook.db.redis import redis_ready

        if not await redis_ready():
            return Response(status_code=503, content="Redis not ready")

    return {"status": "ready", "clients_backend": app_settings.clients_backend}


@router.get("/health/live")
async def liveness_check() -> dict:
    """Kubernetes liveness check."""
    return {"status": "alive"}
