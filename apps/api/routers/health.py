"""Health check router — liveness + readiness."""

import structlog
from fastapi import APIRouter

from apps.api.core.config import settings

router = APIRouter(tags=["health"])
logger = structlog.get_logger()


@router.get("/health")
async def health_liveness():
    """Liveness probe — returns 200 if the API process is running."""
    return {"status": "healthy", "service": "api"}


@router.get("/health/ready")
async def health_readiness():
    """Readiness probe — the record store must be configured.

    Reports "degraded" instead of failing so load balancers can still reach
    the liveness probe while configuration is fixed.
    """
    configured = bool(settings and settings.SUPABASE_URL and settings.SUPABASE_ANON_KEY)
    status = {
        "status": "healthy" if configured else "degraded",
        "services": {
            "api": "up",
            "supabase": "configured" if configured else "missing",
        },
    }
    if not configured:
        logger.warning("supabase_not_configured")
    return status
