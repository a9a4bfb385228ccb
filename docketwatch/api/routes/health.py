"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if database is unreachable (readiness)
    - An unreachable cache degrades readiness but never fails it (the cache is disposable)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from docketwatch.api.dependencies import get_container
from docketwatch.container import ServiceContainer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "docketwatch-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(container: ServiceContainer = Depends(get_container)):
    """Readiness probe — includes database connectivity and cache status."""
    db_ok = await container.db.health_check()
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    if not container.cache.enabled:
        cache_state = "disabled"
    else:
        cache_state = "healthy" if await container.cache.health_check() else "degraded"
    return {
        "status": "ready",
        "checks": {"database": "healthy", "cache": cache_state},
        "liveSubscribers": container.registry.subscriber_count(),
    }
