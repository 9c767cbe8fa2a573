"""
Health check endpoints.

Provides basic and detailed health check functionality.
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.schemas.common import (
    ComponentHealth,
    DetailedHealthCheckResponse,
    HealthCheckResponse,
    HealthStatus,
)
from core.config import Settings, get_settings
from core.redis import check_redis
from database import check_database

router = APIRouter(prefix="/health", tags=["health"])

# Track application start time for uptime calculation
_start_time = time.time()


def _component(result: dict, required: bool) -> ComponentHealth:
    """Map a raw check result to a component status."""
    if result["status"] == "healthy":
        status = HealthStatus.HEALTHY
    elif required:
        status = HealthStatus.UNHEALTHY
    else:
        status = HealthStatus.DEGRADED

    details = {k: v for k, v in result.items() if k not in ("status", "latency_ms", "error")}
    if result["status"] != "healthy":
        details["state"] = result["status"]

    return ComponentHealth(
        status=status,
        latency_ms=result.get("latency_ms"),
        error=result.get("error"),
        details=details or None,
    )


def _overall(components: dict[str, ComponentHealth]) -> HealthStatus:
    statuses = {component.status for component in components.values()}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


@router.get(
    "",
    response_model=HealthCheckResponse,
    summary="Basic health check",
    description="Quick health check endpoint for load balancers and container orchestration.",
)
async def health_check() -> HealthCheckResponse:
    """
    Basic health check.

    Returns a simple healthy status if the API is running.
    """
    return HealthCheckResponse(
        status=HealthStatus.HEALTHY,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/detailed",
    response_model=DetailedHealthCheckResponse,
    summary="Detailed health check",
    description="Health check with the status of the database and Redis.",
)
async def detailed_health_check(
    settings: Settings = Depends(get_settings),
) -> DetailedHealthCheckResponse:
    """
    Detailed health check with component status.

    The database is required for every creation endpoint; Redis only backs
    rate limiting unless ``redis_required`` is set.
    """
    components = {
        "database": _component(await check_database(), required=True),
        "redis": _component(await check_redis(), required=settings.redis_required),
    }

    return DetailedHealthCheckResponse(
        status=_overall(components),
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _start_time, 2),
        components=components,
    )


@router.get(
    "/live",
    response_model=HealthCheckResponse,
    summary="Liveness check",
    description="Check if the application is alive.",
)
async def liveness_check() -> HealthCheckResponse:
    """Simple check that the application process is running."""
    return HealthCheckResponse(
        status=HealthStatus.HEALTHY,
        timestamp=datetime.now(timezone.utc),
    )
