"""Health check and monitoring endpoints."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from .._version import __version__
from ..config import settings
from ..services.health import HealthStatus, health_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/health", summary="Basic health check")
async def basic_health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "enclave-deployer",
    }


@router.get("/health/detailed", summary="Detailed health check")
async def detailed_health_check(
    use_cache: bool = Query(True, description="Use cached health check results"),
):
    """Detailed health check of the container runtime."""
    service_results = await health_service.check_all_services(use_cache=use_cache)
    overall_status = health_service.get_overall_status(service_results)

    response_data = {
        "status": overall_status.value,
        "version": __version__,
        "services": {name: result.to_dict() for name, result in service_results.items()},
        "config": {
            "image": settings.enclave_image,
            "readiness_timeout_seconds": settings.readiness_timeout_seconds,
            "readiness_failure_policy": settings.readiness_failure_policy,
        },
    }

    if overall_status == HealthStatus.UNHEALTHY:
        return JSONResponse(status_code=503, content=response_data)
    elif overall_status == HealthStatus.DEGRADED:
        return JSONResponse(
            status_code=200,
            content=response_data,
            headers={"X-Health-Status": "degraded"},
        )
    return JSONResponse(status_code=200, content=response_data)
