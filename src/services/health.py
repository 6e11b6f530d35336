"""Health check service for monitoring the container runtime."""

# Standard library imports
import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional

# Third-party imports
import structlog

# Local application imports
from ..config import settings
from ..models.errors import RuntimeOperationError


logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status enumeration."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"


class HealthCheckResult:
    """Health check result container."""

    def __init__(
        self,
        service: str,
        status: HealthStatus,
        response_time_ms: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        self.service = service
        self.status = status
        self.response_time_ms = response_time_ms
        self.details = details or {}
        self.error = error
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "service": self.service,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
        }

        if self.response_time_ms is not None:
            result["response_time_ms"] = round(self.response_time_ms, 2)

        if self.details:
            result["details"] = self.details

        if self.error:
            result["error"] = self.error

        return result


class HealthCheckService:
    """Service for performing health checks on system dependencies."""

    def __init__(self, gateway=None):
        """Initialize health check service."""
        self._gateway = gateway
        self._last_check_time: Optional[datetime] = None
        self._cached_results: Dict[str, HealthCheckResult] = {}
        self._cache_ttl_seconds = 30  # Cache results for 30 seconds

    def set_gateway(self, gateway) -> None:
        """Set the runtime gateway used for checks."""
        self._gateway = gateway

    def _get_gateway(self):
        if self._gateway is None:
            from ..dependencies.services import get_runtime_gateway

            self._gateway = get_runtime_gateway()
        return self._gateway

    async def check_all_services(
        self, use_cache: bool = True
    ) -> Dict[str, HealthCheckResult]:
        """Perform health checks on all services."""
        now = datetime.now(timezone.utc)

        if (
            use_cache
            and self._last_check_time
            and (now - self._last_check_time).total_seconds() < self._cache_ttl_seconds
        ):
            return self._cached_results

        logger.info("Performing health checks on all services")

        health_results = {"docker": await self.check_docker()}

        self._cached_results = health_results
        self._last_check_time = now

        return health_results

    async def check_docker(self) -> HealthCheckResult:
        """Check Docker daemon connectivity and count managed enclaves."""
        start_time = time.time()

        try:
            gateway = self._get_gateway()
            loop = asyncio.get_event_loop()

            version_info = await asyncio.wait_for(
                loop.run_in_executor(None, gateway.version),
                timeout=settings.health_check_timeout,
            )
            containers = await asyncio.wait_for(
                loop.run_in_executor(None, gateway.list_containers),
                timeout=settings.health_check_timeout,
            )

            response_time = (time.time() - start_time) * 1000

            managed_label = settings.docker.label("managed")
            managed = [c for c in containers if (c.labels or {}).get(managed_label) == "true"]

            status = HealthStatus.HEALTHY
            if response_time > 3000:  # > 3 seconds
                status = HealthStatus.DEGRADED

            details = {
                "version": version_info.get("Version", "unknown"),
                "api_version": version_info.get("ApiVersion", "unknown"),
                "total_containers": len(containers),
                "running_containers": len([c for c in containers if c.status == "running"]),
                "managed_enclaves": len(managed),
            }

            return HealthCheckResult(
                service="docker",
                status=status,
                response_time_ms=response_time,
                details=details,
            )

        except (RuntimeOperationError, asyncio.TimeoutError) as e:
            response_time = (time.time() - start_time) * 1000
            error = str(e) or "Health check timed out"
            logger.error(
                "Docker health check failed",
                error=error,
                response_time_ms=response_time,
            )

            return HealthCheckResult(
                service="docker",
                status=HealthStatus.UNHEALTHY,
                response_time_ms=response_time,
                error=error,
            )

    def get_overall_status(
        self, service_results: Dict[str, HealthCheckResult]
    ) -> HealthStatus:
        """Determine overall system health status."""
        if not service_results:
            return HealthStatus.UNKNOWN

        statuses = [result.status for result in service_results.values()]

        if HealthStatus.UNHEALTHY in statuses:
            return HealthStatus.UNHEALTHY

        if HealthStatus.DEGRADED in statuses:
            return HealthStatus.DEGRADED

        if all(status == HealthStatus.HEALTHY for status in statuses):
            return HealthStatus.HEALTHY

        return HealthStatus.UNKNOWN


# Global health check service instance
health_service = HealthCheckService()
