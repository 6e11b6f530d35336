"""Request logging middleware for the Enclave Deployer API."""

# Standard library imports
import time
from typing import Callable, Optional

# Third-party imports
import structlog
from fastapi import Request

# Local application imports
from ..config import LoggingConfig, settings


logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware:
    """Logs one line per request with its status and duration."""

    def __init__(self, app: Callable, logging_config: Optional[LoggingConfig] = None):
        self.app = app
        self.enabled = (logging_config or settings.logging).enable_access_logs
        self.health_logged = False

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        """Log request information."""
        if scope["type"] != "http" or not self.enabled:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        start_time = time.time()

        # Skip repeated health check logging
        is_health = request.url.path.startswith("/health")
        skip_logging = is_health and self.health_logged
        if is_health and not self.health_logged:
            self.health_logged = True

        response_status = None

        async def send_wrapper(message):
            nonlocal response_status
            if message["type"] == "http.response.start":
                response_status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            if not skip_logging:
                logger.error(
                    "Request failed",
                    method=request.method,
                    path=request.url.path,
                    error=str(e),
                )
            raise
        finally:
            if not skip_logging:
                duration = time.time() - start_time
                logger.info(
                    "Request processed",
                    method=request.method,
                    path=request.url.path,
                    status=response_status,
                    duration_ms=round(duration * 1000, 2),
                )
