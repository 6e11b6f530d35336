"""Configuration validation utilities."""

import logging
from typing import List, Dict, Any
from urllib.parse import urlparse

from ..config import settings
from ..models.errors import RuntimeOperationError

logger = logging.getLogger(__name__)


class ConfigValidator:
    """Validates application configuration and container runtime reachability.

    Runtime problems are warnings only: the API can start while the daemon is
    down and will report runtime errors per request until it comes back.
    """

    def __init__(self, gateway=None):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self._gateway = gateway

    def validate_all(self, check_runtime: bool = True) -> bool:
        """Validate all configuration settings and, optionally, the runtime."""
        self.errors.clear()
        self.warnings.clear()

        self._validate_api_config()
        self._validate_enclave_config()

        if check_runtime:
            self._validate_runtime()

        # Log results
        if self.warnings:
            for warning in self.warnings:
                logger.warning(f"Configuration warning: {warning}")

        if self.errors:
            for error in self.errors:
                logger.error(f"Configuration error: {error}")
            return False

        return True

    def _validate_api_config(self):
        """Validate API configuration."""
        if settings.api_debug:
            self.warnings.append("Debug mode is enabled - runtime errors are exposed to callers")

        if settings.docker_base_url:
            scheme = urlparse(settings.docker_base_url).scheme
            if scheme not in ("unix", "tcp", "http", "https", "npipe", "ssh"):
                self.errors.append(
                    f"Unsupported docker_base_url scheme: {scheme or settings.docker_base_url}"
                )

    def _validate_enclave_config(self):
        """Validate enclave provisioning configuration."""
        if not settings.enclave_image:
            self.errors.append("enclave_image must not be empty")

        if not settings.enclave_public_host:
            self.errors.append("enclave_public_host must not be empty")

        if settings.enclave_first_host_port < 1024:
            self.warnings.append(
                f"First enclave host port {settings.enclave_first_host_port} is a privileged port"
            )

        if (
            settings.readiness_timeout_seconds * 1000
            < settings.readiness_poll_interval_ms
        ):
            self.warnings.append(
                "Readiness timeout is shorter than the poll interval - only one probe will be made"
            )

    def _validate_runtime(self):
        """Validate Docker connectivity and the enclave image (non-fatal)."""
        gateway = self._gateway
        if gateway is None:
            from ..dependencies.services import get_runtime_gateway

            gateway = get_runtime_gateway()

        try:
            gateway.version()
        except RuntimeOperationError as e:
            self.warnings.append(f"Docker connection error: {e}")
            return

        try:
            if not gateway.image_exists(settings.enclave_image):
                self.warnings.append(
                    f"Enclave image '{settings.enclave_image}' not found locally - "
                    "deployments will fail until it is built or pulled"
                )
        except RuntimeOperationError as e:
            self.warnings.append(f"Docker image check error: {e}")


def validate_configuration(check_runtime: bool = True) -> bool:
    """Validate application configuration."""
    validator = ConfigValidator()
    return validator.validate_all(check_runtime=check_runtime)


def get_configuration_summary() -> Dict[str, Any]:
    """Get a summary of current configuration for debugging."""
    return {
        "debug": settings.api_debug,
        "docker_base_url": settings.docker_base_url or "environment",
        "enclave_image": settings.enclave_image,
        "first_host_port": settings.enclave_first_host_port,
        "internal_port": settings.enclave_internal_port,
        "public_host": settings.enclave_public_host,
        "readiness_timeout_seconds": settings.readiness_timeout_seconds,
        "readiness_failure_policy": settings.readiness_failure_policy,
    }
