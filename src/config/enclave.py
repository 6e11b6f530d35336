"""Enclave workload configuration.

These values are baked into every enclave container at creation time.
"""

from typing import Dict, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnclaveConfig(BaseSettings):
    """Enclave container and readiness settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    image: str = Field(default="function", alias="enclave_image")
    internal_port: int = Field(default=8081, ge=1, le=65535, alias="enclave_internal_port")
    first_host_port: int = Field(default=8083, ge=1, le=65535, alias="enclave_first_host_port")
    host_ip: str = Field(default="0.0.0.0", alias="enclave_host_ip")
    public_host: str = Field(default="host.docker.internal", alias="enclave_public_host")
    mount_path: str = Field(default="/data", alias="enclave_mount_path")

    # Workload environment
    frontend_url: str = Field(default="http://localhost:3000", alias="enclave_frontend_url")
    frontend_host: str = Field(default="localhost", alias="enclave_frontend_host")
    backend_url: str = Field(default="http://host.docker.internal:8080", alias="enclave_backend_url")
    use_insecure_http: bool = Field(default=True, alias="enclave_use_insecure_http")

    # Readiness
    readiness_poll_interval_ms: int = Field(default=100, ge=10, le=10000)
    readiness_timeout_seconds: float = Field(default=60.0, gt=0)
    readiness_probe_timeout_seconds: float = Field(default=2.0, gt=0)
    readiness_failure_policy: Literal["keep", "teardown"] = Field(default="keep")

    @property
    def container_port(self) -> str:
        """Internal port in docker port-spec form."""
        return f"{self.internal_port}/tcp"

    def environment(self) -> Dict[str, str]:
        """Environment variables passed to every enclave container."""
        return {
            "FRONTEND_URL": self.frontend_url,
            "FRONTEND_HOST": self.frontend_host,
            "BACKEND_URL": self.backend_url,
            "USE_INSECURE_HTTP": "true" if self.use_insecure_http else "false",
        }

    def endpoint_url(self, host_port: int) -> str:
        """Externally reachable URL of an enclave bound to host_port."""
        return f"http://{self.public_host}:{host_port}"
