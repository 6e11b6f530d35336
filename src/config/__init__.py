"""Configuration management for the Enclave Deployer API.

This module provides a unified Settings class with flat fields that can be
set from the environment or a ``.env`` file, plus grouped read-only views.

Usage:
    from src.config import settings

    # Access grouped settings
    settings.api.port
    settings.enclave.first_host_port
    settings.docker.label("managed")

    # Or use flat access
    settings.api_port
    settings.enclave_first_host_port
"""

from pathlib import PurePosixPath
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Import grouped configurations
from .api import APIConfig
from .docker import DockerConfig
from .enclave import EnclaveConfig
from .logging import LoggingConfig


class Settings(BaseSettings):
    """Application settings with environment variable support.

    This class provides both:
    1. Grouped access via nested configs (settings.enclave.image)
    2. Flat access (settings.enclave_image)
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # API Configuration
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8082, ge=1, le=65535)
    api_debug: bool = Field(default=False)
    api_reload: bool = Field(default=False)
    api_keep_alive_timeout: int = Field(default=120, ge=1, description="Idle connection timeout in seconds")
    api_shutdown_timeout: int = Field(default=10, ge=1, description="Graceful shutdown timeout in seconds")

    # Docker Configuration
    docker_base_url: str | None = Field(
        default=None,
        description="Docker daemon URL (empty = use DOCKER_HOST or the local socket)",
    )
    docker_timeout: int = Field(default=60, ge=5)
    docker_stop_timeout: int = Field(default=10, ge=0, description="Seconds to wait before killing on stop")
    container_label_prefix: str = Field(default="com.enclave-deployer")

    # Enclave Configuration
    enclave_image: str = Field(default="function", description="Image every enclave container runs")
    enclave_internal_port: int = Field(default=8081, ge=1, le=65535)
    enclave_first_host_port: int = Field(default=8083, ge=1, le=65535)
    enclave_host_ip: str = Field(default="0.0.0.0")
    enclave_public_host: str = Field(
        default="host.docker.internal",
        description="Hostname used to build the endpoint URL returned to callers",
    )
    enclave_mount_path: str = Field(default="/data")
    enclave_frontend_url: str = Field(default="http://localhost:3000")
    enclave_frontend_host: str = Field(default="localhost")
    enclave_backend_url: str = Field(default="http://host.docker.internal:8080")
    enclave_use_insecure_http: bool = Field(default=True)

    # Readiness Configuration
    readiness_poll_interval_ms: int = Field(default=100, ge=10, le=10000)
    readiness_timeout_seconds: float = Field(default=60.0, gt=0)
    readiness_probe_timeout_seconds: float = Field(default=2.0, gt=0)
    readiness_failure_policy: Literal["keep", "teardown"] = Field(
        default="keep",
        description="What to do with an enclave that never became reachable",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: str | None = Field(default=None)
    log_max_size_mb: int = Field(default=100, ge=1)
    log_backup_count: int = Field(default=5, ge=1)
    enable_access_logs: bool = Field(default=True)

    # Health Check Configuration
    health_check_timeout: int = Field(default=5, ge=1)

    # Development Configuration
    enable_docs: bool = Field(default=True)

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator("enclave_mount_path")
    @classmethod
    def validate_mount_path(cls, v):
        """Mount targets inside the container must be absolute."""
        if not PurePosixPath(v).is_absolute():
            raise ValueError("enclave_mount_path must be an absolute path")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Only json and console renderers are supported."""
        if v.lower() not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v.lower()

    @model_validator(mode="after")
    def validate_port_layout(self):
        """The first enclave port must not collide with the API listener."""
        if self.enclave_first_host_port == self.api_port:
            raise ValueError("enclave_first_host_port must differ from api_port")
        return self

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def api(self) -> APIConfig:
        """Access API configuration group."""
        return APIConfig(
            api_host=self.api_host,
            api_port=self.api_port,
            api_debug=self.api_debug,
            api_reload=self.api_reload,
            api_keep_alive_timeout=self.api_keep_alive_timeout,
            api_shutdown_timeout=self.api_shutdown_timeout,
            enable_docs=self.enable_docs,
        )

    @property
    def docker(self) -> DockerConfig:
        """Access Docker configuration group."""
        return DockerConfig(
            docker_base_url=self.docker_base_url,
            docker_timeout=self.docker_timeout,
            docker_stop_timeout=self.docker_stop_timeout,
            container_label_prefix=self.container_label_prefix,
        )

    @property
    def enclave(self) -> EnclaveConfig:
        """Access enclave configuration group."""
        return EnclaveConfig(
            enclave_image=self.enclave_image,
            enclave_internal_port=self.enclave_internal_port,
            enclave_first_host_port=self.enclave_first_host_port,
            enclave_host_ip=self.enclave_host_ip,
            enclave_public_host=self.enclave_public_host,
            enclave_mount_path=self.enclave_mount_path,
            enclave_frontend_url=self.enclave_frontend_url,
            enclave_frontend_host=self.enclave_frontend_host,
            enclave_backend_url=self.enclave_backend_url,
            enclave_use_insecure_http=self.enclave_use_insecure_http,
            readiness_poll_interval_ms=self.readiness_poll_interval_ms,
            readiness_timeout_seconds=self.readiness_timeout_seconds,
            readiness_probe_timeout_seconds=self.readiness_probe_timeout_seconds,
            readiness_failure_policy=self.readiness_failure_policy,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            log_file=self.log_file,
            log_max_size_mb=self.log_max_size_mb,
            log_backup_count=self.log_backup_count,
            enable_access_logs=self.enable_access_logs,
            health_check_timeout=self.health_check_timeout,
        )


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    # Grouped configs
    "APIConfig",
    "DockerConfig",
    "EnclaveConfig",
    "LoggingConfig",
]
