"""API server configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseSettings):
    """API server settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    host: str = Field(default="0.0.0.0", alias="api_host")
    port: int = Field(default=8082, ge=1, le=65535, alias="api_port")
    debug: bool = Field(default=False, alias="api_debug")
    reload: bool = Field(default=False, alias="api_reload")

    # uvicorn has no read/write timeouts; idle connections use keep-alive
    keep_alive_timeout: int = Field(default=120, ge=1, alias="api_keep_alive_timeout")
    shutdown_timeout: int = Field(default=10, ge=1, alias="api_shutdown_timeout")

    # Documentation
    enable_docs: bool = Field(default=True)
