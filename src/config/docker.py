"""Docker configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DockerConfig(BaseSettings):
    """Docker runtime connection settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    base_url: str | None = Field(default=None, alias="docker_base_url")
    timeout: int = Field(default=60, ge=5, alias="docker_timeout")
    stop_timeout: int = Field(default=10, ge=0, alias="docker_stop_timeout")

    # Container and volume labeling
    label_prefix: str = Field(default="com.enclave-deployer", alias="container_label_prefix")

    def label(self, key: str) -> str:
        """Build a fully-qualified label key."""
        return f"{self.label_prefix}.{key}"
