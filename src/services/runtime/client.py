"""Docker client factory and initialization."""

import threading
from typing import Optional

import docker
import structlog
from docker.errors import DockerException
from requests.exceptions import RequestException

from ...config import settings
from ...models.errors import RuntimeOperationError

logger = structlog.get_logger(__name__)


class DockerClientFactory:
    """Factory for creating the Docker client on first use."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        """Initialize Docker client factory without blocking operations."""
        self.base_url = base_url if base_url is not None else settings.docker_base_url
        self.timeout = timeout if timeout is not None else settings.docker_timeout
        self.client: Optional[docker.DockerClient] = None
        self._initialization_error: Optional[str] = None
        self._lock = threading.Lock()
        logger.info(
            "DockerClientFactory initialized (client will be created on first use)",
            base_url=self.base_url or "environment",
        )

    def _create_client(self) -> docker.DockerClient:
        if self.base_url:
            return docker.DockerClient(base_url=self.base_url, timeout=self.timeout)
        return docker.from_env(timeout=self.timeout)

    def get_client(self) -> docker.DockerClient:
        """Get the Docker client, creating and pinging it on first use.

        Raises:
            RuntimeOperationError: if the daemon cannot be reached. A later
                call tries again.
        """
        if self.client is not None:
            return self.client

        with self._lock:
            if self.client is not None:
                return self.client

            try:
                logger.info("Initializing Docker client on first use")
                client = self._create_client()
                version_info = client.version()
                logger.info(
                    "Docker connection successful",
                    server_version=version_info.get("Version", "unknown"),
                    api_version=version_info.get("ApiVersion", "unknown"),
                )
            except (DockerException, RequestException) as e:
                self._initialization_error = str(e)
                logger.error("Failed to create Docker client", error=str(e))
                raise RuntimeOperationError("connect to the docker daemon", e) from e

            self.client = client
            self._initialization_error = None
            return self.client

    def is_available(self) -> bool:
        """Check if Docker is available."""
        try:
            self.get_client()
            return True
        except RuntimeOperationError:
            return False

    def get_initialization_error(self) -> Optional[str]:
        """Get Docker initialization error if any."""
        return self._initialization_error

    def close(self) -> None:
        """Close Docker client connection."""
        with self._lock:
            if self.client is None:
                return
            try:
                self.client.close()
            except (DockerException, RequestException) as e:
                logger.error("Error closing Docker client", error=str(e))
            finally:
                self.client = None
