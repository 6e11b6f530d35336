"""Synchronous facade over the Docker Engine API.

The gateway applies no policy: every method is one runtime call (or one
listing plus an in-memory filter). Failures are wrapped in
RuntimeOperationError naming the operation and re-raised. Nothing is
retried here.
"""

from typing import Any, Callable, Dict, List, Optional

import structlog
from docker.errors import DockerException, ImageNotFound
from docker.models.containers import Container
from docker.models.volumes import Volume
from docker.types import Mount
from requests.exceptions import RequestException

from ...models.errors import RuntimeOperationError
from .client import DockerClientFactory

logger = structlog.get_logger(__name__)


class RuntimeGateway:
    """Primitive container and volume operations against one Docker host."""

    def __init__(self, client_factory: Optional[DockerClientFactory] = None):
        self._client_factory = client_factory or DockerClientFactory()

    @property
    def client(self):
        """Get the Docker client."""
        return self._client_factory.get_client()

    def _call(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except (DockerException, RequestException) as e:
            logger.debug("Runtime call failed", operation=operation, error=str(e))
            raise RuntimeOperationError(operation, e) from e

    # Containers

    def list_containers(self) -> List[Container]:
        """List all containers on the host, stopped ones included.

        Containers removed between the listing and their inspection are
        skipped instead of failing the whole call.
        """
        return self._call(
            "list containers",
            lambda: self.client.containers.list(all=True, ignore_removed=True),
        )

    def find_container(self, name: str) -> Optional[Container]:
        """Find a container by exact name with a full list-and-filter scan."""
        for container in self.list_containers():
            if container.name == name:
                return container
        return None

    def create_container(
        self,
        name: str,
        image: str,
        internal_port: str,
        host_ip: str,
        host_port: int,
        environment: Dict[str, str],
        volume_name: str,
        mount_path: str,
        labels: Optional[Dict[str, str]] = None,
    ) -> Container:
        """Create (but do not start) a container.

        Args:
            name: Container name
            image: Image reference
            internal_port: Exposed port in "<port>/tcp" form
            host_ip: Host interface the port is bound on
            host_port: Host port mapped to internal_port
            environment: Environment variables
            volume_name: Named volume to mount
            mount_path: Mount target inside the container
            labels: Container labels
        """
        return self._call(
            "create container",
            lambda: self.client.containers.create(
                image,
                name=name,
                detach=True,
                ports={internal_port: (host_ip, host_port)},
                environment=environment,
                mounts=[Mount(target=mount_path, source=volume_name, type="volume")],
                labels=labels or {},
            ),
        )

    def start_container(self, container: Container) -> None:
        """Start a created container."""
        self._call("start container", container.start)

    def stop_container(self, container: Container, timeout: Optional[int] = None) -> None:
        """Stop a running container."""
        if timeout is None:
            self._call("stop container", container.stop)
        else:
            self._call("stop container", container.stop, timeout=timeout)

    def remove_container(self, container: Container, force: bool = False) -> None:
        """Remove a container."""
        self._call("remove container", container.remove, force=force)

    # Volumes

    def list_volumes(self) -> List[Volume]:
        """List all volumes on the host."""
        return self._call("list volumes", lambda: self.client.volumes.list())

    def find_volume(self, name: str) -> Optional[Volume]:
        """Find a volume by exact name with a full list-and-filter scan."""
        for volume in self.list_volumes():
            if volume.name == name:
                return volume
        return None

    def create_volume(self, name: str, labels: Optional[Dict[str, str]] = None) -> Volume:
        """Create a named volume."""
        return self._call(
            "create volume",
            lambda: self.client.volumes.create(name=name, labels=labels or {}),
        )

    def remove_volume(self, name: str, force: bool = False) -> None:
        """Remove a named volume."""
        self._call("remove volume", lambda: self.client.api.remove_volume(name, force=force))

    # Images

    def image_exists(self, image: str) -> bool:
        """Check whether an image is present on the host."""
        try:
            self._call("inspect image", self.client.images.get, image)
        except RuntimeOperationError as e:
            if isinstance(e.cause, ImageNotFound):
                return False
            raise
        return True

    # Daemon

    def version(self) -> Dict[str, Any]:
        """Get the daemon version information."""
        return self._call("query daemon version", lambda: self.client.version())

    def close(self) -> None:
        """Close the underlying client."""
        self._client_factory.close()
