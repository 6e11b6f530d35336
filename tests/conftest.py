"""Pytest configuration and shared fixtures."""

import os
import threading
import time
import uuid
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from docker import DockerClient
from docker.errors import APIError, ImageNotFound, NotFound

# Set test environment before importing config
os.environ["API_DEBUG"] = "false"
os.environ["ENCLAVE_FIRST_HOST_PORT"] = "8083"
os.environ["ENCLAVE_PUBLIC_HOST"] = "host.docker.internal"
os.environ["LOG_FORMAT"] = "console"
os.environ["READINESS_FAILURE_POLICY"] = "keep"

from src.config import settings
from src.models.errors import RuntimeOperationError
from src.services.lifecycle import EnclaveLifecycleManager
from src.services.ports import PortAllocator


class FakeContainer:
    """In-memory stand-in for docker.models.containers.Container."""

    def __init__(self, name: str, labels: Dict[str, str], host_port: Optional[int] = None, status: str = "created"):
        self.id = uuid.uuid4().hex
        self.name = name
        self.labels = labels
        self.status = status
        self.host_port = host_port
        self.environment: Dict[str, str] = {}
        self.volume_name: Optional[str] = None
        self.mount_path: Optional[str] = None

    @property
    def ports(self) -> Dict[str, Any]:
        if self.status != "running" or self.host_port is None:
            return {}
        return {"8081/tcp": [{"HostIp": "0.0.0.0", "HostPort": str(self.host_port)}]}


class FakeVolume:
    """In-memory stand-in for docker.models.volumes.Volume."""

    def __init__(self, name: str, labels: Optional[Dict[str, str]] = None):
        self.name = name
        self.attrs = {"Name": name, "Labels": labels}


class FakeRuntimeGateway:
    """Thread-safe in-memory runtime with the RuntimeGateway interface.

    ``fail_next(method, exc)`` makes the next call of ``method`` raise
    ``exc`` once. ``create_delay`` slows container creation down so that
    concurrent deploys really overlap in the executor; ``create_started`` is
    set as soon as a creation begins.
    """

    def __init__(self):
        self.containers: Dict[str, FakeContainer] = {}
        self.volumes: Dict[str, FakeVolume] = {}
        self.calls: List[str] = []
        self.create_delay = 0.0
        self.create_started = threading.Event()
        self.images = {"function"}
        self._failures: Dict[str, Exception] = {}
        self._lock = threading.Lock()

    # Test helpers

    def fail_next(self, method: str, exc: Exception) -> None:
        self._failures[method] = exc

    def add_container(self, name, labels=None, host_port=None, status="running") -> FakeContainer:
        container = FakeContainer(name, labels or {}, host_port=host_port, status=status)
        self.containers[name] = container
        return container

    def add_volume(self, name, labels=None) -> FakeVolume:
        volume = FakeVolume(name, labels)
        self.volumes[name] = volume
        return volume

    def mutating_calls(self) -> List[str]:
        readonly = {"list_containers", "find_container", "list_volumes", "find_volume", "version"}
        return [c for c in self.calls if c not in readonly]

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        exc = self._failures.pop(method, None)
        if exc is not None:
            raise exc

    # RuntimeGateway interface

    def list_containers(self):
        with self._lock:
            self._enter("list_containers")
            return list(self.containers.values())

    def find_container(self, name):
        with self._lock:
            self._enter("find_container")
            return self.containers.get(name)

    def create_container(self, name, image, internal_port, host_ip, host_port, environment, volume_name, mount_path, labels=None):
        self.create_started.set()
        time.sleep(self.create_delay)
        with self._lock:
            self._enter("create_container")
            if name in self.containers:
                raise RuntimeOperationError("create container", APIError("Conflict. The container name is already in use"))
            if image not in self.images:
                raise RuntimeOperationError("create container", ImageNotFound(f"No such image: {image}"))
            container = FakeContainer(name, dict(labels or {}), host_port=host_port)
            container.environment = dict(environment)
            container.volume_name = volume_name
            container.mount_path = mount_path
            self.containers[name] = container
            return container

    def start_container(self, container):
        with self._lock:
            self._enter("start_container")
            for other in self.containers.values():
                if other is not container and other.status == "running" and other.host_port == container.host_port:
                    raise RuntimeOperationError("start container", APIError("port is already allocated"))
            container.status = "running"

    def stop_container(self, container, timeout=None):
        with self._lock:
            self._enter("stop_container")
            if container.name not in self.containers:
                raise RuntimeOperationError("stop container", NotFound("No such container"))
            container.status = "exited"

    def remove_container(self, container, force=False):
        with self._lock:
            self._enter("remove_container")
            if self.containers.get(container.name) is not container:
                raise RuntimeOperationError("remove container", NotFound("No such container"))
            if container.status in ("running", "paused", "restarting") and not force:
                raise RuntimeOperationError(
                    "remove container",
                    APIError(f"You cannot remove a {container.status} container. Stop the container before attempting removal"),
                )
            del self.containers[container.name]

    def list_volumes(self):
        with self._lock:
            self._enter("list_volumes")
            return list(self.volumes.values())

    def find_volume(self, name):
        with self._lock:
            self._enter("find_volume")
            return self.volumes.get(name)

    def create_volume(self, name, labels=None):
        with self._lock:
            self._enter("create_volume")
            return self.volumes.setdefault(name, FakeVolume(name, labels))

    def remove_volume(self, name, force=False):
        with self._lock:
            self._enter("remove_volume")
            if name not in self.volumes:
                raise RuntimeOperationError("remove volume", NotFound("No such volume"))
            del self.volumes[name]

    def image_exists(self, image):
        self._enter("image_exists")
        return image in self.images

    def version(self):
        self._enter("version")
        return {"Version": "24.0.7", "ApiVersion": "1.43"}

    def close(self):
        pass


@pytest.fixture
def fake_gateway():
    """In-memory runtime gateway."""
    return FakeRuntimeGateway()


@pytest.fixture
def lifecycle_manager(fake_gateway):
    """Lifecycle manager backed by the in-memory runtime."""
    return EnclaveLifecycleManager(
        gateway=fake_gateway,
        enclave_config=settings.enclave,
        docker_config=settings.docker,
        allocator=PortAllocator(settings.enclave_first_host_port),
    )


@pytest.fixture
def managed_labels():
    """Build the labels the service puts on its own resources."""

    def _labels(name: str, host_port: Optional[int] = None) -> Dict[str, str]:
        labels = {
            settings.docker.label("managed"): "true",
            settings.docker.label("enclave"): name,
        }
        if host_port is not None:
            labels[settings.docker.label("host-port")] = str(host_port)
        return labels

    return _labels


@pytest.fixture
def mock_docker():
    """Mock Docker client for testing."""
    mock_client = MagicMock(spec=DockerClient)
    mock_client.api = MagicMock()
    mock_container = MagicMock()

    # Mock container operations
    mock_container.id = "test_container_id"
    mock_container.name = "tenant-a"
    mock_container.status = "running"

    mock_client.containers.create.return_value = mock_container
    mock_client.containers.list.return_value = [mock_container]
    mock_client.volumes.create.return_value = MagicMock(name="tenant-a")
    mock_client.volumes.list.return_value = []
    mock_client.images.get.return_value = MagicMock()
    mock_client.version.return_value = {"Version": "24.0.7", "ApiVersion": "1.43"}

    return mock_client


@pytest_asyncio.fixture
async def readiness_waiter_factory():
    """Build ReadinessWaiters on top of an httpx.MockTransport and close them afterwards."""
    import httpx

    from src.services.readiness import ReadinessWaiter

    created = []

    def _factory(handler, **kwargs):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        kwargs.setdefault("poll_interval", 0.01)
        kwargs.setdefault("timeout", 0.5)
        kwargs.setdefault("probe_timeout", 0.1)
        waiter = ReadinessWaiter(http_client=client, **kwargs)
        created.append(waiter)
        return waiter

    yield _factory

    for waiter in created:
        await waiter.close()
