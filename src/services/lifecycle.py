"""Enclave lifecycle management.

An enclave is one container plus one volume, both named after the enclave.
Nothing is stored locally: whether an enclave exists is decided by listing
containers on the runtime every time.

Locking:
- every Deploy/Destroy/prune step for a given name runs under that name's
  lock, so the existence check and the create that follows cannot interleave
  with another operation on the same name;
- container creation additionally runs inside PortAllocator.allocate(), which
  serializes port assignment across all names.
"""

import asyncio
import functools
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import structlog
from docker.models.containers import Container

from ..config import DockerConfig, EnclaveConfig, settings
from ..models.enclave import EnclaveInfo
from ..models.errors import (
    EnclaveAlreadyExistsError,
    EnclaveNotFoundError,
    RuntimeOperationError,
)
from .ports import PortAllocator
from .runtime import RuntimeGateway

logger = structlog.get_logger(__name__)

# Container states that need no stop before removal
STOPPED_STATES = frozenset({"created", "exited", "dead"})


class _NameLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class EnclaveLifecycleManager:
    """Creates and destroys enclaves as single logical units."""

    def __init__(
        self,
        gateway: Optional[RuntimeGateway] = None,
        enclave_config: Optional[EnclaveConfig] = None,
        docker_config: Optional[DockerConfig] = None,
        allocator: Optional[PortAllocator] = None,
    ):
        self._gateway = gateway or RuntimeGateway()
        self._enclave = enclave_config or settings.enclave
        self._docker = docker_config or settings.docker
        self._allocator = allocator or PortAllocator(self._enclave.first_host_port)
        self._name_locks: Dict[str, _NameLock] = {}
        self._seed_lock = asyncio.Lock()
        self._seeded = False

    @property
    def gateway(self) -> RuntimeGateway:
        return self._gateway

    @property
    def allocator(self) -> PortAllocator:
        return self._allocator

    async def _run(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking gateway call in the default executor."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    @asynccontextmanager
    async def _hold(self, name: str) -> AsyncIterator[None]:
        """Hold the lock for one enclave name.

        Entries are dropped once nobody holds or waits for them, so unknown
        names do not accumulate.
        """
        entry = self._name_locks.get(name)
        if entry is None:
            entry = self._name_locks[name] = _NameLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._name_locks[name]

    def _managed_labels(self, name: str) -> Dict[str, str]:
        return {
            self._docker.label("managed"): "true",
            self._docker.label("enclave"): name,
        }

    def _is_managed(self, labels: Optional[Dict[str, str]]) -> bool:
        return bool(labels) and labels.get(self._docker.label("managed")) == "true"

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    async def deploy(self, name: str) -> str:
        """Create and start the enclave ``name``.

        Returns:
            The externally reachable endpoint URL of the enclave.

        Raises:
            EnclaveAlreadyExistsError: a container named ``name`` exists.
                Nothing is changed.
            RuntimeOperationError: the runtime failed. The volume may have
                been created and is left in place for the next attempt; the
                port counter is not advanced.
        """
        async with self._hold(name):
            existing = await self._run(self._gateway.find_container, name)
            if existing is not None:
                logger.debug("Container does already exist", enclave=name)
                raise EnclaveAlreadyExistsError(name)

            await self._ensure_volume(name)
            await self._seed_port_counter()

            async with self._allocator.allocate() as host_port:
                container = await self._create_container(name, host_port)
                try:
                    await self._run(self._gateway.start_container, container)
                except RuntimeOperationError:
                    await self._discard_container(name, container)
                    raise

            url = self._enclave.endpoint_url(host_port)
            logger.info(
                "Enclave deployed",
                enclave=name,
                container_id=container.id[:12],
                port=host_port,
                url=url,
            )
            return url

    async def _ensure_volume(self, name: str) -> None:
        """Create the enclave volume unless one with that name survives."""
        volume = await self._run(self._gateway.find_volume, name)
        if volume is not None:
            logger.debug("Reusing existing volume", enclave=name)
            return

        await self._run(self._gateway.create_volume, name, labels=self._managed_labels(name))
        logger.info("Created volume", enclave=name)

    async def _create_container(self, name: str, host_port: int) -> Container:
        labels = self._managed_labels(name)
        labels[self._docker.label("host-port")] = str(host_port)
        labels[self._docker.label("created-at")] = datetime.now(timezone.utc).isoformat()

        return await self._run(
            self._gateway.create_container,
            name=name,
            image=self._enclave.image,
            internal_port=self._enclave.container_port,
            host_ip=self._enclave.host_ip,
            host_port=host_port,
            environment=self._enclave.environment(),
            volume_name=name,
            mount_path=self._enclave.mount_path,
            labels=labels,
        )

    async def _discard_container(self, name: str, container: Container) -> None:
        """Remove a container that was created but failed to start.

        Otherwise the name stays taken and every retry fails.
        """
        try:
            await self._run(self._gateway.remove_container, container, force=True)
            logger.warning("Removed container that failed to start", enclave=name)
        except RuntimeOperationError as e:
            logger.error(
                "Failed to remove container that failed to start",
                enclave=name,
                container_id=container.id[:12],
                error=str(e),
            )

    async def _seed_port_counter(self) -> None:
        """Move the counter past ports held by enclaves from an earlier run."""
        if self._seeded:
            return

        async with self._seed_lock:
            if self._seeded:
                return

            containers = await self._run(self._gateway.list_containers)
            ports = [
                port
                for port in (self._host_port_of(c) for c in containers if self._is_managed(c.labels))
                if port is not None
            ]
            if ports:
                self._allocator.advance_past(max(ports))
            self._seeded = True
            logger.info(
                "Port counter seeded",
                surviving_enclaves=len(ports),
                next_port=self._allocator.next_port,
            )

    # ------------------------------------------------------------------
    # Destroy
    # ------------------------------------------------------------------

    async def destroy(self, name: str) -> None:
        """Stop and remove the enclave container, then remove its volume.

        Steps that find their target already gone are skipped, so a failed
        teardown can simply be retried. Earlier steps are never rolled back.

        Raises:
            EnclaveNotFoundError: no container named ``name`` exists.
            RuntimeOperationError: a teardown step failed.
        """
        async with self._hold(name):
            container = await self._run(self._gateway.find_container, name)
            if container is None:
                logger.debug("Container does not exist", enclave=name)
                raise EnclaveNotFoundError(name)

            if container.status not in STOPPED_STATES:
                await self._skip_if_gone(
                    "stop container",
                    name,
                    self._gateway.stop_container,
                    container,
                    timeout=self._docker.stop_timeout,
                )
            await self._skip_if_gone("remove container", name, self._gateway.remove_container, container)
            await self._skip_if_gone("remove volume", name, self._gateway.remove_volume, name, force=True)

            logger.info("Enclave destroyed", enclave=name, container_id=container.id[:12])

    async def _skip_if_gone(self, step: str, name: str, func: Callable[..., Any], *args, **kwargs) -> None:
        try:
            await self._run(func, *args, **kwargs)
        except RuntimeOperationError as e:
            if not e.is_not_found:
                logger.error("Teardown step failed", enclave=name, step=step, error=str(e))
                raise
            logger.info("Teardown step target already gone", enclave=name, step=step)

    # ------------------------------------------------------------------
    # Queries and reconciliation
    # ------------------------------------------------------------------

    def _host_port_of(self, container: Container) -> Optional[int]:
        labels = container.labels or {}
        value = labels.get(self._docker.label("host-port"))
        if value is None:
            bindings = (container.ports or {}).get(self._enclave.container_port) or []
            value = bindings[0].get("HostPort") if bindings else None
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def _to_info(self, container: Container) -> EnclaveInfo:
        labels = container.labels or {}
        host_port = self._host_port_of(container)

        created_at = None
        created_str = labels.get(self._docker.label("created-at"))
        if created_str:
            try:
                created_at = datetime.fromisoformat(created_str)
            except ValueError:
                created_at = None

        return EnclaveInfo(
            name=container.name,
            container_id=container.id,
            status=container.status,
            host_port=host_port,
            url=self._enclave.endpoint_url(host_port) if host_port is not None else None,
            created_at=created_at,
            labels=dict(labels),
        )

    async def list_enclaves(self) -> List[EnclaveInfo]:
        """List enclaves created by this service, as seen on the runtime."""
        containers = await self._run(self._gateway.list_containers)
        enclaves = [self._to_info(c) for c in containers if self._is_managed(c.labels)]
        return sorted(enclaves, key=lambda e: e.name)

    async def get_enclave(self, name: str) -> EnclaveInfo:
        """Look up one enclave by name.

        Raises:
            EnclaveNotFoundError: no container named ``name`` exists.
        """
        container = await self._run(self._gateway.find_container, name)
        if container is None:
            raise EnclaveNotFoundError(name)
        return self._to_info(container)

    async def prune_orphaned_volumes(self) -> List[str]:
        """Remove managed volumes that no container of the same name uses.

        Such volumes are left behind when container creation fails after the
        volume was created, or when a container is removed outside this
        service. Each name is locked while it is checked, so a deploy that has
        created its volume but not yet its container is never pruned.

        Returns:
            Names of the removed volumes.
        """
        volumes = await self._run(self._gateway.list_volumes)
        candidates = sorted(v.name for v in volumes if self._is_managed(v.attrs.get("Labels")))

        removed = []
        for name in candidates:
            async with self._hold(name):
                if await self._run(self._gateway.find_container, name) is not None:
                    continue
                try:
                    await self._run(self._gateway.remove_volume, name, force=True)
                except RuntimeOperationError as e:
                    if e.is_not_found:
                        continue
                    raise
                removed.append(name)
                logger.info("Removed orphaned volume", enclave=name)

        logger.info("Orphaned volume reconciliation completed", removed=len(removed))
        return removed
