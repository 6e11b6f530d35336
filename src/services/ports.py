"""Host port allocation for enclave containers."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

from ..models.errors import ServiceUnavailableError

logger = structlog.get_logger(__name__)

MAX_PORT = 65535


class PortAllocator:
    """Single owner of the next-host-port counter.

    Ports are handed out in increasing order and never recycled. A port is
    only consumed when the body of ``allocate()`` completes without raising,
    and the allocator lock is held for the whole body, so no two callers can
    ever observe the same value.
    """

    def __init__(self, first_port: int):
        self._next_port = first_port
        self._lock = asyncio.Lock()

    @property
    def next_port(self) -> int:
        """The port the next allocation will receive."""
        return self._next_port

    def advance_past(self, port: int) -> None:
        """Make sure future allocations are strictly greater than port."""
        if port >= self._next_port:
            logger.info("Advancing port counter", previous=self._next_port, next_port=port + 1)
            self._next_port = port + 1

    @asynccontextmanager
    async def allocate(self) -> AsyncIterator[int]:
        """Reserve the next port for the duration of the block.

        Usage:
            async with allocator.allocate() as port:
                create_and_start(port)   # raising here leaves the counter as is
        """
        async with self._lock:
            port = self._next_port
            if port > MAX_PORT:
                raise ServiceUnavailableError(
                    service="Port allocator", message="Host port range exhausted"
                )
            yield port
            self._next_port = port + 1
