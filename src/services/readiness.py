"""Readiness polling for freshly started enclaves."""

import asyncio
from typing import Optional

import httpx
import structlog

from ..config import EnclaveConfig, settings
from ..models.errors import EnclaveNotReadyError

logger = structlog.get_logger(__name__)


class ReadinessWaiter:
    """Blocks until an enclave endpoint answers, or a deadline passes.

    Any HTTP response counts as reachable, whatever its status code. Only
    transport errors (refused, reset, timed out) count as not ready yet.
    """

    def __init__(
        self,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        probe_timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        enclave_config: Optional[EnclaveConfig] = None,
    ):
        config = enclave_config or settings.enclave
        self.poll_interval = (
            poll_interval if poll_interval is not None else config.readiness_poll_interval_ms / 1000
        )
        self.timeout = timeout if timeout is not None else config.readiness_timeout_seconds
        self.probe_timeout = (
            probe_timeout if probe_timeout is not None else config.readiness_probe_timeout_seconds
        )
        self._http_client = http_client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.probe_timeout)
        return self._http_client

    async def probe(self, url: str) -> bool:
        """Issue one reachability probe."""
        client = await self._get_http_client()
        try:
            await client.get(url, timeout=self.probe_timeout)
            return True
        except httpx.TransportError:
            return False

    async def wait(self, url: str, name: str = "") -> None:
        """Poll ``url`` until it answers.

        Raises:
            EnclaveNotReadyError: no probe succeeded within ``timeout``.
        """
        loop = asyncio.get_event_loop()
        started = loop.time()
        deadline = started + self.timeout
        attempts = 0

        while True:
            attempts += 1
            if await self.probe(url):
                logger.debug(
                    "Enclave is reachable",
                    enclave=name,
                    url=url,
                    attempts=attempts,
                    waited_ms=round((loop.time() - started) * 1000, 2),
                )
                return

            if loop.time() >= deadline:
                logger.warning("Enclave did not become reachable", enclave=name, url=url, attempts=attempts)
                raise EnclaveNotReadyError(name, url, self.timeout)

            await asyncio.sleep(self.poll_interval)

    async def close(self) -> None:
        """Close the probe HTTP client."""
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
