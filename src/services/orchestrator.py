"""Enclave Orchestrator - Coordinates the create and remove workflows.

The orchestrator sits between the API endpoints and the lifecycle manager.
It runs resource allocation under the lifecycle locks and the readiness wait
outside of them, and applies the configured policy for enclaves that never
become reachable.

Usage:
    orchestrator = EnclaveOrchestrator(
        lifecycle_manager=lifecycle_manager,
        readiness_waiter=readiness_waiter,
    )
    url = await orchestrator.create("tenant-a")
"""

import asyncio
from functools import partial
from typing import Any, Awaitable, Optional

import structlog

from ..config import settings
from ..models.errors import EnclaveDeployerException, EnclaveNotReadyError
from .lifecycle import EnclaveLifecycleManager
from .readiness import ReadinessWaiter

logger = structlog.get_logger(__name__)

POLICY_KEEP = "keep"
POLICY_TEARDOWN = "teardown"


async def _shielded(operation: Awaitable[Any], action: str, name: str) -> Any:
    """Await an operation that must run to completion even if the caller is cancelled.

    When the caller goes away first, the outcome of the detached operation is
    logged once it finishes.
    """
    task = asyncio.ensure_future(operation)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(partial(_log_detached, action, name))
        raise


def _log_detached(action: str, name: str, task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        logger.warning("Detached operation was cancelled", action=action, enclave=name)
        return
    error = task.exception()
    if error is not None:
        logger.error(
            "Detached operation failed",
            action=action,
            enclave=name,
            error=str(error),
            error_type=type(error).__name__,
        )
        return
    logger.info("Detached operation completed", action=action, enclave=name)


class EnclaveOrchestrator:
    """Orchestrates enclave creation and removal."""

    def __init__(
        self,
        lifecycle_manager: EnclaveLifecycleManager,
        readiness_waiter: ReadinessWaiter,
        failure_policy: Optional[str] = None,
    ):
        self.lifecycle_manager = lifecycle_manager
        self.readiness_waiter = readiness_waiter
        self.failure_policy = failure_policy or settings.enclave.readiness_failure_policy

    async def create(self, name: str) -> str:
        """Deploy an enclave and wait until its endpoint answers.

        Deploy itself is shielded from cancellation of the calling task, so
        a client disconnect never leaves a half-created enclave behind. The
        readiness wait is not shielded.
        """
        url = await _shielded(self.lifecycle_manager.deploy(name), "deploy", name)

        try:
            await self.readiness_waiter.wait(url, name=name)
        except EnclaveNotReadyError:
            if self.failure_policy == POLICY_TEARDOWN:
                await self._teardown_unready(name)
            raise

        logger.debug("Container deployed successfully", enclave=name, url=url)
        return url

    async def _teardown_unready(self, name: str) -> None:
        logger.warning("Tearing down enclave that never became reachable", enclave=name)
        try:
            await _shielded(self.lifecycle_manager.destroy(name), "destroy", name)
        except EnclaveDeployerException as e:
            logger.error("Failed to tear down unready enclave", enclave=name, error=str(e))

    async def remove(self, name: str) -> None:
        """Destroy an enclave, shielded from cancellation of the caller."""
        await _shielded(self.lifecycle_manager.destroy(name), "destroy", name)
        logger.debug("Container removed successfully", enclave=name)
