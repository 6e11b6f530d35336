"""Service dependency injection for the Enclave Deployer API."""

# Standard library imports
from functools import lru_cache
from typing import Annotated

# Third-party imports
from fastapi import Depends
import structlog

# Local application imports
from ..services.lifecycle import EnclaveLifecycleManager
from ..services.orchestrator import EnclaveOrchestrator
from ..services.readiness import ReadinessWaiter
from ..services.runtime import RuntimeGateway

logger = structlog.get_logger(__name__)


@lru_cache()
def get_runtime_gateway() -> RuntimeGateway:
    """Get the runtime gateway instance."""
    return RuntimeGateway()


@lru_cache()
def get_lifecycle_manager() -> EnclaveLifecycleManager:
    """Get the lifecycle manager.

    There must be exactly one per process: it owns the port counter and the
    per-enclave locks.
    """
    manager = EnclaveLifecycleManager(gateway=get_runtime_gateway())
    logger.info("Lifecycle manager initialized")
    return manager


@lru_cache()
def get_readiness_waiter() -> ReadinessWaiter:
    """Get the readiness waiter instance."""
    return ReadinessWaiter()


def get_orchestrator() -> EnclaveOrchestrator:
    """Get an orchestrator wired to the shared services."""
    return EnclaveOrchestrator(
        lifecycle_manager=get_lifecycle_manager(),
        readiness_waiter=get_readiness_waiter(),
    )


# Type aliases for dependency injection
LifecycleManagerDep = Annotated[EnclaveLifecycleManager, Depends(get_lifecycle_manager)]
OrchestratorDep = Annotated[EnclaveOrchestrator, Depends(get_orchestrator)]
