"""Dependencies package for the Enclave Deployer API."""

from .services import (
    get_runtime_gateway,
    get_lifecycle_manager,
    get_readiness_waiter,
    get_orchestrator,
    LifecycleManagerDep,
    OrchestratorDep,
)

__all__ = [
    "get_runtime_gateway",
    "get_lifecycle_manager",
    "get_readiness_waiter",
    "get_orchestrator",
    "LifecycleManagerDep",
    "OrchestratorDep",
]
