"""Services module for the Enclave Deployer API."""

from .lifecycle import EnclaveLifecycleManager
from .orchestrator import EnclaveOrchestrator
from .ports import PortAllocator
from .readiness import ReadinessWaiter
from .runtime import DockerClientFactory, RuntimeGateway

__all__ = [
    "EnclaveLifecycleManager",
    "EnclaveOrchestrator",
    "PortAllocator",
    "ReadinessWaiter",
    "DockerClientFactory",
    "RuntimeGateway",
]
