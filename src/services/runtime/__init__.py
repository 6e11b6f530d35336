"""Container runtime access.

This package wraps the Docker Engine API:
- client.py: Docker client factory and initialization
- gateway.py: Container and volume primitives
"""

from .client import DockerClientFactory
from .gateway import RuntimeGateway

__all__ = ["DockerClientFactory", "RuntimeGateway"]
