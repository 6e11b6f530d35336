"""API endpoints for the Enclave Deployer API."""

from . import enclaves, health, admin

__all__ = ["enclaves", "health", "admin"]
