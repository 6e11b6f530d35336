"""Utility modules for the Enclave Deployer API."""

from .logging import setup_logging

__all__ = [
    "setup_logging",
]
