"""Version information for the Enclave Deployer API."""

__version__ = "1.0.0"
