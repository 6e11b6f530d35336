"""Data models for the Enclave Deployer API."""

from .enclave import (
    ENCLAVE_NAME_PATTERN,
    EnclaveCreateRequest,
    EnclaveCreateResponse,
    EnclaveResponse,
    EnclaveListResponse,
    VolumePruneResponse,
    EnclaveInfo,
)
from .errors import (
    ErrorType,
    ErrorDetail,
    ErrorResponse,
    EnclaveDeployerException,
    EnclaveAlreadyExistsError,
    EnclaveNotFoundError,
    RuntimeOperationError,
    EnclaveNotReadyError,
    ServiceUnavailableError,
)

__all__ = [
    # Enclave models
    "ENCLAVE_NAME_PATTERN",
    "EnclaveCreateRequest",
    "EnclaveCreateResponse",
    "EnclaveResponse",
    "EnclaveListResponse",
    "VolumePruneResponse",
    "EnclaveInfo",
    # Error models
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    "EnclaveDeployerException",
    "EnclaveAlreadyExistsError",
    "EnclaveNotFoundError",
    "RuntimeOperationError",
    "EnclaveNotReadyError",
    "ServiceUnavailableError",
]
