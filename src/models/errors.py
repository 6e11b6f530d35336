"""Error models and exception classes for the Enclave Deployer API."""

import time
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class ErrorType(str, Enum):
    """Error type enumeration."""

    VALIDATION = "validation"
    RESOURCE_EXISTS = "resource_exists"
    RESOURCE_NOT_FOUND = "resource_not_found"
    RUNTIME_ERROR = "runtime_error"
    NOT_READY = "not_ready"
    INTERNAL_SERVER = "internal_server"
    SERVICE_UNAVAILABLE = "service_unavailable"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Field name for validation errors")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    model_config = ConfigDict(use_enum_values=True)

    error: str = Field(..., description="Main error message")
    error_type: ErrorType = Field(..., description="Error category")
    details: Optional[List[ErrorDetail]] = Field(
        None, description="Additional error details"
    )
    request_id: Optional[str] = Field(
        None, description="Request identifier for tracking"
    )
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")


# Custom Exception Classes


class EnclaveDeployerException(Exception):
    """Base exception for the Enclave Deployer API."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL_SERVER,
        status_code: int = 500,
        details: Optional[List[ErrorDetail]] = None,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or []
        self.request_id = request_id
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.message,
            error_type=self.error_type,
            details=self.details if self.details else None,
            request_id=self.request_id,
        )


class EnclaveAlreadyExistsError(EnclaveDeployerException):
    """A live container already carries the requested enclave name."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(
            message="A container with this name does already exist",
            error_type=ErrorType.RESOURCE_EXISTS,
            status_code=400,
            **kwargs,
        )


class EnclaveNotFoundError(EnclaveDeployerException):
    """No container carries the requested enclave name."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(
            message="A container with this name does not exist",
            error_type=ErrorType.RESOURCE_NOT_FOUND,
            status_code=404,
            **kwargs,
        )


class RuntimeOperationError(EnclaveDeployerException):
    """The container runtime could not complete an operation.

    The original exception is kept on ``cause`` for diagnostics. The public
    message only names the failed operation.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None, **kwargs):
        self.operation = operation
        self.cause = cause
        super().__init__(
            message=f"Container runtime failed to {operation}",
            error_type=ErrorType.RUNTIME_ERROR,
            status_code=502,
            **kwargs,
        )

    @property
    def is_not_found(self) -> bool:
        """True when the runtime reported the target resource as missing."""
        from docker.errors import NotFound

        return isinstance(self.cause, NotFound)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class EnclaveNotReadyError(EnclaveDeployerException):
    """An enclave was started but never became reachable."""

    def __init__(self, name: str, url: str, timeout: float, **kwargs):
        self.name = name
        self.url = url
        self.timeout = timeout
        super().__init__(
            message=f"Enclave did not become reachable within {timeout:g} seconds",
            error_type=ErrorType.NOT_READY,
            status_code=504,
            **kwargs,
        )


class ServiceUnavailableError(EnclaveDeployerException):
    """Service unavailable errors."""

    def __init__(self, service: str, message: str = None, **kwargs):
        error_message = message or f"{service} service is currently unavailable"
        super().__init__(
            message=error_message,
            error_type=ErrorType.SERVICE_UNAVAILABLE,
            status_code=503,
            **kwargs,
        )
