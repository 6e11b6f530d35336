"""Models for the /enclaves endpoints."""

# Standard library imports
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

# Third-party imports
from pydantic import BaseModel, Field

# Docker container names: first char alphanumeric, then [a-zA-Z0-9_.-]
ENCLAVE_NAME_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$"


class EnclaveCreateRequest(BaseModel):
    """Request model for POST /enclaves."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=128,
        pattern=ENCLAVE_NAME_PATTERN,
        description="Unique enclave name, used for both the container and its volume",
    )


class EnclaveCreateResponse(BaseModel):
    """Response model for POST /enclaves."""

    url: str = Field(..., description="Externally reachable endpoint of the enclave")


class EnclaveResponse(BaseModel):
    """A single managed enclave as observed on the runtime."""

    name: str
    container_id: str
    status: str
    host_port: Optional[int] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None


class EnclaveListResponse(BaseModel):
    """Response model for GET /enclaves."""

    enclaves: List[EnclaveResponse] = Field(default_factory=list)
    total: int = 0


class VolumePruneResponse(BaseModel):
    """Response model for the orphaned-volume reconciliation pass."""

    removed: List[str] = Field(default_factory=list)


@dataclass
class EnclaveInfo:
    """An enclave derived from its backing container.

    Enclaves are not stored anywhere; this is rebuilt from a container
    listing each time it is needed.
    """

    name: str
    container_id: str
    status: str
    host_port: Optional[int] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None
    labels: dict = field(default_factory=dict)

    def to_response(self) -> EnclaveResponse:
        return EnclaveResponse(
            name=self.name,
            container_id=self.container_id,
            status=self.status,
            host_port=self.host_port,
            url=self.url,
            created_at=self.created_at,
        )
