"""Enclave provisioning endpoints.

These are thin endpoints that delegate to EnclaveOrchestrator and the
lifecycle manager. Domain errors propagate to the global exception handlers,
which map them to status codes.
"""

import structlog
from fastapi import APIRouter, Path, Response, status

from ..dependencies.services import LifecycleManagerDep, OrchestratorDep
from ..models import (
    EnclaveCreateRequest,
    EnclaveCreateResponse,
    EnclaveListResponse,
    EnclaveResponse,
)
from ..utils.id_generator import generate_request_id

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/enclaves",
    response_model=EnclaveCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_enclave(request: EnclaveCreateRequest, orchestrator: OrchestratorDep):
    """Deploy an enclave and return its endpoint once it answers.

    Returns 400 if an enclave with that name already exists, 502 if the
    container runtime fails and 504 if the enclave never becomes reachable.
    """
    request_id = generate_request_id()[:8]
    logger.info("Enclave deploy request", request_id=request_id, enclave=request.name)

    url = await orchestrator.create(request.name)

    logger.info("Enclave deploy completed", request_id=request_id, enclave=request.name, url=url)
    return EnclaveCreateResponse(url=url)


@router.delete("/enclaves/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enclave(
    orchestrator: OrchestratorDep,
    name: str = Path(..., description="Enclave name"),
):
    """Stop and remove an enclave together with its volume.

    Returns 404 if no enclave with that name exists.
    """
    request_id = generate_request_id()[:8]
    logger.info("Enclave remove request", request_id=request_id, enclave=name)

    await orchestrator.remove(name)

    logger.info("Enclave remove completed", request_id=request_id, enclave=name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/enclaves", response_model=EnclaveListResponse)
async def list_enclaves(lifecycle_manager: LifecycleManagerDep):
    """List enclaves managed by this service."""
    enclaves = await lifecycle_manager.list_enclaves()
    return EnclaveListResponse(
        enclaves=[e.to_response() for e in enclaves],
        total=len(enclaves),
    )


@router.get("/enclaves/{name}", response_model=EnclaveResponse)
async def get_enclave(
    lifecycle_manager: LifecycleManagerDep,
    name: str = Path(..., description="Enclave name"),
):
    """Get one enclave by name."""
    enclave = await lifecycle_manager.get_enclave(name)
    return enclave.to_response()
