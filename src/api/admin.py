"""Administrative endpoints."""

import structlog
from fastapi import APIRouter

from ..dependencies.services import LifecycleManagerDep
from ..models import VolumePruneResponse

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/admin/volumes/prune", response_model=VolumePruneResponse)
async def prune_orphaned_volumes(lifecycle_manager: LifecycleManagerDep):
    """Remove enclave volumes that no longer have a container.

    Volume data is lost. Volumes survive a failed deploy so that a retry can
    reuse them; run this only when those enclaves will not be recreated.
    """
    removed = await lifecycle_manager.prune_orphaned_volumes()
    logger.info("Orphaned volumes pruned", count=len(removed), volumes=removed)
    return VolumePruneResponse(removed=removed)
