"""Administration of the local AD stores."""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends
from adtrust import schemas
from adtrust.api.deps import get_directory_service
from adtrust.core.logging_config import logger
from adtrust.core.security import verify_admin_key
from adtrust.services.active_directory import ActiveDirectoryService

router = APIRouter(prefix="/ad")


@router.get("/users", response_model=Dict[str, Dict[str, Any]])
def get_users_store(
    service: ActiveDirectoryService = Depends(get_directory_service),
    verified: bool = Depends(verify_admin_key)
):
    """Get the current content of local AD Users store. Requires Admin API Key."""
    return service.dump_stores()["users"]


@router.get("/groups", response_model=List[str])
def get_groups_store(
    service: ActiveDirectoryService = Depends(get_directory_service),
    verified: bool = Depends(verify_admin_key)
):
    """Get the current content of local AD Groups store. Requires Admin API Key."""
    return service.dump_stores()["groups"]


@router.get("/groupsPerUser", response_model=Dict[str, List[str]])
def get_groups_per_user_store(
    service: ActiveDirectoryService = Depends(get_directory_service),
    verified: bool = Depends(verify_admin_key)
):
    """Get the current content of local AD Groups Per User store. Requires Admin API Key."""
    return service.dump_stores()["groups_per_user"]


@router.get("/stores", response_model=schemas.StoresDump)
def get_all_stores(
    service: ActiveDirectoryService = Depends(get_directory_service),
    verified: bool = Depends(verify_admin_key)
):
    """All three stores in one response. Requires Admin API Key."""
    return service.dump_stores()


@router.put("/flushStores", response_model=schemas.FlushResponse)
def flush_stores(
    service: ActiveDirectoryService = Depends(get_directory_service),
    verified: bool = Depends(verify_admin_key)
):
    """Flush the contents of all local AD stores. Requires Admin API Key."""
    service.flush()
    logger.info("AD stores flushed through the admin API")
    return schemas.FlushResponse(status="success", detail="All AD stores flushed")
