"""Identity and group membership endpoints."""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from adtrust import schemas
from adtrust.api.deps import get_current_user, get_directory_service
from adtrust.services.active_directory import ActiveDirectoryService

router = APIRouter()


@router.get("/config/availableadgroups", response_model=List[str])
async def available_ad_groups(service: ActiveDirectoryService = Depends(get_directory_service)):
    """All AD groups, to make it easier for admins to set map and layer permissions."""
    return await service.get_available_groups()


@router.get("/config/findcommongroupsforusers", response_model=List[str])
async def find_common_groups_for_users(
    users: str = Query("", description="Comma separated list of user names"),
    service: ActiveDirectoryService = Depends(get_directory_service)
):
    """Find out which AD group membership is shared between specified users."""
    user_list = [u.strip() for u in users.split(",") if u.strip()]
    return await service.find_common_groups_for_users(user_list)


@router.get("/ad/whoami", response_model=schemas.WhoAmIResponse)
async def who_am_i(
    user: Optional[str] = Depends(get_current_user),
    service: ActiveDirectoryService = Depends(get_directory_service)
):
    """The user name the proxy asserted for this request, and its groups."""
    if user is None:
        return schemas.WhoAmIResponse()
    return schemas.WhoAmIResponse(
        user=user,
        is_valid=await service.is_user_valid(user),
        groups=await service.get_group_membership_for_user(user),
    )
