from fastapi import APIRouter, Depends, Query

from devhub.core.dependencies import get_current_user, get_services
from devhub.core.errors import raise_for_result
from devhub.models.records import UserRecord
from devhub.schemas.user import (
    PasswordChangeRequest,
    ProfileUpdateRequest,
    UserResponse,
    UserSearchResult,
    UserStatsResponse,
)
from devhub.services.container import DevHubServices

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserSearchResult], summary="Search users to invite")
async def search_users(
    q: str = Query("", max_length=255),
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """Active users whose name, email, role or a skill contains ``q``, excluding the caller."""
    return await services.users.search_for_invitation(q.strip(), exclude_email=current_user.email)


@router.put("/me", response_model=UserResponse, summary="Update own profile")
async def update_me(
    request: ProfileUpdateRequest,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    updates = request.model_dump(exclude_none=True)
    return raise_for_result(await services.users.update_profile(current_user.email, updates))


@router.post("/me/password", status_code=204, summary="Change own password")
async def change_password(
    request: PasswordChangeRequest,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    raise_for_result(
        await services.users.change_password(
            current_user.email, request.current_password, request.new_password
        )
    )


@router.get("/stats", response_model=UserStatsResponse, summary="User directory statistics")
async def user_stats(
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    return await services.users.stats()
