import logging

from fastapi import APIRouter, Depends

from devhub.core.dependencies import get_services, require_admin
from devhub.core.errors import raise_for_result
from devhub.models.records import UserRecord
from devhub.schemas.invite import InvitationResponse
from devhub.schemas.team import TeamResponse
from devhub.schemas.user import UserResponse
from devhub.services.container import DevHubServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserResponse], summary="All users")
async def list_users(
    admin: UserRecord = Depends(require_admin),
    services: DevHubServices = Depends(get_services),
):
    return await services.users.list_all()


@router.post("/users/{email}/deactivate", response_model=UserResponse, summary="Deactivate a user")
async def deactivate_user(
    email: str,
    admin: UserRecord = Depends(require_admin),
    services: DevHubServices = Depends(get_services),
):
    """Soft-delete an account: it can no longer log in, be searched or be invited."""
    user = raise_for_result(await services.users.deactivate(email))
    logger.info(
        f"Admin {admin.id} deactivated user {user.id}",
        extra={"user_id": str(admin.id)},
    )
    return user


@router.get("/invitations", response_model=list[InvitationResponse], summary="All invitations")
async def list_invitations(
    admin: UserRecord = Depends(require_admin),
    services: DevHubServices = Depends(get_services),
):
    return await services.invitations.list_all()


@router.get("/teams", response_model=list[TeamResponse], summary="All teams")
async def list_teams(
    admin: UserRecord = Depends(require_admin),
    services: DevHubServices = Depends(get_services),
):
    return await services.teams.list_all()
