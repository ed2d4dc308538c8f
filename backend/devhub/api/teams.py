import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from devhub.core.dependencies import get_current_user, get_services
from devhub.core.errors import raise_for_result
from devhub.models.records import UserRecord
from devhub.schemas.team import TeamCreateRequest, TeamResponse
from devhub.services.container import DevHubServices

router = APIRouter(prefix="/teams", tags=["teams"])


@router.post("", response_model=TeamResponse, status_code=201, summary="Create team")
async def create_team(
    request: TeamCreateRequest,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """Create a team owned by the current user."""
    return raise_for_result(
        await services.teams.create(request.name.strip(), request.description, current_user.email)
    )


@router.get("/me", response_model=list[TeamResponse], summary="List my teams")
async def list_my_teams(
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    return await services.teams.list_for_user(current_user.email)


@router.get("/{team_id}", response_model=TeamResponse, summary="Get team")
async def get_team(
    team_id: uuid.UUID,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """Team details, visible to its members only."""
    team = await services.teams.find_by_id(team_id)
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    if not team.has_member(current_user.email):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a team member")
    return team


@router.delete("/{team_id}", status_code=204, summary="Delete team")
async def delete_team(
    team_id: uuid.UUID,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """Delete a team, its invitations and its chat. Owner only."""
    raise_for_result(await services.teams.delete(team_id, current_user.email))


@router.delete("/{team_id}/members/{email}", response_model=TeamResponse, summary="Remove team member")
async def remove_member(
    team_id: uuid.UUID,
    email: str,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    return raise_for_result(await services.teams.remove_member(team_id, email, current_user.email))
