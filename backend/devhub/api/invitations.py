import uuid

from fastapi import APIRouter, Depends

from devhub.core.dependencies import get_current_user, get_services
from devhub.core.errors import raise_for_result
from devhub.models.records import InvitationStatus, UserRecord
from devhub.schemas.invite import InvitationCreateRequest, InvitationRespondRequest, InvitationResponse
from devhub.services.container import DevHubServices

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post("", response_model=InvitationResponse, status_code=201, summary="Invite a user to a team")
async def send_invitation(
    request: InvitationCreateRequest,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """Send an invitation from the current user, who must be a member of the team."""
    return raise_for_result(
        await services.invitations.send(
            team_id=request.team_id,
            inviter_email=current_user.email,
            inviter_name=current_user.name,
            invitee_email=request.invitee_email,
            message=request.message,
        )
    )


@router.get("/me", response_model=list[InvitationResponse], summary="Invitations received")
async def list_my_invitations(
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """All invitations addressed to the current user, whatever their status."""
    return await services.invitations.list_for_invitee(current_user.email)


@router.get("/sent", response_model=list[InvitationResponse], summary="Invitations sent")
async def list_sent_invitations(
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    return await services.invitations.list_sent_by(current_user.email)


@router.post("/{invitation_id}/respond", response_model=InvitationResponse, summary="Accept or decline")
async def respond_to_invitation(
    invitation_id: uuid.UUID,
    request: InvitationRespondRequest,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    return raise_for_result(
        await services.invitations.respond(
            invitation_id, current_user.email, InvitationStatus(request.action)
        )
    )
