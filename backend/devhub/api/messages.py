import uuid

from fastapi import APIRouter, Depends

from devhub.core.dependencies import get_current_user, get_services
from devhub.core.errors import raise_for_result
from devhub.models.records import MessageType, UserRecord
from devhub.schemas.message import MessageCreateRequest, MessageResponse
from devhub.services.container import DevHubServices

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{team_id}", response_model=list[MessageResponse], summary="Team chat history")
async def list_messages(
    team_id: uuid.UUID,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    return raise_for_result(await services.chat.list_messages(team_id, current_user.email))


@router.post("/{team_id}", response_model=MessageResponse, status_code=201, summary="Post a chat message")
async def post_message(
    team_id: uuid.UUID,
    request: MessageCreateRequest,
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    return raise_for_result(
        await services.chat.post_message(
            team_id,
            current_user.email,
            request.text,
            message_type=MessageType(request.type),
            file_name=request.file_name,
        )
    )
