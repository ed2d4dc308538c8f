import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from devhub.models.records import InvitationStatus


class InvitationCreateRequest(BaseModel):
    team_id: uuid.UUID
    invitee_email: EmailStr
    message: str = Field("", max_length=1000)


class InvitationRespondRequest(BaseModel):
    action: Literal["accepted", "declined"]


class InvitationResponse(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    team_name: str
    inviter_email: str
    inviter_name: str
    invitee_email: str
    status: InvitationStatus
    message: str
    created_at: datetime
    responded_at: datetime | None = None

    model_config = {"from_attributes": True}
