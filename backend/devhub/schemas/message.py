import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from devhub.models.records import MessageType


class MessageCreateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=10000)
    type: Literal["text", "file"] = "text"
    file_name: str | None = None


class MessageResponse(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    sender_email: str
    sender_name: str
    sender_avatar: str
    content: str
    type: MessageType
    file_name: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
