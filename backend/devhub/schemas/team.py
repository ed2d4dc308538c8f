import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class TeamCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""


class TeamResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    owner_email: str
    members: list[str]
    created_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}
