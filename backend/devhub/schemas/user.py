import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from devhub.config import PASSWORD_MIN_LENGTH


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    avatar_initial: str
    role: str
    bio: str
    skills: list[str]
    is_active: bool
    is_online: bool
    last_seen_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class UserSearchResult(BaseModel):
    """Minimal public view returned by invitation search."""

    id: uuid.UUID
    name: str
    email: str
    avatar_initial: str
    role: str
    skills: list[str]

    model_config = {"from_attributes": True}


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    bio: str | None = None
    skills: list[str] | None = None
    role: str | None = Field(None, max_length=100)


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class UserStatsResponse(BaseModel):
    total_users: int
    active_users: int
    online_users: int
    new_users_today: int

    model_config = {"from_attributes": True}
