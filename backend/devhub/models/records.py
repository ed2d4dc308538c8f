"""Record types held in the durable snapshot.

Each collection is persisted as a JSON array of these models. Field values
are plain JSON after ``model_dump(mode="json")`` so a snapshot can be
reloaded and re-committed without changing its serialized form.
"""

import enum
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from devhub.config import DEFAULT_USER_ROLE


def utcnow() -> datetime:
    return datetime.now(UTC)


def avatar_initial_for(name: str) -> str:
    return name[:1].upper()


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class MessageType(str, enum.Enum):
    TEXT = "text"
    FILE = "file"
    SYSTEM = "system"


class UserRecord(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    email: str
    name: str
    avatar_initial: str = ""
    role: str = DEFAULT_USER_ROLE
    bio: str = ""
    skills: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_online: bool = True
    last_seen_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    password_hash: str = ""

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on name, email, role or any skill."""
        term = term.lower()
        return (
            term in self.name.lower()
            or term in self.email.lower()
            or term in self.role.lower()
            or any(term in skill.lower() for skill in self.skills)
        )


class TeamRecord(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    description: str = ""
    owner_email: str
    members: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    is_active: bool = True

    def has_member(self, email: str) -> bool:
        return email in self.members


class InvitationRecord(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    team_id: uuid.UUID
    team_name: str  # copied at send time, not re-synced on rename
    inviter_email: str
    inviter_name: str  # copied at send time
    invitee_email: str
    invitee_id: uuid.UUID | None = None
    status: InvitationStatus = InvitationStatus.PENDING
    message: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    responded_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING


class ChatMessage(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    team_id: uuid.UUID
    sender_email: str
    sender_name: str
    sender_avatar: str = ""
    content: str
    type: MessageType = MessageType.TEXT
    file_name: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Snapshot(BaseModel):
    """The full unit of synchronization: every collection at once."""

    users: list[UserRecord] = Field(default_factory=list)
    teams: list[TeamRecord] = Field(default_factory=list)
    invitations: list[InvitationRecord] = Field(default_factory=list)
    messages: list[ChatMessage] = Field(default_factory=list)

    def user_by_email(self, email: str) -> UserRecord | None:
        return next((u for u in self.users if u.email == email), None)

    def user_by_id(self, user_id: uuid.UUID) -> UserRecord | None:
        return next((u for u in self.users if u.id == user_id), None)

    def active_user(self, email: str) -> UserRecord | None:
        user = self.user_by_email(email)
        return user if user and user.is_active else None

    def team_by_id(self, team_id: uuid.UUID) -> TeamRecord | None:
        return next((t for t in self.teams if t.id == team_id), None)

    def team_by_name(self, name: str) -> TeamRecord | None:
        return next((t for t in self.teams if t.name == name), None)

    def invitation_by_id(self, invitation_id: uuid.UUID) -> InvitationRecord | None:
        return next((i for i in self.invitations if i.id == invitation_id), None)
