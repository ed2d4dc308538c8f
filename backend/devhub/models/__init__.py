from devhub.models.records import (
    ChatMessage,
    InvitationRecord,
    InvitationStatus,
    MessageType,
    Snapshot,
    TeamRecord,
    UserRecord,
)
from devhub.models.snapshot import SnapshotBlob

__all__ = [
    "SnapshotBlob",
    "Snapshot",
    "UserRecord",
    "TeamRecord",
    "InvitationRecord",
    "InvitationStatus",
    "ChatMessage",
    "MessageType",
]
