"""Per-team chat transcript, readable and writable by team members only."""

import logging
import uuid

from devhub.core.results import ErrorKind, ServiceResult, guard_storage
from devhub.models.records import ChatMessage, MessageType, utcnow
from devhub.services.sync import SyncLayer

logger = logging.getLogger(__name__)


class TeamChat:
    def __init__(self, sync: SyncLayer):
        self.sync = sync

    @guard_storage
    async def list_messages(self, team_id: uuid.UUID, requester_email: str) -> ServiceResult[list[ChatMessage]]:
        snapshot = await self.sync.load()
        team = snapshot.team_by_id(team_id)
        if not team:
            return ServiceResult.failure(ErrorKind.TEAM_NOT_FOUND, "Team not found")
        if not team.has_member(requester_email):
            return ServiceResult.failure(ErrorKind.NOT_A_MEMBER, "Not a team member")

        messages = [msg for msg in snapshot.messages if msg.team_id == team_id]
        messages.sort(key=lambda msg: msg.created_at)
        return ServiceResult.success(messages)

    @guard_storage
    async def post_message(
        self,
        team_id: uuid.UUID,
        sender_email: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        file_name: str | None = None,
    ) -> ServiceResult[ChatMessage]:
        if not content or not content.strip():
            return ServiceResult.failure(ErrorKind.INVALID_INPUT, "Missing text")

        async with self.sync.transaction() as snapshot:
            team = snapshot.team_by_id(team_id)
            if not team:
                return ServiceResult.failure(ErrorKind.TEAM_NOT_FOUND, "Team not found")
            if not team.has_member(sender_email):
                return ServiceResult.failure(ErrorKind.NOT_A_MEMBER, "Not a team member")
            sender = snapshot.active_user(sender_email)
            if not sender:
                return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User not found")

            message = ChatMessage(
                team_id=team_id,
                sender_email=sender.email,
                sender_name=sender.name,
                sender_avatar=sender.avatar_initial,
                content=content,
                type=message_type,
                file_name=file_name,
                created_at=utcnow(),
            )
            snapshot.messages.append(message)

        logger.debug(f"Message {message.id} posted to team {team_id}", extra={"team_id": str(team_id)})
        return ServiceResult.success(message)
