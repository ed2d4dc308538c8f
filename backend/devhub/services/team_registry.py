"""Team registry: naming, membership and owner-gated changes.

Ownership is keyed by the owner's email, and the owner stays in ``members``
for the whole life of the team.
"""

import logging
import uuid

from devhub.core.results import ErrorKind, ServiceResult, guard_storage
from devhub.models.records import Snapshot, TeamRecord, utcnow
from devhub.services.sync import SyncLayer

logger = logging.getLogger(__name__)


class TeamRegistry:
    def __init__(self, sync: SyncLayer):
        self.sync = sync

    @guard_storage
    async def create(self, name: str, description: str, owner_email: str) -> ServiceResult[TeamRecord]:
        async with self.sync.transaction() as snapshot:
            # Inactive teams still hold their name.
            if snapshot.team_by_name(name):
                return ServiceResult.failure(ErrorKind.NAME_TAKEN, "Team name already exists")
            if not snapshot.active_user(owner_email):
                return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User not found")

            team = TeamRecord(
                name=name,
                description=description,
                owner_email=owner_email,
                members=[owner_email],
                created_at=utcnow(),
                is_active=True,
            )
            snapshot.teams.append(team)

        logger.info(f"Team {team.id} created", extra={"team_id": str(team.id)})
        return ServiceResult.success(team, "Team created successfully")

    async def find_by_id(self, team_id: uuid.UUID) -> TeamRecord | None:
        snapshot = await self.sync.load()
        return snapshot.team_by_id(team_id)

    async def list_for_user(self, email: str) -> list[TeamRecord]:
        snapshot = await self.sync.load()
        return [team for team in snapshot.teams if team.has_member(email)]

    async def list_all(self) -> list[TeamRecord]:
        snapshot = await self.sync.load()
        return snapshot.teams

    def add_member_to(self, snapshot: Snapshot, team_id: uuid.UUID, email: str) -> ServiceResult[TeamRecord]:
        """Add ``email`` to the team inside an already open transaction. Idempotent."""
        team = snapshot.team_by_id(team_id)
        if not team:
            return ServiceResult.failure(ErrorKind.TEAM_NOT_FOUND, "Team not found")
        if team.has_member(email):
            return ServiceResult.success(team)
        if not snapshot.active_user(email):
            return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User not found")

        team.members.append(email)
        logger.info(f"Member added to team {team.id}", extra={"team_id": str(team.id)})
        return ServiceResult.success(team, "Member added successfully")

    @guard_storage
    async def add_member(self, team_id: uuid.UUID, email: str) -> ServiceResult[TeamRecord]:
        async with self.sync.transaction() as snapshot:
            return self.add_member_to(snapshot, team_id, email)

    @guard_storage
    async def remove_member(
        self, team_id: uuid.UUID, target_email: str, requester_email: str
    ) -> ServiceResult[TeamRecord]:
        async with self.sync.transaction() as snapshot:
            team = snapshot.team_by_id(team_id)
            if not team:
                return ServiceResult.failure(ErrorKind.TEAM_NOT_FOUND, "Team not found")
            if team.owner_email != requester_email:
                return ServiceResult.failure(ErrorKind.NOT_OWNER, "Only team owner can remove members")
            if team.owner_email == target_email:
                return ServiceResult.failure(ErrorKind.CANNOT_REMOVE_OWNER, "Cannot remove team owner")

            team.members = [member for member in team.members if member != target_email]

        logger.info(f"Member removed from team {team.id}", extra={"team_id": str(team.id)})
        return ServiceResult.success(team, "Member removed successfully")

    @guard_storage
    async def delete(self, team_id: uuid.UUID, requester_email: str) -> ServiceResult[None]:
        """Delete a team along with its invitations and chat history."""
        async with self.sync.transaction() as snapshot:
            team = snapshot.team_by_id(team_id)
            if not team:
                return ServiceResult.failure(ErrorKind.TEAM_NOT_FOUND, "Team not found")
            if team.owner_email != requester_email:
                return ServiceResult.failure(ErrorKind.NOT_OWNER, "Only team owner can delete team")

            snapshot.teams = [t for t in snapshot.teams if t.id != team_id]
            snapshot.invitations = [inv for inv in snapshot.invitations if inv.team_id != team_id]
            snapshot.messages = [msg for msg in snapshot.messages if msg.team_id != team_id]

        logger.info(f"Team {team_id} deleted", extra={"team_id": str(team_id)})
        return ServiceResult.success(message="Team deleted successfully")
