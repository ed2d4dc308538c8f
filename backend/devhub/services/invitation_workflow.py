"""Invitation workflow: the pending -> accepted | declined state machine.

Invariants kept here:
- at most one pending invitation per (team, invitee email);
- a responded invitation never changes again, a new invite is a new record;
- accepting adds the invitee to the team in the same snapshot commit.

Both inviter and invitee must be known: the inviter has to be a member of
the team and the invitee an active registered user.
"""

import logging
import uuid

from devhub.core.results import ErrorKind, ServiceResult, guard_storage
from devhub.models.records import InvitationRecord, InvitationStatus, utcnow
from devhub.services.sync import SyncLayer
from devhub.services.team_registry import TeamRegistry

logger = logging.getLogger(__name__)

RESPONSE_STATUSES = (InvitationStatus.ACCEPTED, InvitationStatus.DECLINED)


class InvitationWorkflow:
    def __init__(self, sync: SyncLayer, teams: TeamRegistry):
        self.sync = sync
        self.teams = teams

    @guard_storage
    async def send(
        self,
        team_id: uuid.UUID,
        inviter_email: str,
        inviter_name: str,
        invitee_email: str,
        message: str = "",
    ) -> ServiceResult[InvitationRecord]:
        async with self.sync.transaction() as snapshot:
            team = snapshot.team_by_id(team_id)
            if not team:
                return ServiceResult.failure(ErrorKind.TEAM_NOT_FOUND, "Team not found")
            if not team.has_member(inviter_email):
                return ServiceResult.failure(ErrorKind.NOT_A_MEMBER, "Not a team member")

            invitee = snapshot.active_user(invitee_email)
            if not invitee:
                return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User not found")
            if team.has_member(invitee_email):
                return ServiceResult.failure(
                    ErrorKind.ALREADY_MEMBER, "User is already a member of this team"
                )

            duplicate = any(
                inv.team_id == team_id and inv.invitee_email == invitee_email and inv.is_pending
                for inv in snapshot.invitations
            )
            if duplicate:
                return ServiceResult.failure(
                    ErrorKind.DUPLICATE_PENDING, "Invitation already sent to this user"
                )

            invitation = InvitationRecord(
                team_id=team.id,
                team_name=team.name,
                inviter_email=inviter_email,
                inviter_name=inviter_name,
                invitee_email=invitee_email,
                invitee_id=invitee.id,
                status=InvitationStatus.PENDING,
                message=message or "",
                created_at=utcnow(),
            )
            snapshot.invitations.append(invitation)

        logger.info(
            f"Invitation {invitation.id} sent for team {team_id}",
            extra={"invitation_id": str(invitation.id), "team_id": str(team_id)},
        )
        return ServiceResult.success(invitation, "Invitation sent successfully")

    @guard_storage
    async def respond(
        self, invitation_id: uuid.UUID, responding_email: str, decision: InvitationStatus | str
    ) -> ServiceResult[InvitationRecord]:
        """Accept or decline. ``decision`` may be the enum member or its string value."""
        try:
            decision = InvitationStatus(decision)
        except ValueError:
            decision = None
        if decision not in RESPONSE_STATUSES:
            return ServiceResult.failure(
                ErrorKind.INVALID_INPUT, "Response must be 'accepted' or 'declined'"
            )

        async with self.sync.transaction() as snapshot:
            invitation = snapshot.invitation_by_id(invitation_id)
            if not invitation:
                return ServiceResult.failure(ErrorKind.INVITATION_NOT_FOUND, "Invitation not found")
            if invitation.invitee_email != responding_email:
                return ServiceResult.failure(
                    ErrorKind.NOT_RECIPIENT,
                    "You are not authorized to respond to this invitation",
                )
            if not invitation.is_pending:
                return ServiceResult.failure(
                    ErrorKind.ALREADY_RESOLVED, "Invitation has already been responded to"
                )

            invitation.status = decision
            invitation.responded_at = utcnow()

            if decision == InvitationStatus.ACCEPTED:
                added = self.teams.add_member_to(snapshot, invitation.team_id, responding_email)
                if not added.ok:
                    # The response still stands; the team may have gone away meanwhile.
                    logger.warning(
                        f"Accepted invitation {invitation.id} could not add member: {added.message}",
                        extra={"invitation_id": str(invitation.id)},
                    )

        logger.info(
            f"Invitation {invitation.id} {decision.value}",
            extra={"invitation_id": str(invitation.id), "team_id": str(invitation.team_id)},
        )
        return ServiceResult.success(invitation, f"Invitation {decision.value} successfully")

    async def list_for_invitee(self, email: str) -> list[InvitationRecord]:
        snapshot = await self.sync.load()
        return [inv for inv in snapshot.invitations if inv.invitee_email == email]

    async def list_sent_by(self, email: str) -> list[InvitationRecord]:
        snapshot = await self.sync.load()
        return [inv for inv in snapshot.invitations if inv.inviter_email == email]

    async def list_all(self) -> list[InvitationRecord]:
        snapshot = await self.sync.load()
        return snapshot.invitations
