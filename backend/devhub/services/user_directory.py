"""User directory: registered accounts, login state and invitation search.

Emails are matched exactly (case-sensitive). Accounts are never hard
deleted; deactivated users drop out of search and invitation targeting.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from devhub.config import SEARCH_MIN_QUERY_LENGTH, SEARCH_RESULT_LIMIT
from devhub.core.results import ErrorKind, ServiceResult, guard_storage
from devhub.core.security import hash_password, verify_password
from devhub.models.records import UserRecord, avatar_initial_for, utcnow
from devhub.services.sync import SyncLayer

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "bio", "skills", "role", "is_active")


@dataclass
class UserStats:
    total_users: int
    active_users: int
    online_users: int
    new_users_today: int


class UserDirectory:
    def __init__(self, sync: SyncLayer):
        self.sync = sync

    @guard_storage
    async def register(self, name: str, email: str, password: str) -> ServiceResult[UserRecord]:
        password_hash = hash_password(password)
        async with self.sync.transaction() as snapshot:
            if snapshot.user_by_email(email):
                return ServiceResult.failure(
                    ErrorKind.DUPLICATE_EMAIL, "User with this email already exists"
                )

            now = utcnow()
            user = UserRecord(
                email=email,
                name=name,
                avatar_initial=avatar_initial_for(name),
                is_active=True,
                is_online=True,
                last_seen_at=now,
                created_at=now,
                password_hash=password_hash,
            )
            snapshot.users.append(user)

        logger.info(f"Registered user {user.id}", extra={"user_id": str(user.id)})
        return ServiceResult.success(user, "User registered successfully")

    @guard_storage
    async def authenticate(self, email: str, password: str) -> ServiceResult[UserRecord]:
        """Check credentials and mark the account online."""
        async with self.sync.transaction() as snapshot:
            user = snapshot.active_user(email)
            if not user or not verify_password(password, user.password_hash):
                return ServiceResult.failure(ErrorKind.INVALID_CREDENTIALS, "Invalid email or password")
            user.is_online = True
            user.last_seen_at = utcnow()

        return ServiceResult.success(user, "Login successful")

    async def find_by_email(self, email: str) -> UserRecord | None:
        snapshot = await self.sync.load()
        return snapshot.user_by_email(email)

    async def find_by_id(self, user_id: uuid.UUID) -> UserRecord | None:
        snapshot = await self.sync.load()
        return snapshot.user_by_id(user_id)

    async def list_all(self) -> list[UserRecord]:
        snapshot = await self.sync.load()
        return snapshot.users

    async def search_for_invitation(self, query: str, exclude_email: str) -> list[UserRecord]:
        """Active users matching ``query``, in directory order, capped for privacy."""
        if not query or len(query) < SEARCH_MIN_QUERY_LENGTH:
            return []

        snapshot = await self.sync.load()
        results = []
        for user in snapshot.users:
            if not user.is_active or user.email == exclude_email:
                continue
            if user.matches(query):
                results.append(user)
                if len(results) >= SEARCH_RESULT_LIMIT:
                    break
        return results

    @guard_storage
    async def set_online_status(self, email: str, is_online: bool) -> ServiceResult[None]:
        async with self.sync.transaction() as snapshot:
            user = snapshot.user_by_email(email)
            if user:
                user.is_online = is_online
                user.last_seen_at = utcnow()
        return ServiceResult.success()

    @guard_storage
    async def update_profile(self, email: str, updates: dict) -> ServiceResult[UserRecord]:
        """Shallow-merge editable profile fields; anything else in ``updates`` is ignored."""
        async with self.sync.transaction() as snapshot:
            user = snapshot.user_by_email(email)
            if not user:
                return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User not found")

            for field in PROFILE_FIELDS:
                if field in updates and updates[field] is not None:
                    setattr(user, field, updates[field])
            user.avatar_initial = avatar_initial_for(user.name)

        return ServiceResult.success(user, "Profile updated successfully")

    @guard_storage
    async def change_password(
        self, email: str, current_password: str, new_password: str
    ) -> ServiceResult[None]:
        async with self.sync.transaction() as snapshot:
            user = snapshot.user_by_email(email)
            if not user:
                return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User not found")
            if not verify_password(current_password, user.password_hash):
                return ServiceResult.failure(
                    ErrorKind.INVALID_CREDENTIALS, "Current password is incorrect"
                )
            user.password_hash = hash_password(new_password)

        return ServiceResult.success(message="Password changed successfully")

    @guard_storage
    async def deactivate(self, email: str) -> ServiceResult[UserRecord]:
        """Admin soft delete. Team memberships are left as they are."""
        async with self.sync.transaction() as snapshot:
            user = snapshot.user_by_email(email)
            if not user:
                return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User not found")
            user.is_active = False
            user.is_online = False

        logger.info(f"Deactivated user {user.id}", extra={"user_id": str(user.id)})
        return ServiceResult.success(user, "User deactivated")

    async def stats(self) -> UserStats:
        snapshot = await self.sync.load()
        today = datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
        return UserStats(
            total_users=len(snapshot.users),
            active_users=sum(1 for u in snapshot.users if u.is_active),
            online_users=sum(1 for u in snapshot.users if u.is_active and u.is_online),
            new_users_today=sum(1 for u in snapshot.users if u.created_at >= today),
        )
