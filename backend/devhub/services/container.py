"""Wiring of the service objects, built once per application process."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devhub.config import Settings
from devhub.services.chat import TeamChat
from devhub.services.events import ChangeStream
from devhub.services.invitation_workflow import InvitationWorkflow
from devhub.services.sync import LocalChangeChannel, RedisChangeChannel, SnapshotStore, SyncLayer
from devhub.services.team_registry import TeamRegistry
from devhub.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class DevHubServices:
    def __init__(self, sync: SyncLayer):
        self.sync = sync
        self.users = UserDirectory(sync)
        self.teams = TeamRegistry(sync)
        self.invitations = InvitationWorkflow(sync, self.teams)
        self.chat = TeamChat(sync)
        self.events = ChangeStream(sync)

    @classmethod
    def from_settings(
        cls, settings: Settings, session_factory: async_sessionmaker[AsyncSession]
    ) -> "DevHubServices":
        if settings.redis_url:
            channel = RedisChangeChannel(settings.redis_url, settings.snapshot_channel)
        else:
            channel = LocalChangeChannel()
        return cls(SyncLayer(SnapshotStore(session_factory), channel))

    async def start(self) -> None:
        await self.sync.start()
        logger.info(f"Services started (channel={type(self.sync.channel).__name__})")

    async def stop(self) -> None:
        self.events.close()
        await self.sync.stop()
        logger.info("Services stopped")
