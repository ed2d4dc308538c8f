"""Synchronization layer: durable snapshot storage plus change notifications.

The whole snapshot (users, teams, invitations, messages) is the unit of
sharing. Every mutation is a read-modify-write of the full snapshot inside
``SyncLayer.transaction()``; the lock makes those cycles sequential within a
process. Between processes nothing is locked: each commit overwrites every
collection, and a commit made from a stale view silently replaces whatever
another process wrote in between (last-writer-wins). A change notification
only tells other processes to drop their cached view and re-load.

Usage:
    async with sync.transaction() as snapshot:
        snapshot.teams.append(team)
    # persisted and broadcast on exit if the snapshot changed
"""

import asyncio
import inspect
import json
import logging
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as aioredis
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devhub.config import DATA_CHANGED_EVENT, REDIS_RESUBSCRIBE_SECONDS, SNAPSHOT_KEYS
from devhub.core.results import SnapshotCorruptedError, SnapshotError
from devhub.models.records import ChatMessage, InvitationRecord, Snapshot, TeamRecord, UserRecord
from devhub.models.snapshot import SnapshotBlob

logger = logging.getLogger(__name__)

Listener = Callable[[], Any]

_ADAPTERS: dict[str, TypeAdapter] = {
    "users": TypeAdapter(list[UserRecord]),
    "teams": TypeAdapter(list[TeamRecord]),
    "invitations": TypeAdapter(list[InvitationRecord]),
    "messages": TypeAdapter(list[ChatMessage]),
}


def serialize_collection(snapshot: Snapshot, key: str) -> str:
    records = getattr(snapshot, key)
    return json.dumps([record.model_dump(mode="json") for record in records], separators=(",", ":"))


class SnapshotStore:
    """Reads and writes the snapshot as one ``snapshot_blobs`` row per collection."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def read(self) -> Snapshot:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(SnapshotBlob).where(SnapshotBlob.key.in_(SNAPSHOT_KEYS))
                )
                blobs = {blob.key: blob.payload for blob in result.scalars().all()}
        except SQLAlchemyError as e:
            raise SnapshotError(f"Could not read snapshot: {e}") from e

        collections = {}
        for key in SNAPSHOT_KEYS:
            payload = blobs.get(key)
            if payload is None:
                collections[key] = []
                continue
            try:
                collections[key] = _ADAPTERS[key].validate_json(payload)
            except ValidationError as e:
                raise SnapshotCorruptedError(key, str(e)) from e
        return Snapshot(**collections)

    async def write(self, snapshot: Snapshot) -> None:
        """Write every collection in a single database transaction."""
        payloads = {key: serialize_collection(snapshot, key) for key in SNAPSHOT_KEYS}
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(SnapshotBlob).where(SnapshotBlob.key.in_(SNAPSHOT_KEYS))
                )
                existing = {blob.key: blob for blob in result.scalars().all()}
                for key, payload in payloads.items():
                    blob = existing.get(key)
                    if blob is None:
                        session.add(SnapshotBlob(key=key, payload=payload))
                    else:
                        blob.payload = payload
                await session.commit()
        except SQLAlchemyError as e:
            raise SnapshotError(f"Could not write snapshot: {e}") from e


class LocalChangeChannel:
    """Cross-process channel for single-process deployments: nothing to relay."""

    async def start(self, on_remote_change: Callable[[], Awaitable[None]]) -> None:
        return None

    async def publish(self) -> None:
        return None

    async def stop(self) -> None:
        return None


class RedisChangeChannel:
    """Relays payload-free change signals between processes over Redis pub/sub.

    Each process tags its own publications with an origin id so it can skip
    the echo of its own commits. When the subscription breaks, the cache is
    dropped (signals may have been missed) and the channel resubscribes with
    a fixed backoff until it is stopped.
    """

    def __init__(self, redis_url: str, channel: str, resubscribe_delay: float = REDIS_RESUBSCRIBE_SECONDS):
        self.redis_url = redis_url
        self.channel = channel
        self.resubscribe_delay = resubscribe_delay
        self.origin = uuid.uuid4().hex
        self._redis: aioredis.Redis | None = None
        self._pubsub = None
        self._task: asyncio.Task | None = None
        self._on_remote_change: Callable[[], Awaitable[None]] | None = None

    async def start(self, on_remote_change: Callable[[], Awaitable[None]]) -> None:
        self._on_remote_change = on_remote_change
        self._redis = aioredis.from_url(self.redis_url, decode_responses=True)
        await self._subscribe()
        self._task = asyncio.create_task(self._listen())
        logger.info(f"Listening for snapshot changes on redis channel {self.channel}")

    async def publish(self) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.publish(self.channel, self.origin)
        except Exception as e:
            # The commit already landed; other processes catch up on their next change.
            logger.warning(f"Failed to publish snapshot change on {self.channel}: {e}")

    async def _subscribe(self) -> None:
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(self.channel)

    async def _close_pubsub(self) -> None:
        pubsub, self._pubsub = self._pubsub, None
        if pubsub is None:
            return
        try:
            await pubsub.unsubscribe(self.channel)
        except Exception as e:
            logger.debug(f"Unsubscribe from {self.channel} failed: {e}")
        finally:
            await pubsub.aclose()

    async def _dispatch(self) -> None:
        try:
            await self._on_remote_change()
        except Exception as e:
            logger.error(f"Error handling remote snapshot change: {e}", exc_info=True)

    async def _resubscribe(self) -> None:
        while True:
            await asyncio.sleep(self.resubscribe_delay)
            try:
                await self._close_pubsub()
                await self._subscribe()
            except Exception as e:
                logger.warning(f"Resubscribing to {self.channel} failed: {e}")
                continue
            logger.info(f"Resubscribed to redis channel {self.channel}")
            return

    async def _listen(self) -> None:
        while True:
            try:
                async for message in self._pubsub.listen():
                    if message.get("type") != "message" or message.get("data") == self.origin:
                        continue
                    await self._dispatch()
                return
            except Exception as e:
                logger.warning(f"Lost redis channel {self.channel}: {e}")

            await self._dispatch()
            await self._resubscribe()
            # Changes published while unsubscribed were never delivered.
            await self._dispatch()

    async def stop(self) -> None:
        task, self._task = self._task, None
        try:
            if task is not None:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception as e:
                    logger.warning(f"Redis listener on {self.channel} had failed: {e}")
            await self._close_pubsub()
        finally:
            redis, self._redis = self._redis, None
            if redis is not None:
                await redis.aclose()


class SyncLayer:
    def __init__(self, store: SnapshotStore, channel: LocalChangeChannel | RedisChangeChannel | None = None):
        self.store = store
        self.channel = channel or LocalChangeChannel()
        self._cache: Snapshot | None = None
        self._lock = asyncio.Lock()
        self._listeners: dict[str, list[Listener]] = {}

    async def start(self) -> None:
        await self.channel.start(self._on_remote_change)

    async def stop(self) -> None:
        await self.channel.stop()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, event_name: str, callback: Listener) -> None:
        self._listeners.setdefault(event_name, []).append(callback)

    def unsubscribe(self, event_name: str, callback: Listener) -> None:
        callbacks = self._listeners.get(event_name)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    async def _notify(self, event_name: str) -> None:
        for callback in list(self._listeners.get(event_name, [])):
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Listener for {event_name} failed: {e}", exc_info=True)

    async def _on_remote_change(self) -> None:
        self._cache = None
        logger.debug("Snapshot changed in another process, cache dropped")
        await self._notify(DATA_CHANGED_EVENT)

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------

    async def _current(self) -> Snapshot:
        if self._cache is None:
            self._cache = await self.store.read()
        return self._cache

    async def _persist(self, snapshot: Snapshot) -> None:
        await self.store.write(snapshot)
        self._cache = snapshot.model_copy(deep=True)

    async def _announce(self) -> None:
        await self._notify(DATA_CHANGED_EVENT)
        await self.channel.publish()

    async def load(self) -> Snapshot:
        """Return a private copy of the last persisted snapshot."""
        async with self._lock:
            current = await self._current()
            return current.model_copy(deep=True)

    async def commit(self, snapshot: Snapshot) -> None:
        """Persist the full snapshot as given, then broadcast the change."""
        async with self._lock:
            await self._persist(snapshot)
        await self._announce()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Snapshot, None]:
        changed = False
        async with self._lock:
            current = await self._current()
            working = current.model_copy(deep=True)
            yield working
            if working != current:
                await self._persist(working)
                changed = True
        # Listeners run outside the lock so they may load() again.
        if changed:
            await self._announce()
