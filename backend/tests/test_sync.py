"""Tests for the snapshot store, the sync layer and the Redis change channel."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from devhub.config import DATA_CHANGED_EVENT, SNAPSHOT_KEYS
from devhub.core.results import ErrorKind, SnapshotCorruptedError
from devhub.models.records import Snapshot, UserRecord
from devhub.models.snapshot import SnapshotBlob
from devhub.services.container import DevHubServices
from devhub.services.sync import RedisChangeChannel, SnapshotStore, SyncLayer


async def _blobs(session_factory) -> dict[str, str]:
    async with session_factory() as session:
        result = await session.execute(select(SnapshotBlob))
        return {blob.key: blob.payload for blob in result.scalars().all()}


@pytest.mark.asyncio
async def test_load_empty_store(sync: SyncLayer):
    snapshot = await sync.load()
    assert snapshot == Snapshot()


@pytest.mark.asyncio
async def test_commit_writes_every_collection(sync: SyncLayer, session_factory):
    await sync.commit(Snapshot(users=[UserRecord(email="a@example.com", name="A")]))

    blobs = await _blobs(session_factory)

    assert set(blobs) == set(SNAPSHOT_KEYS)
    assert blobs["teams"] == "[]"


@pytest.mark.asyncio
async def test_round_trip_is_byte_identical(services: DevHubServices, session_factory):
    await services.users.register("Alice", "alice@example.com", "secret123")
    await services.users.register("Bob", "bob@example.com", "secret123")
    team = (await services.teams.create("Core", "", "alice@example.com")).value
    invitation = (await services.invitations.send(team.id, "alice@example.com", "Alice", "bob@example.com")).value
    await services.chat.post_message(team.id, "alice@example.com", "hi")
    before = await _blobs(session_factory)

    # A fresh layer reads from the database, not from the first layer's cache.
    fresh = SyncLayer(SnapshotStore(session_factory))
    await fresh.commit(await fresh.load())

    assert await _blobs(session_factory) == before
    assert invitation.id == (await fresh.load()).invitations[0].id


@pytest.mark.asyncio
async def test_load_returns_private_copy(sync: SyncLayer):
    await sync.commit(Snapshot(users=[UserRecord(email="a@example.com", name="A")]))

    snapshot = await sync.load()
    snapshot.users.clear()

    assert len((await sync.load()).users) == 1


@pytest.mark.asyncio
async def test_transaction_without_changes_does_not_notify(sync: SyncLayer):
    calls = []
    sync.subscribe(DATA_CHANGED_EVENT, lambda: calls.append("changed"))

    async with sync.transaction():
        pass
    assert calls == []

    async with sync.transaction() as snapshot:
        snapshot.users.append(UserRecord(email="a@example.com", name="A"))
    assert calls == ["changed"]


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_exception(sync: SyncLayer):
    with pytest.raises(RuntimeError):
        async with sync.transaction() as snapshot:
            snapshot.users.append(UserRecord(email="a@example.com", name="A"))
            raise RuntimeError("boom")

    assert (await sync.load()).users == []


@pytest.mark.asyncio
async def test_listeners_can_reload_and_unsubscribe(sync: SyncLayer):
    seen = []

    async def on_change():
        snapshot = await sync.load()
        seen.append(len(snapshot.users))

    sync.subscribe(DATA_CHANGED_EVENT, on_change)
    await sync.commit(Snapshot(users=[UserRecord(email="a@example.com", name="A")]))
    sync.unsubscribe(DATA_CHANGED_EVENT, on_change)
    await sync.commit(Snapshot())

    assert seen == [1]


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_commit(sync: SyncLayer):
    def broken():
        raise ValueError("listener bug")

    calls = []
    sync.subscribe(DATA_CHANGED_EVENT, broken)
    sync.subscribe(DATA_CHANGED_EVENT, lambda: calls.append(1))

    await sync.commit(Snapshot(users=[UserRecord(email="a@example.com", name="A")]))

    assert calls == [1]
    assert len((await sync.load()).users) == 1


@pytest.mark.asyncio
async def test_corrupted_blob_is_reported_as_storage_error(services: DevHubServices, session_factory):
    async with session_factory() as session:
        session.add(SnapshotBlob(key="users", payload="{not json"))
        await session.commit()

    with pytest.raises(SnapshotCorruptedError):
        await services.sync.load()

    result = await services.users.register("Alice", "alice@example.com", "secret123")
    assert result.error == ErrorKind.STORAGE_ERROR


@pytest.mark.asyncio
async def test_remote_change_drops_cache(sync: SyncLayer, store: SnapshotStore):
    await sync.load()
    calls = []
    sync.subscribe(DATA_CHANGED_EVENT, lambda: calls.append(1))

    # Another process writes directly to the shared store.
    await store.write(Snapshot(users=[UserRecord(email="remote@example.com", name="R")]))
    assert (await sync.load()).users == []

    await sync._on_remote_change()

    assert calls == [1]
    assert [u.email for u in (await sync.load()).users] == ["remote@example.com"]


@pytest.mark.asyncio
async def test_concurrent_transactions_are_serialized(sync: SyncLayer):
    async def add(i: int):
        async with sync.transaction() as snapshot:
            snapshot.users.append(UserRecord(email=f"u{i}@example.com", name=f"U{i}"))
            await asyncio.sleep(0)

    await asyncio.gather(*(add(i) for i in range(5)))

    assert len((await sync.load()).users) == 5


# ---------------------------------------------------------------------------
# Redis change channel
# ---------------------------------------------------------------------------


class _FakePubSub:
    def __init__(self, messages: list[dict]):
        self.messages = messages
        self.subscribe = AsyncMock()
        self.unsubscribe = AsyncMock()
        self.aclose = AsyncMock()

    async def listen(self):
        for message in self.messages:
            yield message


@pytest.mark.asyncio
async def test_redis_channel_skips_own_publications(monkeypatch):
    channel = RedisChangeChannel("redis://localhost:6379/0", "devhub:test")
    pubsub = _FakePubSub([
        {"type": "subscribe", "data": 1},
        {"type": "message", "data": channel.origin},
        {"type": "message", "data": "other-process"},
    ])
    fake_redis = MagicMock()
    fake_redis.pubsub.return_value = pubsub
    fake_redis.publish = AsyncMock()
    fake_redis.aclose = AsyncMock()
    monkeypatch.setattr("devhub.services.sync.aioredis.from_url", lambda *a, **kw: fake_redis)

    on_remote_change = AsyncMock()
    await channel.start(on_remote_change)
    await channel._task
    await channel.publish()
    await channel.stop()

    pubsub.subscribe.assert_awaited_once_with("devhub:test")
    on_remote_change.assert_awaited_once()
    fake_redis.publish.assert_awaited_once_with("devhub:test", channel.origin)
    pubsub.unsubscribe.assert_awaited_once()
    fake_redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_redis_publish_failure_is_logged(monkeypatch, caplog):
    channel = RedisChangeChannel("redis://localhost:6379/0", "devhub:test")
    channel._redis = MagicMock()
    channel._redis.publish = AsyncMock(side_effect=ConnectionError("redis down"))

    await channel.publish()

    assert "Failed to publish snapshot change" in caplog.text


class _BrokenPubSub(_FakePubSub):
    async def listen(self):
        yield {"type": "subscribe", "data": 1}
        raise ConnectionError("redis connection lost")


def _fake_redis(*pubsubs) -> MagicMock:
    fake_redis = MagicMock()
    fake_redis.pubsub.side_effect = list(pubsubs)
    fake_redis.publish = AsyncMock()
    fake_redis.aclose = AsyncMock()
    return fake_redis


@pytest.mark.asyncio
async def test_redis_channel_resubscribes_after_connection_loss(monkeypatch):
    channel = RedisChangeChannel("redis://localhost:6379/0", "devhub:test", resubscribe_delay=0)
    broken = _BrokenPubSub([])
    healthy = _FakePubSub([{"type": "message", "data": "other-process"}])
    fake_redis = _fake_redis(broken, healthy)
    monkeypatch.setattr("devhub.services.sync.aioredis.from_url", lambda *a, **kw: fake_redis)

    on_remote_change = AsyncMock()
    await channel.start(on_remote_change)
    await channel._task
    await channel.stop()

    # cache dropped on loss, again after resubscribing, then the relayed change
    assert on_remote_change.await_count == 3
    broken.aclose.assert_awaited_once()
    healthy.subscribe.assert_awaited_once_with("devhub:test")
    healthy.aclose.assert_awaited_once()
    fake_redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_redis_connection_loss_invalidates_sync_cache(sync: SyncLayer, store: SnapshotStore, monkeypatch):
    channel = RedisChangeChannel("redis://localhost:6379/0", "devhub:test", resubscribe_delay=0)
    fake_redis = _fake_redis(_BrokenPubSub([]), _FakePubSub([]))
    monkeypatch.setattr("devhub.services.sync.aioredis.from_url", lambda *a, **kw: fake_redis)
    sync.channel = channel
    await sync.load()

    await store.write(Snapshot(users=[UserRecord(email="remote@example.com", name="R")]))
    await sync.start()
    await channel._task

    assert [u.email for u in (await sync.load()).users] == ["remote@example.com"]


@pytest.mark.asyncio
async def test_redis_stop_after_failed_listener_closes_clients(caplog):
    channel = RedisChangeChannel("redis://localhost:6379/0", "devhub:test")
    pubsub = _FakePubSub([])
    channel._pubsub = pubsub
    channel._redis = _fake_redis()

    async def failed():
        raise ConnectionError("redis connection lost")

    channel._task = asyncio.create_task(failed())
    await asyncio.wait([channel._task])
    redis = channel._redis

    await channel.stop()

    pubsub.aclose.assert_awaited_once()
    redis.aclose.assert_awaited_once()
    assert "had failed" in caplog.text


@pytest.mark.asyncio
async def test_redis_stop_cancels_listener_waiting_to_resubscribe(monkeypatch):
    channel = RedisChangeChannel("redis://localhost:6379/0", "devhub:test", resubscribe_delay=60)
    fake_redis = _fake_redis(_BrokenPubSub([]))
    monkeypatch.setattr("devhub.services.sync.aioredis.from_url", lambda *a, **kw: fake_redis)
    on_remote_change = AsyncMock()

    await channel.start(on_remote_change)
    while on_remote_change.await_count == 0:
        await asyncio.sleep(0)
    await channel.stop()

    assert channel._task is None
    fake_redis.aclose.assert_awaited_once()
