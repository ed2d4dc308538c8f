"""Tests for the server-sent events change stream."""

import asyncio

import pytest
from httpx import AsyncClient

from devhub.services.container import DevHubServices
from devhub.services.events import ChangeStream


@pytest.mark.asyncio
async def test_change_is_fanned_out_to_every_connection(services: DevHubServices):
    first = services.events.connect()
    second = services.events.connect()

    await services.users.register("Alice", "alice@example.com", "secret123")

    assert first.get_nowait() == "data_changed"
    assert second.get_nowait() == "data_changed"


@pytest.mark.asyncio
async def test_full_queue_drops_extra_signals(services: DevHubServices):
    queue = services.events.connect()
    for _ in range(queue.maxsize + 5):
        services.events._on_change()

    assert queue.qsize() == queue.maxsize


@pytest.mark.asyncio
async def test_stream_frames_and_disconnect(sync):
    stream = ChangeStream(sync, keepalive_seconds=0.01)
    frames = stream.stream()

    assert await frames.__anext__() == "retry: 3000\n\n"
    assert stream.connection_count == 1
    assert await frames.__anext__() == ": keep-alive\n\n"
    stream._on_change()
    assert await frames.__anext__() == "event: data_changed\ndata: {}\n\n"

    await frames.aclose()
    assert stream.connection_count == 0
    stream.close()


@pytest.mark.asyncio
async def test_closed_stream_stops_listening(sync, services: DevHubServices):
    stream = ChangeStream(sync)
    queue = stream.connect()
    stream.close()

    await services.users.register("Alice", "alice@example.com", "secret123")
    await asyncio.sleep(0)

    assert queue.empty()


@pytest.mark.asyncio
async def test_events_endpoint_requires_auth(client: AsyncClient):
    response = await client.get("/api/events")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unstarted_stream_registers_nothing(sync):
    stream = ChangeStream(sync)

    frames = stream.stream()

    assert stream.connection_count == 0
    await frames.aclose()
    assert stream.connection_count == 0
    stream.close()
