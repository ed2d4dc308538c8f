"""Server-sent events fan-out of snapshot change notifications.

Change signals carry no payload; a client receiving ``data_changed`` is
expected to re-fetch whatever it displays.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator

from devhub.config import DATA_CHANGED_EVENT, SSE_KEEPALIVE_SECONDS, SSE_QUEUE_SIZE
from devhub.services.sync import SyncLayer

logger = logging.getLogger(__name__)


class ChangeStream:
    def __init__(self, sync: SyncLayer, keepalive_seconds: float = SSE_KEEPALIVE_SECONDS):
        self.sync = sync
        self.keepalive_seconds = keepalive_seconds
        self._queues: set[asyncio.Queue] = set()
        self.sync.subscribe(DATA_CHANGED_EVENT, self._on_change)

    @property
    def connection_count(self) -> int:
        return len(self._queues)

    def _on_change(self) -> None:
        for q in list(self._queues):
            try:
                q.put_nowait(DATA_CHANGED_EVENT)
            except asyncio.QueueFull:
                # A backed-up client already has a pending signal to re-fetch.
                pass

    def connect(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=SSE_QUEUE_SIZE)
        self._queues.add(q)
        return q

    def disconnect(self, q: asyncio.Queue) -> None:
        self._queues.discard(q)

    async def stream(self) -> AsyncGenerator[str, None]:
        """Yield SSE frames until the client goes away.

        The queue is registered on first iteration, so a response that is never
        started leaves nothing behind.
        """
        q = self.connect()
        try:
            yield "retry: 3000\n\n"
            while True:
                try:
                    event = await asyncio.wait_for(q.get(), timeout=self.keepalive_seconds)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"event: {event}\ndata: {{}}\n\n"
        finally:
            self.disconnect(q)
            logger.debug(f"SSE client disconnected ({self.connection_count} remaining)")

    def close(self) -> None:
        self.sync.unsubscribe(DATA_CHANGED_EVENT, self._on_change)
        self._queues.clear()
