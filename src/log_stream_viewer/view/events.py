"""View events published by the controller and consumed by renderers.

Each event is a dict ``{"event": <name>, "data": {...}}``. The publishing
helpers on :class:`EventBus` fix the payload of every event name:

    logs_flushed      {"added": int, "visible": int}
    logs_cleared      {}
    filters_changed   {"query": str, "filters": {level: bool}}
    scroll_to_bottom  {}
    connection_state  {"state": "disconnected" | "connecting" | "connected"}
"""

import asyncio
import contextlib
import logging
from typing import AsyncIterator

logger = logging.getLogger(__name__)

LOGS_FLUSHED = "logs_flushed"
LOGS_CLEARED = "logs_cleared"
FILTERS_CHANGED = "filters_changed"
SCROLL_TO_BOTTOM = "scroll_to_bottom"
CONNECTION_STATE = "connection_state"

VIEW_EVENTS = frozenset({
    LOGS_FLUSHED,
    LOGS_CLEARED,
    FILTERS_CHANGED,
    SCROLL_TO_BOTTOM,
    CONNECTION_STATE,
})


class EventBus:
    """Fans view events out to renderers, one bounded queue each.

    Publishing never blocks: a renderer whose queue is full misses the
    event and ``dropped`` is incremented.
    """

    def __init__(self, maxsize: int = 64):
        self._maxsize = maxsize
        self._renderers: set[asyncio.Queue] = set()
        self.dropped = 0

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._maxsize)
        self._renderers.add(queue)
        logger.debug("Renderer subscribed to view events (%d total)", len(self._renderers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._renderers.discard(queue)
        logger.debug("Renderer unsubscribed (%d remaining)", len(self._renderers))

    @contextlib.asynccontextmanager
    async def subscribed(self) -> AsyncIterator[asyncio.Queue]:
        """Subscribe for the duration of an ``async with`` block."""
        queue = self.subscribe()
        try:
            yield queue
        finally:
            self.unsubscribe(queue)

    @property
    def client_count(self) -> int:
        return len(self._renderers)

    def emit(self, event: str, data: dict | None = None) -> None:
        if event not in VIEW_EVENTS:
            raise ValueError(f"unknown view event {event!r}")
        if not self._renderers:
            return
        payload = {"event": event, "data": data or {}}
        for queue in list(self._renderers):
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning("Renderer queue full, dropping '%s'", event)

    # -- publishers --

    def logs_flushed(self, added: int, visible: int) -> None:
        self.emit(LOGS_FLUSHED, {"added": added, "visible": visible})

    def logs_cleared(self) -> None:
        self.emit(LOGS_CLEARED)

    def filters_changed(self, query: str, filters: dict[str, bool]) -> None:
        self.emit(FILTERS_CHANGED, {"query": query, "filters": dict(filters)})

    def scroll_to_bottom(self) -> None:
        self.emit(SCROLL_TO_BOTTOM)

    def connection_state(self, state: str) -> None:
        self.emit(CONNECTION_STATE, {"state": state})


def drain(queue: asyncio.Queue) -> list[dict]:
    """Take every event already queued without waiting."""
    events = []
    while True:
        try:
            events.append(queue.get_nowait())
        except asyncio.QueueEmpty:
            return events
