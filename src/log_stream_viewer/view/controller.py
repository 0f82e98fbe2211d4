"""View controller for the live log view.

Wires the stream client, intake buffer, bounded window and filters
together, and owns the operator-facing state (auto-scroll, search query,
level filters).

Flow:
    StreamClient -> IntakeBuffer -> (flush tick) -> LogWindow
        -> filter_records(FilterSet, query) -> renderer

The renderer pulls ``filtered_logs`` when it gets a ``logs_flushed`` or
``filters_changed`` event, and scrolls when it gets ``scroll_to_bottom``.
"""

import asyncio
import logging

from ..config import AppConfig
from ..models import LogRecord
from ..stream.client import ConnectionState, StreamClient
from .buffer import IntakeBuffer, LogWindow, resolve_limit
from .events import EventBus
from .filters import FilterSet, filter_records

logger = logging.getLogger(__name__)


class ViewController:
    """Owns one live log view from start() to stop()."""

    def __init__(
        self,
        config: AppConfig,
        *,
        event_bus: EventBus | None = None,
        stream_client: StreamClient | None = None,
        filters: FilterSet | None = None,
    ):
        self.config = config
        self.event_bus = event_bus or EventBus()
        self.filters = filters or FilterSet()
        self._search_query = ""
        self._auto_scroll = True
        self._intake = IntakeBuffer()
        self._window = LogWindow()
        self._flush_task: asyncio.Task | None = None
        self.stream = stream_client or StreamClient(
            config.base_url,
            self.ingest,
            password=config.password,
            reconnect_delay=config.reconnect_delay,
            on_state_change=self._on_connection_state,
        )

    # -- lifecycle --

    async def start(self) -> None:
        """Start streaming and the periodic flush."""
        await self.stream.start()
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.create_task(self._flush_loop())
        if self._auto_scroll:
            self._request_scroll()
        logger.info(
            "Log view started (flush every %dms, limit %d)",
            self.config.flush_interval_ms, self.log_limit,
        )

    async def stop(self) -> None:
        """Cancel the flush cadence and close the stream."""
        if self._flush_task and not self._flush_task.done():
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
        self._flush_task = None
        await self.stream.stop()
        logger.info("Log view stopped")

    async def _flush_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.flush_interval)
            self.flush()

    # -- data path --

    def ingest(self, record: LogRecord) -> None:
        """Stream callback: stage a record until the next flush."""
        self._intake.append(record)

    @property
    def log_limit(self) -> int:
        return resolve_limit(getattr(self.config, "log_limit", None))

    def flush(self) -> bool:
        """Merge buffered records into the window. Returns False if idle."""
        added = len(self._intake)
        if not self._window.flush(self._intake, self.log_limit):
            return False
        self.event_bus.logs_flushed(added, len(self._window))
        if self._auto_scroll:
            self._request_scroll()
        return True

    def clear(self) -> None:
        """Drop everything shown and everything still waiting to be shown."""
        self._intake.clear()
        self._window.clear()
        self.event_bus.logs_cleared()
        logger.debug("Log view cleared")

    @property
    def logs(self) -> list[LogRecord]:
        return self._window.records

    @property
    def pending(self) -> int:
        return len(self._intake)

    @property
    def evicted(self) -> int:
        return self._window.evicted

    @property
    def filtered_logs(self) -> list[LogRecord]:
        return filter_records(self._window.records, self.filters, self._search_query)

    # -- operator state --

    @property
    def search_query(self) -> str:
        return self._search_query

    def set_search_query(self, query: str) -> None:
        self._search_query = query or ""
        self._view_changed()

    def set_filter(self, level: str, visible: bool) -> None:
        self.filters.set(level, visible)
        self._view_changed()

    def toggle_filter(self, level: str) -> bool:
        visible = self.filters.toggle(level)
        self._view_changed()
        return visible

    @property
    def auto_scroll(self) -> bool:
        return self._auto_scroll

    def set_auto_scroll(self, enabled: bool) -> None:
        self._auto_scroll = bool(enabled)
        if self._auto_scroll:
            self._request_scroll()

    def _view_changed(self) -> None:
        self.event_bus.filters_changed(self._search_query, self.filters.as_dict())
        if self._auto_scroll:
            self._request_scroll()

    def _request_scroll(self) -> None:
        self.event_bus.scroll_to_bottom()

    def _on_connection_state(self, state: ConnectionState) -> None:
        self.event_bus.connection_state(state.value)
