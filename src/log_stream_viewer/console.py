"""Plain-text renderer that tails the filtered view to a terminal."""

import logging
import sys
from datetime import datetime
from typing import TextIO

from .models import LogRecord
from .view.controller import ViewController
from .view.events import CONNECTION_STATE, FILTERS_CHANGED, LOGS_CLEARED, LOGS_FLUSHED

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 40


def format_record(record: LogRecord) -> str:
    """Format a record as ``<timestamp> <LEVEL> <message>``."""
    ts = record.timestamp
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        ts = datetime.fromtimestamp(ts).strftime("%H:%M:%S.%f")[:-3]
    elif not ts:
        ts = "--------"
    return f"{ts} {record.level:<7} {record.message}"


class ConsoleRenderer:
    """Writes newly visible records to a text stream as the view updates."""

    def __init__(self, controller: ViewController, stream: TextIO | None = None):
        self._controller = controller
        self._stream = stream or sys.stdout
        self._last_seq = 0

    def render_new(self) -> int:
        """Write filtered records not printed yet. Returns how many were written."""
        written = 0
        for record in self._controller.filtered_logs:
            if record.seq <= self._last_seq:
                continue
            self._stream.write(format_record(record) + "\n")
            self._last_seq = record.seq
            written += 1
        if written:
            self._stream.flush()
        return written

    def render_all(self) -> int:
        """Redraw the whole filtered view, e.g. after a filter change."""
        self._write_separator()
        return self.render_new()

    def _write_separator(self) -> None:
        self._last_seq = 0
        self._stream.write(SEPARATOR + "\n")
        self._stream.flush()

    async def run(self) -> None:
        """Consume view events until cancelled."""
        async with self._controller.event_bus.subscribed() as queue:
            while True:
                event = await queue.get()
                name = event["event"]
                if name == LOGS_FLUSHED:
                    self.render_new()
                elif name == FILTERS_CHANGED:
                    self.render_all()
                elif name == LOGS_CLEARED:
                    self._write_separator()
                elif name == CONNECTION_STATE:
                    logger.info("Stream %s", event["data"].get("state"))
