"""Intake buffer and bounded log window.

Records arriving from the stream land in an IntakeBuffer.  The renderer
never sees that buffer; instead the controller periodically flushes it
into a LogWindow, which enforces the configured capacity by dropping the
oldest records.  High arrival rates therefore cost one merge per flush
interval rather than one render per record.
"""

import logging
from typing import Any, Iterable

from ..models import LogRecord

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 1000


def resolve_limit(value: Any) -> int:
    """Turn a raw settings value into a usable capacity.

    ``None``, ``0`` and anything that is not a number fall back to
    DEFAULT_LOG_LIMIT.  Negative numbers clamp to 1.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_LOG_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric log limit %r", value)
        return DEFAULT_LOG_LIMIT
    if limit == 0:
        return DEFAULT_LOG_LIMIT
    return max(1, limit)


def merge_records(
    visible: list[LogRecord], incoming: list[LogRecord], limit: int
) -> list[LogRecord]:
    """Merge newly buffered records after the visible ones, keeping at most ``limit``.

    A batch that alone fills the window replaces it outright; a batch that
    still fits is appended; anything else is concatenated and trimmed from
    the oldest end.
    """
    limit = max(1, limit)
    if len(incoming) >= limit:
        return incoming[-limit:]
    if len(visible) + len(incoming) <= limit:
        return visible + incoming
    return (visible + incoming)[-limit:]


class IntakeBuffer:
    """Append-only staging area between the stream and the window."""

    def __init__(self) -> None:
        self._records: list[LogRecord] = []

    def append(self, record: LogRecord) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[LogRecord]) -> None:
        self._records.extend(records)

    def drain(self) -> list[LogRecord]:
        """Return everything buffered so far and start a fresh buffer."""
        records, self._records = self._records, []
        return records

    def clear(self) -> None:
        self._records = []

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)


class LogWindow:
    """The bounded, ordered set of records available to the renderer."""

    def __init__(self) -> None:
        self._records: list[LogRecord] = []
        self.evicted = 0

    @property
    def records(self) -> list[LogRecord]:
        return self._records

    def flush(self, intake: IntakeBuffer, limit: int) -> bool:
        """Move the intake buffer into the window.

        Returns False without touching anything when the buffer is empty,
        so callers can skip signalling the renderer.
        """
        if not intake:
            return False

        incoming = intake.drain()
        total = len(self._records) + len(incoming)
        self._records = merge_records(self._records, incoming, limit)

        dropped = total - len(self._records)
        if dropped:
            self.evicted += dropped
            logger.debug(
                "Flushed %d record(s), evicted %d (limit %d)",
                len(incoming), dropped, limit,
            )
        return True

    def clear(self) -> None:
        self._records = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)
