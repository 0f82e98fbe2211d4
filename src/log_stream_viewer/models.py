"""Log record model decoded from the push stream.

Each server-sent message carries one JSON object such as
``{"level": "INFO", "message": "...", "timestamp": "..."}``.  Only
``level`` and ``message`` are interpreted; everything else rides along
in ``extra`` so a renderer can still show it.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    """Severity levels the server is known to emit."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"
    DEBUG = "DEBUG"


KNOWN_LEVELS = frozenset(level.value for level in LogLevel)


class RecordDecodeError(ValueError):
    """Raised when an inbound message cannot be turned into a LogRecord."""


@dataclass(frozen=True)
class LogRecord:
    """A single immutable log record."""

    level: str
    message: str
    timestamp: Any = None
    extra: dict = field(default_factory=dict, hash=False)
    seq: int = field(default=0, compare=False)

    @classmethod
    def from_json(cls, payload: str | bytes, seq: int = 0) -> "LogRecord":
        """Decode one stream message.

        Raises RecordDecodeError for invalid JSON, non-object payloads and
        objects without a string ``level``.
        """
        try:
            data = json.loads(payload)
        except (ValueError, RecursionError) as e:
            raise RecordDecodeError(f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RecordDecodeError(
                f"expected a JSON object, got {type(data).__name__}"
            )

        level = data.pop("level", None)
        if not isinstance(level, str):
            raise RecordDecodeError("record has no string 'level'")

        message = data.pop("message", None)
        if message is None:
            message = ""
        elif not isinstance(message, str):
            message = str(message)

        timestamp = data.pop("timestamp", None)
        return cls(
            level=level,
            message=message,
            timestamp=timestamp,
            extra=data,
            seq=seq,
        )

    @property
    def known_level(self) -> bool:
        return self.level in KNOWN_LEVELS

    def to_dict(self) -> dict:
        """Return the record as a plain mapping (inverse of from_json)."""
        out = dict(self.extra)
        out["level"] = self.level
        out["message"] = self.message
        if self.timestamp is not None:
            out["timestamp"] = self.timestamp
        return out
