"""Level filters and message search over the log window."""

import functools
import logging
import re
from typing import Callable, Iterable, Mapping

from ..models import LogLevel, LogRecord

logger = logging.getLogger(__name__)

DEFAULT_LEVEL_FILTERS = {
    LogLevel.INFO.value: True,
    LogLevel.WARN.value: True,
    LogLevel.ERROR.value: True,
    LogLevel.SUCCESS.value: True,
    LogLevel.DEBUG.value: False,
}


@functools.lru_cache(maxsize=64)
def compile_matcher(query: str) -> Callable[[str], bool]:
    """Build a message predicate for a search query.

    The query is tried as a case-insensitive regular expression first.  If
    it does not compile (e.g. ``"[invalid("``) it is matched as a literal,
    case-insensitive substring instead.
    """
    try:
        pattern = re.compile(query, re.IGNORECASE)
    except re.error as e:
        logger.debug("Search %r is not a valid pattern (%s), matching literally", query, e)
        needle = query.casefold()
        return lambda message: needle in message.casefold()
    return lambda message: pattern.search(message) is not None


class FilterSet:
    """Per-level visibility switches.

    Levels not present in the mapping are hidden unless ``show_unknown``
    is set.
    """

    def __init__(
        self, levels: Mapping[str, bool] | None = None, show_unknown: bool = False
    ) -> None:
        self._levels = dict(DEFAULT_LEVEL_FILTERS)
        if levels:
            self._levels.update(levels)
        self.show_unknown = show_unknown

    def is_visible(self, level: str) -> bool:
        return self._levels.get(level, self.show_unknown)

    def set(self, level: str, visible: bool) -> None:
        self._levels[level] = bool(visible)

    def toggle(self, level: str) -> bool:
        """Flip a level's visibility and return the new value."""
        visible = not self.is_visible(level)
        self._levels[level] = visible
        return visible

    def reset(self) -> None:
        self._levels = dict(DEFAULT_LEVEL_FILTERS)

    def as_dict(self) -> dict[str, bool]:
        return dict(self._levels)

    def __getitem__(self, level: str) -> bool:
        return self.is_visible(level)

    def __repr__(self) -> str:
        return f"FilterSet({self._levels!r}, show_unknown={self.show_unknown})"


def filter_records(
    records: Iterable[LogRecord], filters: FilterSet, query: str = ""
) -> list[LogRecord]:
    """Return the records that pass the level filters and the search query."""
    query = (query or "").strip()
    if not query:
        return [r for r in records if filters.is_visible(r.level)]

    matches = compile_matcher(query)
    return [
        r for r in records
        if filters.is_visible(r.level) and matches(r.message)
    ]
