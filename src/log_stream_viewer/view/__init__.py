"""Bounded live view: intake buffer, log window, filters and controller."""

from .buffer import DEFAULT_LOG_LIMIT, IntakeBuffer, LogWindow, merge_records
from .controller import ViewController
from .events import EventBus
from .filters import FilterSet, compile_matcher, filter_records

__all__ = [
    "DEFAULT_LOG_LIMIT",
    "EventBus",
    "FilterSet",
    "IntakeBuffer",
    "LogWindow",
    "ViewController",
    "compile_matcher",
    "filter_records",
    "merge_records",
]
