"""Live tail of a server's structured log stream with a bounded, filterable view."""

__version__ = "0.1.0"
