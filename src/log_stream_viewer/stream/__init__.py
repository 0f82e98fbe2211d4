"""Push-stream client for the server's live log endpoint."""

from .client import ConnectionState, StreamClient, build_stream_url

__all__ = ["StreamClient", "ConnectionState", "build_stream_url"]
