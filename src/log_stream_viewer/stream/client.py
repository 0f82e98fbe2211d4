"""Server-sent events client for the log stream endpoint.

Holds a single long-lived ``GET /api/logs/stream`` connection, decodes
each event's data payload into a LogRecord and hands it to a callback.
Whenever the connection drops (server close, network error, bad status)
it waits a fixed delay and connects again, forever, until stopped.
"""

import asyncio
import enum
import logging
from typing import Callable

import aiohttp
from yarl import URL

from ..models import LogRecord, RecordDecodeError

logger = logging.getLogger(__name__)

STREAM_PATH = "/api/logs/stream"
DEFAULT_RECONNECT_DELAY = 3.0  # seconds
CONNECT_TIMEOUT = 10  # seconds


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def build_stream_url(base_url: str, password: str | None = None) -> URL:
    """Build the stream URL, always asking the server to replay history."""
    query = {"history": "true"}
    if password:
        query["password"] = password
    return URL(base_url).with_path(STREAM_PATH).with_query(query)


class StreamClient:
    """Resilient push-stream reader feeding decoded records to ``on_record``."""

    def __init__(
        self,
        base_url: str,
        on_record: Callable[[LogRecord], None],
        *,
        password: str | None = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        session: aiohttp.ClientSession | None = None,
        on_state_change: Callable[[ConnectionState], None] | None = None,
    ):
        self._base_url = base_url
        self._on_record = on_record
        self._password = password
        self._reconnect_delay = reconnect_delay
        self._session = session
        self._owns_session = session is None
        self._on_state_change = on_state_change
        self._task: asyncio.Task | None = None
        self._state = ConnectionState.DISCONNECTED
        self._seq = 0
        self.connection_attempts = 0
        self.records_received = 0
        self.decode_errors = 0

    @property
    def url(self) -> URL:
        return build_stream_url(self._base_url, self._password)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """(Re)start streaming, closing any existing connection first."""
        await self._cancel_task()
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        self._task = asyncio.create_task(self._run())
        logger.info("Log stream client started for %s", self._base_url)

    async def stop(self) -> None:
        """Stop streaming and release the HTTP session if we created it."""
        await self._cancel_task()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        logger.info("Log stream client stopped")

    async def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._set_state(ConnectionState.DISCONNECTED)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        logger.debug("Log stream state: %s", state.value)
        if self._on_state_change is not None:
            self._on_state_change(state)

    async def _run(self) -> None:
        """Connect, read until the stream ends, wait, repeat."""
        while True:
            try:
                await self._consume()
                logger.info(
                    "Log stream closed by server, reconnecting in %.1fs",
                    self._reconnect_delay,
                )
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                logger.info(
                    "Log stream disconnected (%s), reconnecting in %.1fs",
                    str(e) or type(e).__name__, self._reconnect_delay,
                )
            except Exception as e:
                logger.warning(
                    "Log stream error (%s), reconnecting in %.1fs",
                    e, self._reconnect_delay, exc_info=True,
                )
            self._set_state(ConnectionState.DISCONNECTED)
            await asyncio.sleep(self._reconnect_delay)

    async def _consume(self) -> None:
        self._set_state(ConnectionState.CONNECTING)
        self.connection_attempts += 1
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=CONNECT_TIMEOUT)
        async with self._session.get(
            self.url,
            headers={"Accept": "text/event-stream"},
            timeout=timeout,
        ) as resp:
            resp.raise_for_status()
            self._set_state(ConnectionState.CONNECTED)
            logger.info("Log stream connected")

            data_lines: list[str] = []
            async for raw in resp.content:
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                if not line:
                    # Blank line terminates an event
                    if data_lines:
                        self._handle_message("\n".join(data_lines))
                        data_lines = []
                    continue
                if line.startswith(":"):
                    continue  # comment / keep-alive
                name, _, value = line.partition(":")
                if value.startswith(" "):
                    value = value[1:]
                if name == "data":
                    data_lines.append(value)

    def _handle_message(self, data: str) -> None:
        try:
            record = LogRecord.from_json(data, seq=self._seq + 1)
        except RecordDecodeError as e:
            self.decode_errors += 1
            logger.debug("Log parse error: %s", e)
            return
        self._seq = record.seq
        self.records_received += 1
        self._on_record(record)
