"""Tests for ViewController orchestration."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

from aiohttp import test_utils, web

from log_stream_viewer.config import AppConfig
from log_stream_viewer.models import LogRecord
from log_stream_viewer.stream.client import STREAM_PATH, ConnectionState
from log_stream_viewer.view.buffer import DEFAULT_LOG_LIMIT
from log_stream_viewer.view.controller import ViewController


def _fake_stream():
    stream = MagicMock()
    stream.start = AsyncMock()
    stream.stop = AsyncMock()
    return stream


def _controller(**config_kwargs) -> ViewController:
    return ViewController(AppConfig(**config_kwargs), stream_client=_fake_stream())


def _drain(queue) -> list[str]:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait()["event"])
    return events


def _ingest(controller, count, level="INFO", start=1):
    for n in range(start, start + count):
        controller.ingest(LogRecord(level, f"message {n}", seq=n))


class TestFlush:
    def test_records_stay_pending_until_flush(self):
        controller = _controller()
        _ingest(controller, 3)
        assert controller.pending == 3
        assert controller.logs == []

        assert controller.flush() is True
        assert controller.pending == 0
        assert [r.seq for r in controller.logs] == [1, 2, 3]

    def test_empty_flush_emits_nothing(self):
        controller = _controller()
        _ingest(controller, 2)
        controller.flush()
        before = controller.logs
        queue = controller.event_bus.subscribe()

        assert controller.flush() is False
        assert controller.logs is before
        assert _drain(queue) == []

    def test_flush_signals_renderer_and_scroll(self):
        controller = _controller()
        queue = controller.event_bus.subscribe()
        _ingest(controller, 2)

        controller.flush()
        assert _drain(queue) == ["logs_flushed", "scroll_to_bottom"]

    def test_no_scroll_when_auto_scroll_off(self):
        controller = _controller()
        controller.set_auto_scroll(False)
        queue = controller.event_bus.subscribe()
        _ingest(controller, 2)

        controller.flush()
        assert _drain(queue) == ["logs_flushed"]

    def test_limit_is_read_on_every_flush(self):
        controller = _controller(log_limit=5)
        _ingest(controller, 4)
        controller.flush()
        assert len(controller.logs) == 4

        controller.config.log_limit = 3
        _ingest(controller, 2, start=5)
        controller.flush()
        assert [r.seq for r in controller.logs] == [4, 5, 6]

    def test_unset_limit_uses_default(self):
        controller = _controller(log_limit=None)
        assert controller.log_limit == DEFAULT_LOG_LIMIT

        _ingest(controller, DEFAULT_LOG_LIMIT + 10)
        controller.flush()
        assert len(controller.logs) == DEFAULT_LOG_LIMIT
        assert controller.logs[0].seq == 11

    def test_flood_replaces_previous_view(self):
        controller = _controller(log_limit=5)
        _ingest(controller, 5)
        controller.flush()

        _ingest(controller, 7, start=100)
        controller.flush()
        assert [r.seq for r in controller.logs] == [102, 103, 104, 105, 106]
        assert controller.evicted == 7


class TestClear:
    def test_clear_drops_pending_and_visible(self):
        controller = _controller()
        _ingest(controller, 3)
        controller.flush()
        _ingest(controller, 2, start=4)

        controller.clear()
        assert controller.logs == []
        assert controller.pending == 0
        assert controller.flush() is False

    def test_clear_does_not_touch_stream(self):
        controller = _controller()
        controller.clear()
        controller.stream.stop.assert_not_called()


class TestFilteredView:
    def test_default_filters_hide_debug(self):
        controller = _controller()
        controller.ingest(LogRecord("INFO", "visible", seq=1))
        controller.ingest(LogRecord("DEBUG", "hidden", seq=2))
        controller.flush()

        assert [r.message for r in controller.filtered_logs] == ["visible"]

    def test_filtered_view_tracks_mutations(self):
        controller = _controller()
        controller.ingest(LogRecord("INFO", "user logged in", seq=1))
        controller.ingest(LogRecord("ERROR", "user lookup failed", seq=2))
        controller.ingest(LogRecord("DEBUG", "user cache warm", seq=3))
        controller.flush()

        controller.set_search_query("user")
        assert [r.seq for r in controller.filtered_logs] == [1, 2]

        controller.set_filter("DEBUG", True)
        assert [r.seq for r in controller.filtered_logs] == [1, 2, 3]

        controller.toggle_filter("ERROR")
        assert [r.seq for r in controller.filtered_logs] == [1, 3]

        controller.ingest(LogRecord("INFO", "user logged out", seq=4))
        controller.flush()
        assert [r.seq for r in controller.filtered_logs] == [1, 3, 4]

    def test_invalid_search_falls_back_to_literal(self):
        controller = _controller()
        controller.ingest(LogRecord("ERROR", "bad token [invalid( here", seq=1))
        controller.ingest(LogRecord("ERROR", "nothing to see", seq=2))
        controller.flush()

        controller.set_search_query("[INVALID(")
        assert [r.seq for r in controller.filtered_logs] == [1]


class TestAutoScroll:
    def test_query_change_requests_scroll_when_enabled(self):
        controller = _controller()
        queue = controller.event_bus.subscribe()
        controller.set_search_query("error")
        assert _drain(queue) == ["filters_changed", "scroll_to_bottom"]

    def test_filter_change_without_auto_scroll(self):
        controller = _controller()
        controller.set_auto_scroll(False)
        queue = controller.event_bus.subscribe()
        controller.set_filter("WARN", False)
        assert _drain(queue) == ["filters_changed"]

    def test_enabling_auto_scroll_requests_scroll(self):
        controller = _controller()
        controller.set_auto_scroll(False)
        queue = controller.event_bus.subscribe()

        controller.set_auto_scroll(True)
        assert controller.auto_scroll
        assert _drain(queue) == ["scroll_to_bottom"]


class TestLifecycle:
    def test_start_runs_flush_cadence_and_stop_tears_down(self):
        async def scenario():
            controller = _controller(flush_interval_ms=10)
            await controller.start()
            controller.stream.start.assert_awaited_once()

            _ingest(controller, 3)
            for _ in range(100):
                if controller.logs:
                    break
                await asyncio.sleep(0.01)
            assert len(controller.logs) == 3

            await controller.stop()
            controller.stream.stop.assert_awaited_once()

            _ingest(controller, 2, start=4)
            await asyncio.sleep(0.05)
            assert controller.pending == 2

        asyncio.run(scenario())

    def test_connection_state_is_published(self):
        controller = ViewController(AppConfig())
        queue = controller.event_bus.subscribe()
        controller._on_connection_state(ConnectionState.CONNECTING)
        event = queue.get_nowait()
        assert event == {"event": "connection_state", "data": {"state": "connecting"}}

    def test_end_to_end_against_server(self):
        async def scenario():
            release = asyncio.Event()

            async def handler(request):
                resp = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
                await resp.prepare(request)
                for n in range(1, 6):
                    record = {"level": "INFO", "message": f"tick {n}"}
                    await resp.write(f"data: {json.dumps(record)}\n\n".encode())
                await resp.write(b"data: garbage\n\n")
                await release.wait()
                return resp

            app = web.Application()
            app.router.add_get(STREAM_PATH, handler)
            server = test_utils.TestServer(app)
            await server.start_server()

            config = AppConfig(
                base_url=str(server.make_url("/")),
                log_limit=3,
                flush_interval_ms=10,
                reconnect_delay_ms=50,
            )
            controller = ViewController(config)
            try:
                await controller.start()
                for _ in range(300):
                    stream = controller.stream
                    if stream.records_received == 5 and stream.decode_errors == 1 and not controller.pending:
                        break
                    await asyncio.sleep(0.01)

                assert [r.message for r in controller.logs] == ["tick 3", "tick 4", "tick 5"]
                assert controller.stream.decode_errors == 1
            finally:
                release.set()
                await controller.stop()
                await server.close()

        asyncio.run(scenario())
