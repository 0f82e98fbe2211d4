"""Entry point for the log stream viewer."""

import argparse
import asyncio
import logging
import signal
import sys

from . import __version__
from .config import AppConfig
from .console import ConsoleRenderer
from .models import LogLevel
from .view.controller import ViewController
from .view.filters import FilterSet

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level_name: str) -> None:
    """Send diagnostics to stderr so they don't interleave with the log tail."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="log-stream-viewer",
        description="Tail a server's live log stream with level filters and search.",
    )
    parser.add_argument("--url", help="Server base URL (e.g. http://localhost:8080)")
    parser.add_argument("--password", help="Password sent with the stream request")
    parser.add_argument("--log-limit", type=int, help="Maximum records kept in the view")
    parser.add_argument("--search", default="", help="Regex (or literal) message filter")
    parser.add_argument("--show-debug", action="store_true", help="Include DEBUG records")
    parser.add_argument(
        "--show-unknown", action="store_true",
        help="Include records whose level is not one of the known levels",
    )
    parser.add_argument("--options", help="Path to a JSON options file")
    parser.add_argument("--log-level", help="Diagnostic log level (debug, info, ...)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    """Load AppConfig and apply command-line overrides."""
    config = AppConfig.load(args.options)
    if args.url:
        config.base_url = args.url
    if args.password:
        config.password = args.password
    if args.log_limit is not None:
        config.log_limit = args.log_limit
    if args.log_level:
        config.log_level = args.log_level
    return config


async def run(args: argparse.Namespace) -> None:
    """Run the viewer until signalled to stop."""
    config = build_config(args)
    setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info("Log stream viewer v%s connecting to %s", __version__, config.base_url)

    filters = FilterSet(show_unknown=args.show_unknown)
    if args.show_debug:
        filters.set(LogLevel.DEBUG.value, True)

    controller = ViewController(config, filters=filters)
    controller.set_search_query(args.search)
    renderer = ConsoleRenderer(controller)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Received shutdown signal")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _signal_handler)

    render_task = asyncio.create_task(renderer.run())
    try:
        await controller.start()
        await shutdown_event.wait()
    finally:
        render_task.cancel()
        try:
            await render_task
        except asyncio.CancelledError:
            pass
        await controller.stop()
        logger.info("Goodbye.")


def main(argv: list[str] | None = None) -> None:
    asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    main()
