"""Configuration loader for the log stream viewer.

Reads optional settings from a JSON options file
(``~/.config/log_stream_viewer/options.json`` unless ``LOG_VIEWER_OPTIONS``
points elsewhere), then applies environment overrides.  Every field has a
default, so a missing or broken file never stops the viewer from starting.

``log_limit`` is looked up by the view on every flush, so changing it on a
live AppConfig takes effect at the next flush interval.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS_PATH = "~/.config/log_stream_viewer/options.json"

# Environment variable → (field, converter)
_ENV_OVERRIDES = {
    "LOG_VIEWER_URL": ("base_url", str),
    "LOG_VIEWER_PASSWORD": ("password", str),
    "LOG_VIEWER_LOG_LIMIT": ("log_limit", int),
    "LOG_VIEWER_LOG_LEVEL": ("log_level", str),
}


@dataclass
class AppConfig:
    """Viewer configuration loaded from the options file + environment."""

    base_url: str = "http://localhost:8080"
    password: str | None = None
    log_limit: int | None = None
    flush_interval_ms: int = 100
    reconnect_delay_ms: int = 3000
    log_level: str = "info"

    @property
    def flush_interval(self) -> float:
        """Flush cadence in seconds."""
        return self.flush_interval_ms / 1000

    @property
    def reconnect_delay(self) -> float:
        """Delay before reconnecting a dropped stream, in seconds."""
        return self.reconnect_delay_ms / 1000

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """Load configuration from the options file and environment."""
        config = cls()

        options_path = Path(
            path or os.environ.get("LOG_VIEWER_OPTIONS", DEFAULT_OPTIONS_PATH)
        ).expanduser()
        if options_path.exists():
            try:
                data = json.loads(options_path.read_text())
                config.base_url = data.get("base_url", config.base_url)
                config.password = data.get("password", config.password)
                log_limit = data.get("log_limit", config.log_limit)
                config.log_limit = None if log_limit is None else int(log_limit)
                config.flush_interval_ms = int(
                    data.get("flush_interval_ms", config.flush_interval_ms)
                )
                config.reconnect_delay_ms = int(
                    data.get("reconnect_delay_ms", config.reconnect_delay_ms)
                )
                config.log_level = data.get("log_level", config.log_level)
                logger.info("Loaded options from %s", options_path)
            except (ValueError, TypeError, AttributeError, OSError) as e:
                logger.error("Failed to parse options %s: %s, using defaults", options_path, e)
                config = cls()
        else:
            logger.debug("No options file at %s, using defaults", options_path)

        for env_name, (attr, convert) in _ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                setattr(config, attr, convert(raw))
            except ValueError:
                logger.error("Ignoring invalid %s=%r", env_name, raw)

        return config
