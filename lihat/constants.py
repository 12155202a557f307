"""Constants used across the lihat package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "lihat"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_LOG_PATH = Path.home() / ".local" / "state" / APP_NAME / f"{APP_NAME}.log"

DEFAULT_STREAM_HOST = "192.168.1.231"
DEFAULT_STREAM_PORT = 6969
DEFAULT_STREAM_PATH = "/realtime"
DEFAULT_STREAM_URL = (
    f"http://{DEFAULT_STREAM_HOST}:{DEFAULT_STREAM_PORT}{DEFAULT_STREAM_PATH}"
)
DEFAULT_EVENT_NAME = "metrics"
DEFAULT_WINDOW_SIZE = 20

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8090

BYTES_PER_GB = 1024**3
