"""Configuration loader for lihat."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from . import constants


class ConfigError(ValueError):
    """Raised when the configuration file holds unusable values."""


def validate_stream_url(url: str) -> str:
    url = url.strip()
    if urlparse(url).scheme not in ("http", "https"):
        raise ConfigError(f"Stream URL must use http or https: {url!r}")
    return url


@dataclass(slots=True)
class StreamConfig:
    url: str = constants.DEFAULT_STREAM_URL
    event: str = constants.DEFAULT_EVENT_NAME
    window_size: int = constants.DEFAULT_WINDOW_SIZE
    connect_timeout_seconds: float = 10.0


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = constants.DEFAULT_LOG_PATH
    log_network: bool = False


@dataclass(slots=True)
class ServerConfig:
    enabled: bool = True
    host: str = constants.DEFAULT_SERVER_HOST
    port: int = constants.DEFAULT_SERVER_PORT


@dataclass(slots=True)
class LihatConfig:
    stream: StreamConfig
    logging: LoggingConfig
    server: ServerConfig
    raw: ConfigParser
    path: Path


def load_config(path: Optional[Path] = None) -> LihatConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "stream": {
                "url": constants.DEFAULT_STREAM_URL,
                "event": constants.DEFAULT_EVENT_NAME,
                "window_size": str(constants.DEFAULT_WINDOW_SIZE),
                "connect_timeout_seconds": "10.0",
            },
            "logging": {
                "level": "INFO",
                "path": str(constants.DEFAULT_LOG_PATH),
                "log_network": "false",
            },
            "server": {
                "enabled": "true",
                "host": constants.DEFAULT_SERVER_HOST,
                "port": str(constants.DEFAULT_SERVER_PORT),
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    url = validate_stream_url(parser.get("stream", "url"))

    try:
        window_size = parser.getint("stream", "window_size")
    except ValueError as exc:
        raise ConfigError(f"Invalid stream window_size: {exc}") from exc
    if window_size < 1:
        raise ConfigError(f"Stream window_size must be positive, got {window_size}")

    stream = StreamConfig(
        url=url,
        event=parser.get("stream", "event").strip() or constants.DEFAULT_EVENT_NAME,
        window_size=window_size,
        connect_timeout_seconds=max(
            0.0,
            parser.getfloat("stream", "connect_timeout_seconds", fallback=10.0),
        ),
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    server = ServerConfig(
        enabled=parser.getboolean("server", "enabled", fallback=True),
        host=parser.get("server", "host", fallback=constants.DEFAULT_SERVER_HOST),
        port=parser.getint("server", "port", fallback=constants.DEFAULT_SERVER_PORT),
    )

    return LihatConfig(
        stream=stream,
        logging=logging_config,
        server=server,
        raw=parser,
        path=config_path,
    )
