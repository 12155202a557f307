"""Command-line interface for lihat."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .app import DashboardApp
from .config import ConfigError, load_config, validate_stream_url
from .dashboard import DashboardController
from .presentation import render_line

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lihat", description="Live host telemetry dashboard"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser(
        "start", help="Subscribe to the stream and serve the dashboard endpoint"
    )
    start_parser.add_argument("--url", help="Override the telemetry stream URL")

    watch_parser = subparsers.add_parser(
        "watch", help="Print a readout line for every sample until the stream ends"
    )
    watch_parser.add_argument("--url", help="Override the telemetry stream URL")

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def _print_readout(controller: DashboardController) -> None:
    print(render_line(controller), flush=True)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if getattr(args, "url", None):
            config.stream.url = validate_stream_url(args.url)
            config.raw.set("stream", "url", config.stream.url)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    if args.command == "start":
        DashboardApp.start(config)
        return 0

    if args.command == "watch":
        config.server.enabled = False
        app = DashboardApp.start(
            config, renderer=_print_readout, stop_on_disconnect=True
        )
        return 0 if app.controller.messages_received else 1

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
