"""Main application entry-point for lihat."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from .config import LihatConfig, load_config
from .dashboard import DashboardController
from .logging import configure_logging
from .server import DashboardServer
from .subscriber import StreamStatus, TelemetrySubscriber

LOGGER = logging.getLogger(__name__)

Renderer = Callable[[DashboardController], None]


class AppState(str, Enum):
    STARTING = "starting"
    STREAMING = "streaming"
    DISCONNECTED = "disconnected"
    STOPPING = "stopping"


class DashboardApp:
    """Coordinates the dashboard lifecycle.

    Owns the telemetry subscription, the dashboard controller and the optional
    status server. The subscription is opened once on start and closed once on
    shutdown; a dropped stream leaves the app running in the ``disconnected``
    state so the status endpoint can report it.
    """

    def __init__(
        self,
        config: Optional[LihatConfig] = None,
        *,
        subscriber: Optional[TelemetrySubscriber] = None,
        renderer: Optional[Renderer] = None,
        stop_on_disconnect: bool = False,
    ) -> None:
        self._config = config or load_config()
        self._controller = DashboardController(self._config.stream.window_size)
        self._subscriber = subscriber or TelemetrySubscriber(self._config.stream)
        self._renderer = renderer
        self._stop_on_disconnect = stop_on_disconnect
        self._server: Optional[DashboardServer] = None
        self._shutdown_event: Optional[asyncio.Event] = None
        self._state = AppState.STARTING

    @property
    def controller(self) -> DashboardController:
        return self._controller

    @property
    def state(self) -> AppState:
        return self._state

    async def run(self) -> None:
        """Run until shutdown is requested."""

        self._shutdown_event = asyncio.Event()

        LOGGER.info("lihat starting with config: %s", self._config.path)
        try:
            await self._start_services()
            await self._shutdown_event.wait()
        except asyncio.CancelledError:
            LOGGER.info("lihat received shutdown signal")
            raise
        finally:
            await self._stop_services()

    def request_shutdown(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    @classmethod
    def start(
        cls,
        config: Optional[LihatConfig] = None,
        *,
        renderer: Optional[Renderer] = None,
        stop_on_disconnect: bool = False,
    ) -> "DashboardApp":
        instance = cls(
            config=config,
            renderer=renderer,
            stop_on_disconnect=stop_on_disconnect,
        )
        configure_logging(
            instance._config.logging.level,
            log_path=instance._config.logging.path,
            log_network=instance._config.logging.log_network,
        )
        try:
            asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("lihat received shutdown signal")
        return instance

    def _transition_state(self, state: AppState, *, detail: Optional[str] = None) -> None:
        if state == self._state or self._state == AppState.STOPPING:
            return

        previous = self._state
        self._state = state
        LOGGER.info(
            "App state transition %s -> %s (%s)",
            previous.value,
            state.value,
            detail or state.value,
        )

    async def _start_services(self) -> None:
        if self._renderer is not None:
            self._controller.add_listener(self._renderer)

        await self._start_server()

        self._subscriber.register_status_handler(self._on_stream_status)
        await self._subscriber.start(self._controller.handle_event)

    async def _start_server(self) -> None:
        server_config = self._config.server
        if not server_config.enabled or server_config.port <= 0:
            return

        server = DashboardServer(
            self._controller, server_config.host, server_config.port
        )
        try:
            await server.start()
        except OSError as exc:
            LOGGER.error("Failed to start dashboard endpoint: %s", exc)
        else:
            self._server = server

    def _on_stream_status(self, status: StreamStatus, detail: Optional[str]) -> None:
        self._controller.set_status(status, detail)

        if self._state == AppState.STOPPING:
            return

        if status == StreamStatus.CONNECTED:
            self._transition_state(AppState.STREAMING, detail=detail)
        elif status == StreamStatus.DISCONNECTED:
            self._transition_state(AppState.DISCONNECTED, detail=detail)
            if self._stop_on_disconnect:
                self.request_shutdown()

    async def _stop_services(self) -> None:
        self._transition_state(AppState.STOPPING, detail="shutdown requested")

        await self._subscriber.stop()

        if self._server is not None:
            await self._server.stop()
            self._server = None

        if self._renderer is not None:
            self._controller.remove_listener(self._renderer)

        if self._shutdown_event is not None:
            self._shutdown_event.set()
