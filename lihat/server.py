"""HTTP endpoint exposing stream health and the rendered dashboard."""

from __future__ import annotations

import contextlib
import logging
from typing import Dict, Optional

from aiohttp import web

from .dashboard import DashboardController
from .presentation import render_dashboard
from .subscriber import StreamStatus

LOGGER = logging.getLogger(__name__)


def health_document(controller: DashboardController) -> Dict[str, object]:
    """Summarise stream health from the dashboard state.

    The service is ``ok`` only while the subscription is connected.
    """

    healthy = controller.status == StreamStatus.CONNECTED
    return {
        "status": "ok" if healthy else "degraded",
        "stream": {
            "state": controller.status.value,
            "detail": controller.status_detail,
        },
        "messages": {
            "received": controller.messages_received,
            "rejected": controller.messages_rejected,
        },
        "lastError": controller.last_error,
    }


class DashboardServer:
    """Minimal HTTP server exposing `/healthz` and `/api/dashboard`."""

    def __init__(self, controller: DashboardController, host: str, port: int) -> None:
        self._controller = controller
        self._host = host
        self._port = port
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health)
        app.router.add_get("/api/dashboard", self._handle_dashboard)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        LOGGER.info("Dashboard listening on http://%s:%s/", self._host, self._port)

    async def stop(self) -> None:
        with contextlib.suppress(Exception):
            if self._site is not None:
                await self._site.stop()
        if self._runner is not None:
            await self._runner.cleanup()
        self._site = None
        self._runner = None

    async def _handle_health(self, request: web.Request) -> web.Response:
        document = health_document(self._controller)
        status = 200 if document["status"] == "ok" else 503
        return web.json_response(document, status=status)

    async def _handle_dashboard(self, request: web.Request) -> web.Response:
        return web.json_response(render_dashboard(self._controller))
