"""Tests for the DashboardApp lifecycle."""

from __future__ import annotations

import asyncio
import json
from configparser import ConfigParser
from pathlib import Path
from typing import Callable

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web

from lihat.app import AppState, DashboardApp
from lihat.config import LihatConfig, LoggingConfig, ServerConfig, StreamConfig
from lihat.server import health_document
from lihat.subscriber import StreamStatus


def _build_config(url: str, *, server_port: int = 0) -> LihatConfig:
    return LihatConfig(
        stream=StreamConfig(url=url, window_size=20),
        logging=LoggingConfig(path=None),
        server=ServerConfig(enabled=server_port > 0, port=server_port),
        raw=ConfigParser(),
        path=Path("lihat.cfg"),
    )


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def stream_server(unused_tcp_port_factory, make_payload):
    payloads = [
        make_payload(cpuTemperature={"main": 50}),
        make_payload(
            time="2024-05-01T12:35:00Z",
            cpuTemperature={"main": 55},
            cpuUsage={"currentLoad": 12.5},
            memoryUsage={"used": 4294967296},
        ),
    ]

    async def realtime_handler(request: web.Request):
        response = web.StreamResponse()
        response.content_type = "text/event-stream"
        await response.prepare(request)
        for payload in payloads:
            await response.write(
                f"event: metrics\ndata: {json.dumps(payload)}\n\n".encode("utf-8")
            )
        await response.write(b"event: metrics\ndata: {broken\n\n")
        await response.write_eof()
        return response

    app = web.Application()
    app.router.add_get("/realtime", realtime_handler)

    runner = web.AppRunner(app)
    await runner.setup()
    port = unused_tcp_port_factory()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()

    try:
        yield {"url": f"http://127.0.0.1:{port}/realtime", "payloads": payloads}
    finally:
        await runner.cleanup()


@pytest.mark.asyncio
async def test_app_applies_stream_and_stops_on_disconnect(stream_server):
    rendered: list[float] = []
    app = DashboardApp(
        _build_config(stream_server["url"]),
        renderer=lambda controller: rendered.append(
            controller.window.latest().cpu_temp
        ),
        stop_on_disconnect=True,
    )

    await asyncio.wait_for(app.run(), timeout=3.0)

    controller = app.controller
    assert controller.snapshot.as_dict() == stream_server["payloads"][-1]
    latest = controller.window.latest()
    assert latest.cpu_temp == 55
    assert latest.cpu_usage == 12.5
    assert f"{latest.memory_used:.2f}" == "4.00"
    assert len(controller.window) == 20
    assert controller.messages_received == 3
    assert controller.messages_rejected == 1
    assert controller.status == StreamStatus.DISCONNECTED
    assert 50 in rendered and 55 in rendered
    assert app.state == AppState.STOPPING


@pytest.mark.asyncio
async def test_app_stays_up_and_reports_disconnect(stream_server):
    app = DashboardApp(_build_config(stream_server["url"]))

    task = asyncio.create_task(app.run())
    try:
        await _wait_for(lambda: app.state == AppState.DISCONNECTED)

        document = health_document(app.controller)
        assert document["status"] == "degraded"
        assert document["stream"]["state"] == "disconnected"
        assert document["stream"]["detail"] == "stream closed by server"
        assert not task.done()
    finally:
        app.request_shutdown()
        await asyncio.wait_for(task, timeout=2.0)

    assert app.state == AppState.STOPPING


@pytest.mark.asyncio
async def test_app_serves_dashboard_endpoint(stream_server, unused_tcp_port):
    app = DashboardApp(_build_config(stream_server["url"], server_port=unused_tcp_port))

    task = asyncio.create_task(app.run())
    try:
        await _wait_for(lambda: app.controller.window.latest().cpu_temp == 55)

        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"http://127.0.0.1:{unused_tcp_port}/api/dashboard"
            ) as response:
                document = await response.json()

        assert document["window"][-1]["cpuTemp"] == 55
        assert document["readouts"]["memoryUsage"]["value"] == "4.00 GB"
    finally:
        app.request_shutdown()
        await asyncio.wait_for(task, timeout=2.0)
