"""Server-sent event subscriber for the host telemetry stream."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

import aiohttp

from .config import StreamConfig
from .sse import ServerSentEvent, iter_events

LOGGER = logging.getLogger(__name__)

EventCallback = Callable[[ServerSentEvent], Awaitable[None] | None]
StatusHandler = Callable[["StreamStatus", Optional[str]], None]

EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


class StreamStatus(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class TelemetrySubscriber:
    """Holds the single long-lived subscription to the telemetry stream.

    The connection is opened by ``start`` and released by ``stop``. When the
    server closes the stream or the request fails, the subscriber reports
    ``DISCONNECTED`` and stays down; it never reconnects on its own.
    """

    def __init__(
        self,
        config: StreamConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._callbacks: list[EventCallback] = []
        self._status_handlers: list[StatusHandler] = []
        self._listener_task: Optional[asyncio.Task[None]] = None
        self._status = StreamStatus.IDLE

    async def __aenter__(self) -> "TelemetrySubscriber":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    @property
    def status(self) -> StreamStatus:
        return self._status

    @property
    def running(self) -> bool:
        return self._listener_task is not None and not self._listener_task.done()

    async def start(self, callback: EventCallback) -> None:
        """Open the stream and route matching events to ``callback``."""

        if callback in self._callbacks:
            raise ValueError("Callback already registered")

        self._callbacks.append(callback)

        if self._listener_task is not None:
            return

        self._listener_task = asyncio.create_task(self._listen())
        await asyncio.sleep(0)

    async def stop(self) -> None:
        """Close the stream and release the session if this subscriber owns it."""

        self._callbacks.clear()

        if self._listener_task is not None:
            self._listener_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener_task
            self._listener_task = None

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def aclose(self) -> None:
        await self.stop()

    async def wait_closed(self) -> None:
        """Wait until the stream has ended."""

        task = self._listener_task
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(task)

    def remove_callback(self, callback: EventCallback) -> None:
        with contextlib.suppress(ValueError):
            self._callbacks.remove(callback)

    def register_status_handler(self, handler: StatusHandler) -> None:
        self._status_handlers.append(handler)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(
                total=None,
                sock_connect=self.config.connect_timeout_seconds or None,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    def _set_status(self, status: StreamStatus, detail: Optional[str] = None) -> None:
        self._status = status
        for handler in list(self._status_handlers):
            try:
                handler(status, detail)
            except Exception:
                LOGGER.exception("Stream status handler failed")

    async def _listen(self) -> None:
        url = self.config.url
        detail = "stream closed by server"
        self._set_status(StreamStatus.CONNECTING, url)

        try:
            session = self._ensure_session()
            async with session.get(
                url,
                headers={"Accept": EVENT_STREAM_CONTENT_TYPE, "Cache-Control": "no-cache"},
            ) as response:
                response.raise_for_status()
                if response.content_type != EVENT_STREAM_CONTENT_TYPE:
                    raise aiohttp.ContentTypeError(
                        response.request_info,
                        response.history,
                        status=response.status,
                        message=f"unexpected content type {response.content_type!r}",
                        headers=response.headers,
                    )

                LOGGER.info("Subscribed to telemetry stream at %s", url)
                self._set_status(StreamStatus.CONNECTED, url)

                async for event in iter_events(response.content):
                    if event.event != self.config.event:
                        LOGGER.debug("Ignoring %r event", event.event)
                        continue
                    await self._dispatch(event)
        except asyncio.CancelledError:
            detail = "subscription closed"
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            detail = f"{type(exc).__name__}: {exc}"
            LOGGER.warning("Telemetry stream error: %s", detail)
        else:
            LOGGER.warning("Telemetry stream at %s closed by server", url)
        finally:
            self._set_status(StreamStatus.DISCONNECTED, detail)

    async def _dispatch(self, event: ServerSentEvent) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                LOGGER.exception("Telemetry callback failed")
