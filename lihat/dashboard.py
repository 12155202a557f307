"""Dashboard state: the latest snapshot and the rolling chart window."""

from __future__ import annotations

import json
import logging
from datetime import tzinfo
from typing import Callable, Optional

from .constants import DEFAULT_WINDOW_SIZE
from .models import DataPoint, Snapshot
from .sse import ServerSentEvent
from .subscriber import StreamStatus
from .window import RollingWindow

LOGGER = logging.getLogger(__name__)

Listener = Callable[["DashboardController"], None]

# Cap on how much of a rejected payload is echoed into the log.
_LOGGED_PAYLOAD_CHARS = 200


class DashboardController:
    """Single owner of the dashboard state.

    ``on_message`` is the only mutator. It replaces the snapshot and window
    with new immutable values, so readers always observe a complete state.
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        *,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._tz = tz
        self._snapshot = Snapshot()
        self._window = RollingWindow.initialize(window_size)
        self._status = StreamStatus.IDLE
        self._status_detail: Optional[str] = None
        self._last_error: Optional[str] = None
        self._messages_received = 0
        self._messages_rejected = 0
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def window(self) -> RollingWindow:
        return self._window

    @property
    def status(self) -> StreamStatus:
        return self._status

    @property
    def status_detail(self) -> Optional[str]:
        return self._status_detail

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def messages_received(self) -> int:
        return self._messages_received

    @property
    def messages_rejected(self) -> int:
        return self._messages_rejected

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def on_message(self, data: str) -> bool:
        """Apply one ``metrics`` payload.

        Returns True when the state was updated. A payload that is not valid
        JSON or does not match the snapshot shape is logged and skipped.
        """

        self._messages_received += 1
        try:
            snapshot = Snapshot.from_payload(json.loads(data))
            point = DataPoint.from_snapshot(snapshot, tz=self._tz)
        except ValueError as exc:
            self._messages_rejected += 1
            self._last_error = str(exc)
            LOGGER.warning(
                "Skipping malformed metrics payload (%s): %s",
                exc,
                data[:_LOGGED_PAYLOAD_CHARS],
            )
            return False

        self._snapshot = snapshot
        self._window = self._window.push(point)
        self._last_error = None
        self._notify()
        return True

    def handle_event(self, event: ServerSentEvent) -> None:
        self.on_message(event.data)

    def set_status(self, status: StreamStatus, detail: Optional[str] = None) -> None:
        if status == self._status and detail == self._status_detail:
            return
        LOGGER.info(
            "Stream status %s -> %s (%s)",
            self._status.value,
            status.value,
            detail or status.value,
        )
        self._status = status
        self._status_detail = detail
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                LOGGER.exception("Dashboard listener failed")
