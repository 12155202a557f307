"""Decoder for ``text/event-stream`` (server-sent events) responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Optional

DEFAULT_EVENT_TYPE = "message"


@dataclass(frozen=True, slots=True)
class ServerSentEvent:
    event: str = DEFAULT_EVENT_TYPE
    data: str = ""
    id: Optional[str] = None
    retry: Optional[int] = None


class SSEDecoder:
    """Incremental line decoder following the HTML event-stream rules.

    Feed one line at a time without its terminator. A blank line completes
    the pending event; comments and unknown fields are ignored.
    """

    def __init__(self) -> None:
        self._event_type = ""
        self._data: list[str] = []
        self._last_event_id: Optional[str] = None
        self._retry: Optional[int] = None
        self._started = False

    @property
    def last_event_id(self) -> Optional[str]:
        return self._last_event_id

    def feed_line(self, line: str) -> Optional[ServerSentEvent]:
        if not self._started:
            self._started = True
            line = line.lstrip("\ufeff")

        if not line:
            return self._dispatch()

        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event_type = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self._last_event_id = value
        elif name == "retry":
            if value.isdigit():
                self._retry = int(value)
        return None

    def _dispatch(self) -> Optional[ServerSentEvent]:
        if not self._data:
            self._event_type = ""
            return None

        event = ServerSentEvent(
            event=self._event_type or DEFAULT_EVENT_TYPE,
            data="\n".join(self._data),
            id=self._last_event_id,
            retry=self._retry,
        )
        self._event_type = ""
        self._data = []
        return event


async def iter_events(lines: AsyncIterable[bytes]) -> AsyncIterator[ServerSentEvent]:
    """Yield events from an async iterable of raw response lines.

    An event still pending when the stream ends is discarded.
    """

    decoder = SSEDecoder()
    async for raw in lines:
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        event = decoder.feed_line(line)
        if event is not None:
            yield event
