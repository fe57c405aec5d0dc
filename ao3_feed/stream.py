"""Keep-alive streaming of feed responses.

Building a feed can take longer than a feed reader or proxy is willing to
wait on a silent connection. The coordinator runs the pipeline in the
background and, while it is busy, writes an inert XML comment into the
response once per interval.

Ticks, results and failures all travel through one queue that a single
consumer drains, so only one write is ever in flight and the payload always
follows every tick that was posted before it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from markupsafe import escape

from .errors import FeedError
from .renderer import XML_DECLARATION

logger = logging.getLogger(__name__)

FEED_MEDIA_TYPE = "application/rss+xml"
KEEPALIVE_MARKER = b"<!-- keepalive -->"
DEFAULT_KEEPALIVE_INTERVAL = 1.0
# nginx convention for "client closed request"; the client never sees it.
CLIENT_CLOSED_STATUS = 499

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}

Pipeline = Callable[[], Awaitable[bytes]]
DisconnectCheck = Callable[[], Awaitable[bool]]


class StreamState(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CLOSED = "closed"


class EventKind(Enum):
    TICK = "tick"
    RESULT = "result"
    FAILURE = "failure"
    DISCONNECT = "disconnect"


@dataclass
class StreamEvent:
    kind: EventKind
    payload: bytes = b""
    error: Optional[BaseException] = None


def describe_error(error: BaseException) -> tuple[int, str, str]:
    """Status code, kind and client-facing message for a pipeline failure."""
    if isinstance(error, FeedError):
        return error.status_code, error.kind, error.diagnostic()
    return 500, "internal-error", "internal-error: unexpected failure while building feed"


def error_response(error: BaseException) -> Response:
    """Ordinary HTTP error for failures that happen before any byte is sent."""
    status_code, _, message = describe_error(error)
    return PlainTextResponse(message, status_code=status_code)


def in_band_error(error: BaseException) -> bytes:
    """Terminal marker for failures after keep-alive comments were streamed.

    The marker is a root element that is not ``<rss>``, so a feed reader
    reports a broken document instead of silently accepting an empty feed.
    """
    status_code, kind, message = describe_error(error)
    marker = (
        f'\n<error kind="{escape(kind)}" status="{status_code}">'
        f"{escape(message)}</error>\n"
    )
    return marker.encode("utf-8")


class StreamCoordinator:
    """Owns the single response for one feed request."""

    def __init__(
        self,
        pipeline: Pipeline,
        keepalive: bool = True,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        is_disconnected: Optional[DisconnectCheck] = None,
        label: str = "feed",
    ):
        if keepalive and keepalive_interval <= 0:
            raise ValueError("keepalive_interval must be positive.")
        self._pipeline = pipeline
        self._keepalive = keepalive
        self._interval = keepalive_interval
        self._is_disconnected = is_disconnected
        self._label = label
        self._events: asyncio.Queue[StreamEvent] = asyncio.Queue()
        self._pipeline_task: Optional[asyncio.Task[None]] = None
        self._ticker_task: Optional[asyncio.Task[None]] = None
        self.state = StreamState.IDLE
        self.markers_written = 0

    @property
    def flushed(self) -> bool:
        """Whether any byte of the response has been handed to the server."""
        return self.markers_written > 0

    def _transition(self, state: StreamState) -> None:
        logger.debug("%s: %s -> %s", self._label, self.state.value, state.value)
        self.state = state

    async def respond(self) -> Response:
        """Start the pipeline and return the response for this request."""
        if self.state is not StreamState.IDLE:
            raise RuntimeError("StreamCoordinator.respond() may only be called once.")

        self._transition(StreamState.STREAMING)
        self._pipeline_task = asyncio.create_task(self._run_pipeline())
        if self._keepalive:
            self._ticker_task = asyncio.create_task(self._tick())

        try:
            event = await self._events.get()
        except BaseException:
            self._teardown()
            self._transition(StreamState.CLOSED)
            raise

        if event.kind is EventKind.TICK:
            return StreamingResponse(
                self._stream(),
                media_type=FEED_MEDIA_TYPE,
                headers=STREAM_HEADERS,
            )

        self._teardown()
        response = self._single_response(event)
        self._transition(StreamState.CLOSED)
        return response

    def _single_response(self, event: StreamEvent) -> Response:
        if event.kind is EventKind.RESULT:
            self._transition(StreamState.SUCCEEDED)
            return Response(event.payload, media_type=FEED_MEDIA_TYPE)
        if event.kind is EventKind.FAILURE:
            self._transition(StreamState.FAILED)
            return error_response(event.error)
        logger.info("%s: client went away before the response started", self._label)
        return Response(status_code=CLIENT_CLOSED_STATUS)

    async def _stream(self) -> AsyncIterator[bytes]:
        try:
            self.markers_written += 1
            yield KEEPALIVE_MARKER

            while True:
                event = await self._events.get()
                if event.kind is EventKind.TICK:
                    self.markers_written += 1
                    yield KEEPALIVE_MARKER
                    continue

                self._stop_ticker()
                if event.kind is EventKind.RESULT:
                    self._transition(StreamState.SUCCEEDED)
                    # Comments already precede the document, so the XML
                    # declaration would no longer be at its start.
                    yield event.payload.removeprefix(XML_DECLARATION)
                elif event.kind is EventKind.FAILURE:
                    self._transition(StreamState.FAILED)
                    yield in_band_error(event.error)
                else:
                    logger.info(
                        "%s: client disconnected after %d keep-alive markers",
                        self._label,
                        self.markers_written,
                    )
                return
        finally:
            self._teardown()
            self._transition(StreamState.CLOSED)

    async def _run_pipeline(self) -> None:
        try:
            payload = await self._pipeline()
        except asyncio.CancelledError:
            logger.debug("%s: pipeline abandoned", self._label)
            raise
        except FeedError as exc:
            logger.warning("%s: %s", self._label, exc.diagnostic())
            self._events.put_nowait(StreamEvent(EventKind.FAILURE, error=exc))
        except Exception as exc:
            logger.exception("%s: unexpected failure while building feed", self._label)
            self._events.put_nowait(StreamEvent(EventKind.FAILURE, error=exc))
        else:
            self._events.put_nowait(StreamEvent(EventKind.RESULT, payload=payload))

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if self._is_disconnected is not None and await self._is_disconnected():
                self._cancel_pipeline()
                self._events.put_nowait(StreamEvent(EventKind.DISCONNECT))
                return
            self._events.put_nowait(StreamEvent(EventKind.TICK))

    def _stop_ticker(self) -> None:
        if self._ticker_task is not None and not self._ticker_task.done():
            self._ticker_task.cancel()

    def _cancel_pipeline(self) -> None:
        if self._pipeline_task is not None and not self._pipeline_task.done():
            self._pipeline_task.cancel()

    def _teardown(self) -> None:
        self._stop_ticker()
        self._cancel_pipeline()
