"""Lazy, single-pass sequence of typed events over a live streaming response."""

import json
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

import httpx
import pydantic
import structlog

from dify_client.api.constants import CHAT_TERMINAL_EVENTS, DONE_SENTINEL
from dify_client.api.errors import decode_error, map_stream_error, map_transport_error
from dify_client.streaming.decoder import SSEDecoder, ServerSentEvent
from dify_client.streaming.events import ErrorEvent, StreamEvent, parse_stream_event

logger = structlog.get_logger(__name__)

ReleaseCallback = Callable[[], Awaitable[None]]


class EventStream:
    """
    Async iterator of StreamEvent values decoded from a byte stream.

    Handles:
    - Chunk-boundary independent framing via SSEDecoder
    - ``[DONE]`` sentinel and terminal event types
    - In-band error events, raised as ServiceError
    - Releasing the connection on every exit path

    Usage:
        async with await client.chat_messages_stream(request) as events:
            async for event in events:
                ...

    The sequence is not restartable. Once it ends (terminal event, error,
    EOF or ``aclose``) further iteration raises StopAsyncIteration.
    """

    def __init__(
        self,
        chunks: AsyncIterator[bytes],
        *,
        release: ReleaseCallback | None = None,
        terminal_events: Iterable[str] = CHAT_TERMINAL_EVENTS,
    ) -> None:
        """
        Initialize the event stream.

        Args:
            chunks: Raw body chunks as they arrive
            release: Called exactly once when the stream ends, to free the connection
            terminal_events: Event types that end the sequence after being yielded
        """
        self._chunks = chunks
        self._release = release
        self._terminal_events = frozenset(terminal_events)
        self._decoder = SSEDecoder()
        self._closed = False

        # Identifiers seen so far, for continuing or stopping the conversation
        self.last_event_id: str | None = None
        self.conversation_id: str | None = None
        self.message_id: str | None = None
        self.task_id: str | None = None

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        *,
        terminal_events: Iterable[str] = CHAT_TERMINAL_EVENTS,
    ) -> "EventStream":
        """Wrap a live httpx streaming response. Closing the stream closes the response."""
        return cls(response.aiter_bytes(), release=response.aclose, terminal_events=terminal_events)

    @property
    def closed(self) -> bool:
        """Whether the sequence has ended and the connection was released."""
        return self._closed

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> StreamEvent:
        while not self._closed:
            sse = await self._next_buffered()
            if sse is None:
                await self._read_chunk()
                continue

            if sse.id is not None:
                self.last_event_id = sse.id

            if sse.data.strip() == DONE_SENTINEL:
                await self.aclose()
                break

            event = await self._decode(sse)
            self._track(event)

            if isinstance(event, ErrorEvent):
                await self.aclose()
                raise map_stream_error(event.status, event.code, event.message)

            if event.event in self._terminal_events:
                await self.aclose()
            return event

        raise StopAsyncIteration

    async def aclose(self) -> None:
        """End the sequence and release the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            if aclose_chunks := getattr(self._chunks, "aclose", None):
                await aclose_chunks()
        finally:
            if self._release is not None:
                await self._release()

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # =========================================================================
    # Internal Methods
    # =========================================================================

    async def _next_buffered(self) -> ServerSentEvent | None:
        try:
            return self._decoder.next_event()
        except UnicodeDecodeError as e:
            await self.aclose()
            raise decode_error("stream block is not valid UTF-8", e.object) from e

    async def _read_chunk(self) -> None:
        """Pull one chunk into the decoder, or finish the stream at EOF."""
        try:
            chunk = await anext(self._chunks)
        except StopAsyncIteration:
            if self._decoder.pending:
                logger.warning("dify_stream_truncated", pending_bytes=self._decoder.pending)
            else:
                logger.debug("dify_stream_eof_without_terminal")
            await self.aclose()
            return
        except (httpx.RequestError, TimeoutError) as e:
            await self.aclose()
            raise map_transport_error(e) from e
        self._decoder.feed(chunk)

    async def _decode(self, sse: ServerSentEvent) -> StreamEvent:
        """Decode one event block into a typed event, failing the stream on bad data."""
        payload: object = {}
        if sse.data:
            try:
                payload = json.loads(sse.data)
            except ValueError as e:
                await self.aclose()
                raise decode_error(f"invalid JSON in {sse.event!r} event", sse.data) from e

        if not isinstance(payload, dict):
            await self.aclose()
            raise decode_error(f"{sse.event!r} event payload is not an object", sse.data)

        event_type = payload.get("event") or sse.event
        try:
            return parse_stream_event(str(event_type), payload)
        except pydantic.ValidationError as e:
            await self.aclose()
            raise decode_error(
                f"malformed {event_type!r} event ({e.error_count()} validation errors)", sse.data
            ) from e

    def _track(self, event: StreamEvent) -> None:
        if event.conversation_id:
            self.conversation_id = event.conversation_id
        if event.message_id:
            self.message_id = event.message_id
        task_id = getattr(event, "task_id", None)
        if task_id:
            self.task_id = task_id

