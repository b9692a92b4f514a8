"""Incremental decoder for the ``text/event-stream`` wire format.

Bytes are buffered as they arrive and split into event blocks on blank
lines. Framing is done on bytes, so neither a line nor a multi-byte UTF-8
character needs to arrive in a single chunk.
"""

import re
from dataclasses import dataclass

# A blank line: two consecutive line terminators, each CRLF, LF or CR.
# A lone CR is only a terminator when it is not the start of a CRLF.
_EVENT_DELIMITER = re.compile(rb"(?:\r\n|\n|\r(?!\n))(?:\r\n|\n|\r)")
_LEADING_TERMINATORS = re.compile(rb"[\r\n]+")
_LINE_SPLIT = re.compile(r"\r\n|\r|\n")

DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched event block."""

    event: str = DEFAULT_EVENT
    data: str = ""
    id: str | None = None
    retry: int | None = None


class SSEDecoder:
    """Turns a chunked byte stream into ServerSentEvent blocks.

    ``feed`` appends bytes; ``next_event`` extracts at most one complete
    block per call, so only one partial event is ever held beyond the
    unprocessed bytes already received.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> None:
        """Append newly received bytes."""
        self._buffer.extend(chunk)

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet consumed as a complete block."""
        return len(self._buffer)

    def next_event(self) -> ServerSentEvent | None:
        """Extract the next complete event from the buffer.

        Blocks that carry no dispatchable fields (comments, keep-alive blank
        lines) are consumed and skipped.

        Returns:
            The next event, or None when more bytes are needed

        Raises:
            UnicodeDecodeError: If a complete block is not valid UTF-8
        """
        while True:
            # Stray terminators between blocks (e.g. the LF of a CRLF split off
            # by the previous delimiter) belong to no event
            if leading := _LEADING_TERMINATORS.match(self._buffer):
                del self._buffer[: leading.end()]

            match = _EVENT_DELIMITER.search(self._buffer)
            if match is None:
                return None

            block = bytes(self._buffer[: match.start()])
            del self._buffer[: match.end()]

            if event := self._parse_block(block.decode("utf-8")):
                return event

    @staticmethod
    def _parse_block(text: str) -> ServerSentEvent | None:
        """Parse the field lines of one block.

        SSE format:
            id: 123
            event: message
            data: {"answer": "hello"}
        """
        event_type: str | None = None
        data_lines: list[str] = []
        event_id: str | None = None
        retry: int | None = None

        for line in _LINE_SPLIT.split(text):
            if not line or line.startswith(":"):
                continue

            name, sep, value = line.partition(":")
            if sep and value.startswith(" "):
                value = value[1:]

            if name == "event":
                event_type = value
            elif name == "data":
                data_lines.append(value)
            elif name == "id":
                event_id = value
            elif name == "retry":
                if value.isascii() and value.isdigit():
                    retry = int(value)

        if event_type is None and not data_lines:
            return None

        return ServerSentEvent(
            event=event_type or DEFAULT_EVENT,
            data="\n".join(data_lines),
            id=event_id,
            retry=retry,
        )
