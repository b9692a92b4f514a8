"""Streaming response decoding: SSE framing, typed events and answer accumulation."""

from dify_client.streaming.accumulator import MessageAccumulator
from dify_client.streaming.decoder import SSEDecoder, ServerSentEvent
from dify_client.streaming.events import (
    AgentMessageEvent,
    AgentThoughtEvent,
    ErrorEvent,
    MessageEndEvent,
    MessageEvent,
    MessageFileEvent,
    MessageReplaceEvent,
    NodeFinishedEvent,
    NodeStartedEvent,
    PingEvent,
    StreamEvent,
    TtsMessageEndEvent,
    TtsMessageEvent,
    UnknownEvent,
    WorkflowFinishedEvent,
    WorkflowStartedEvent,
    parse_stream_event,
)
from dify_client.streaming.stream import EventStream

__all__ = [
    "AgentMessageEvent",
    "AgentThoughtEvent",
    "ErrorEvent",
    "EventStream",
    "MessageAccumulator",
    "MessageEndEvent",
    "MessageEvent",
    "MessageFileEvent",
    "MessageReplaceEvent",
    "NodeFinishedEvent",
    "NodeStartedEvent",
    "PingEvent",
    "SSEDecoder",
    "ServerSentEvent",
    "StreamEvent",
    "TtsMessageEndEvent",
    "TtsMessageEvent",
    "UnknownEvent",
    "WorkflowFinishedEvent",
    "WorkflowStartedEvent",
    "parse_stream_event",
]
