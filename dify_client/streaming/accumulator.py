"""
Answer Accumulation
===================

Folds a sequence of stream events into the final answer, the way a chat UI
assembles a message while it streams in.
"""

from collections.abc import AsyncIterable
from typing import Any

from dify_client.streaming.events import (
    AgentMessageEvent,
    AgentThoughtEvent,
    MessageEndEvent,
    MessageEvent,
    MessageFileEvent,
    MessageReplaceEvent,
    StreamEvent,
    WorkflowFinishedEvent,
)


class MessageAccumulator:
    """
    Represents an answer being accumulated from stream events.
    """

    def __init__(self) -> None:
        self.message_id: str | None = None
        self.conversation_id: str | None = None
        self.task_id: str | None = None
        self.answer: str = ""
        self.answer_chunks: list[str] = []
        self.files: list[MessageFileEvent] = []
        self.thoughts: list[AgentThoughtEvent] = []
        self.metadata: dict[str, Any] = {}
        self.outputs: Any = None
        self.is_streaming: bool = True

    def merge_event(self, event: StreamEvent) -> None:
        """Merge one stream event into the answer state."""
        self.message_id = event.message_id or self.message_id
        self.conversation_id = event.conversation_id or self.conversation_id
        self.task_id = getattr(event, "task_id", None) or self.task_id

        handlers = {
            "message": self._handle_answer_chunk,
            "agent_message": self._handle_answer_chunk,
            "message_replace": self._handle_message_replace,
            "message_file": self._handle_message_file,
            "agent_thought": self._handle_agent_thought,
            "message_end": self._handle_message_end,
            "workflow_finished": self._handle_workflow_finished,
        }

        if handler := handlers.get(event.event):
            handler(event)

    def _handle_answer_chunk(self, event: MessageEvent | AgentMessageEvent) -> None:
        if event.answer:
            self.answer += event.answer
            self.answer_chunks.append(event.answer)

    def _handle_message_replace(self, event: MessageReplaceEvent) -> None:
        """Moderation replaces everything streamed so far."""
        self.answer = event.answer
        self.answer_chunks = [event.answer]

    def _handle_message_file(self, event: MessageFileEvent) -> None:
        self.files.append(event)

    def _handle_agent_thought(self, event: AgentThoughtEvent) -> None:
        # Thoughts are re-sent as they progress; keep the latest per id
        self.thoughts = [t for t in self.thoughts if t.id != event.id]
        self.thoughts.append(event)
        self.thoughts.sort(key=lambda t: t.position)

    def _handle_message_end(self, event: MessageEndEvent) -> None:
        self.metadata = event.metadata
        self.is_streaming = False

    def _handle_workflow_finished(self, event: WorkflowFinishedEvent) -> None:
        self.outputs = event.data.outputs
        self.is_streaming = False

    @classmethod
    async def collect(cls, events: AsyncIterable[StreamEvent]) -> "MessageAccumulator":
        """Consume a whole event sequence and return the accumulated answer.

        Raises:
            ServiceError: Whatever the sequence raises
        """
        accumulator = cls()
        async for event in events:
            accumulator.merge_event(event)
        accumulator.is_streaming = False
        return accumulator
