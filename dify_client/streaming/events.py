"""
Stream Event Models
===================

Typed events decoded from a streaming response. Each model is keyed by the
``event`` field of the payload; :func:`parse_stream_event` dispatches on it.
Fields the client does not model are kept as extras.
"""

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FinishedStatus(str, Enum):
    """Execution status of a workflow or node."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    STOPPED = "stopped"


class BaseEvent(BaseModel):
    """Fields shared by most events."""

    model_config = ConfigDict(extra="allow")

    message_id: str | None = None
    conversation_id: str | None = None
    created_at: int | None = None


class MessageEvent(BaseEvent):
    """A chunk of the LLM answer."""

    event: Literal["message"] = "message"
    id: str | None = None
    task_id: str
    answer: str


class AgentMessageEvent(BaseEvent):
    """A chunk of the answer in agent mode."""

    event: Literal["agent_message"] = "agent_message"
    id: str | None = None
    task_id: str
    answer: str


class AgentThoughtEvent(BaseEvent):
    """An agent reasoning step, including tool calls."""

    event: Literal["agent_thought"] = "agent_thought"
    id: str
    task_id: str
    position: int
    thought: str = ""
    observation: str = ""
    tool: str = ""
    tool_labels: Any = None
    tool_input: str = ""
    message_files: list[str] = Field(default_factory=list)


class MessageFileEvent(BaseEvent):
    """A file produced by the assistant."""

    event: Literal["message_file"] = "message_file"
    id: str
    type: str
    belongs_to: Literal["user", "assistant"]
    url: str


class MessageEndEvent(BaseEvent):
    """End of the answer. Carries usage and retriever metadata."""

    event: Literal["message_end"] = "message_end"
    id: str | None = None
    task_id: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class MessageReplaceEvent(BaseEvent):
    """Moderation replaced the whole answer."""

    event: Literal["message_replace"] = "message_replace"
    task_id: str
    answer: str


class TtsMessageEvent(BaseEvent):
    """A base64 audio chunk of the spoken answer."""

    event: Literal["tts_message"] = "tts_message"
    task_id: str
    audio: str


class TtsMessageEndEvent(BaseEvent):
    """End of the spoken answer."""

    event: Literal["tts_message_end"] = "tts_message_end"
    task_id: str
    audio: str = ""


class WorkflowStartedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    workflow_id: str
    sequence_number: int
    inputs: Any = None
    created_at: int


class NodeStartedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    node_id: str
    node_type: str
    title: str
    index: int
    predecessor_node_id: str | None = None
    inputs: Any = None
    created_at: int


class ExecutionMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_tokens: int | None = None
    total_price: str | None = None
    currency: str | None = None


class NodeFinishedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    node_id: str
    index: int
    predecessor_node_id: str | None = None
    inputs: Any = None
    process_data: Any = None
    outputs: Any = None
    status: FinishedStatus
    error: str | None = None
    elapsed_time: float | None = None
    execution_metadata: ExecutionMetadata | None = None
    created_at: int


class WorkflowFinishedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    workflow_id: str
    status: FinishedStatus
    outputs: Any = None
    error: str | None = None
    elapsed_time: float | None = None
    total_tokens: int | None = None
    total_steps: int = 0
    created_at: int
    finished_at: int | None = None


class WorkflowStartedEvent(BaseEvent):
    event: Literal["workflow_started"] = "workflow_started"
    task_id: str
    workflow_run_id: str
    data: WorkflowStartedData


class NodeStartedEvent(BaseEvent):
    event: Literal["node_started"] = "node_started"
    task_id: str
    workflow_run_id: str
    data: NodeStartedData


class NodeFinishedEvent(BaseEvent):
    event: Literal["node_finished"] = "node_finished"
    task_id: str
    workflow_run_id: str
    data: NodeFinishedData


class WorkflowFinishedEvent(BaseEvent):
    event: Literal["workflow_finished"] = "workflow_finished"
    task_id: str
    workflow_run_id: str
    data: WorkflowFinishedData


class ErrorEvent(BaseEvent):
    """In-band error. The stream ends after it."""

    event: Literal["error"] = "error"
    status: int | None = None
    code: str | None = None
    message: str | None = None

    @field_validator("code", mode="before")
    @classmethod
    def _stringify_code(cls, value: Any) -> Any:
        # Some services send numeric error codes
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


class PingEvent(BaseEvent):
    """Keep-alive sent periodically by the server."""

    event: Literal["ping"] = "ping"


class UnknownEvent(BaseEvent):
    """An event name this client does not model. Payload kept verbatim."""

    event: str


StreamEvent = Union[
    MessageEvent,
    AgentMessageEvent,
    AgentThoughtEvent,
    MessageFileEvent,
    MessageEndEvent,
    MessageReplaceEvent,
    TtsMessageEvent,
    TtsMessageEndEvent,
    WorkflowStartedEvent,
    NodeStartedEvent,
    NodeFinishedEvent,
    WorkflowFinishedEvent,
    ErrorEvent,
    PingEvent,
    UnknownEvent,
]

EVENT_TYPES: dict[str, type[BaseEvent]] = {
    "message": MessageEvent,
    "agent_message": AgentMessageEvent,
    "agent_thought": AgentThoughtEvent,
    "message_file": MessageFileEvent,
    "message_end": MessageEndEvent,
    "message_replace": MessageReplaceEvent,
    "tts_message": TtsMessageEvent,
    "tts_message_end": TtsMessageEndEvent,
    "workflow_started": WorkflowStartedEvent,
    "node_started": NodeStartedEvent,
    "node_finished": NodeFinishedEvent,
    "workflow_finished": WorkflowFinishedEvent,
    "error": ErrorEvent,
    "ping": PingEvent,
}


def parse_stream_event(event_type: str, payload: dict[str, Any]) -> StreamEvent:
    """Validate a decoded payload into the model for its event type.

    Args:
        event_type: Event name from the payload (or the SSE ``event:`` field)
        payload: Decoded JSON object

    Returns:
        The typed event

    Raises:
        pydantic.ValidationError: If the payload does not fit the model
    """
    data = {**payload, "event": event_type}
    model = EVENT_TYPES.get(event_type, UnknownEvent)
    return model.model_validate(data)
