"""
Response Models
===============

Typed bodies returned by buffered endpoints. Unmodelled fields are kept as
extras so a response always round-trips the JSON it was decoded from.
"""

from enum import Enum
from typing import Any, Literal, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from dify_client.api.errors import decode_error, map_error_response, parse_error_payload
from dify_client.streaming.events import WorkflowFinishedData


class AppMode(str, Enum):
    COMPLETION = "completion"
    WORKFLOW = "workflow"
    CHAT = "chat"
    ADVANCED_CHAT = "advanced-chat"
    AGENT_CHAT = "agent-chat"
    CHANNEL = "channel"


class _Response(BaseModel):
    model_config = ConfigDict(extra="allow")


class ResultResponse(_Response):
    """Generic ``{"result": "success"}`` acknowledgement."""

    result: str


class ChatMessagesResponse(_Response):
    event: str = "message"
    message_id: str
    conversation_id: str | None = None
    task_id: str | None = None
    mode: AppMode
    answer: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: int


class CompletionMessagesResponse(_Response):
    event: str = "message"
    message_id: str
    task_id: str | None = None
    mode: AppMode
    answer: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: int


class WorkflowsRunResponse(_Response):
    workflow_run_id: str
    task_id: str
    data: WorkflowFinishedData


class FilesUploadResponse(_Response):
    id: str
    name: str
    size: int
    extension: str
    mime_type: str
    created_by: str
    created_at: int


class AudioToTextResponse(_Response):
    text: str


class MessagesSuggestedResponse(_Response):
    result: str
    data: list[str]


class MessageFile(_Response):
    id: str
    type: str
    url: str
    belongs_to: Literal["user", "assistant"]


class MessageFeedback(_Response):
    rating: Literal["like", "dislike"]


class MessageData(_Response):
    id: str
    conversation_id: str
    inputs: dict[str, Any] = Field(default_factory=dict)
    query: str
    answer: str
    message_files: list[MessageFile] = Field(default_factory=list)
    feedback: MessageFeedback | None = None
    retriever_resources: list[dict[str, Any]] = Field(default_factory=list)
    created_at: int


class MessagesResponse(_Response):
    limit: int
    has_more: bool
    data: list[MessageData]


class ConversationData(_Response):
    id: str
    name: str
    inputs: dict[str, Any] = Field(default_factory=dict)
    status: str | None = None
    introduction: str | None = None
    created_at: int
    updated_at: int | None = None


class ConversationsResponse(_Response):
    limit: int
    has_more: bool
    data: list[ConversationData]


class FeatureSwitch(_Response):
    enabled: bool = False


class ParametersResponse(_Response):
    opening_statement: str = ""
    suggested_questions: list[str] = Field(default_factory=list)
    suggested_questions_after_answer: FeatureSwitch = Field(default_factory=FeatureSwitch)
    speech_to_text: FeatureSwitch = Field(default_factory=FeatureSwitch)
    text_to_speech: FeatureSwitch = Field(default_factory=FeatureSwitch)
    retriever_resource: FeatureSwitch = Field(default_factory=FeatureSwitch)
    annotation_reply: FeatureSwitch = Field(default_factory=FeatureSwitch)
    # Each item maps a control type ("text-input", "select", ...) to its settings
    user_input_form: list[dict[str, dict[str, Any]]] = Field(default_factory=list)
    file_upload: dict[str, Any] = Field(default_factory=dict)
    system_parameters: dict[str, Any] = Field(default_factory=dict)


class ToolIconEmoji(BaseModel):
    background: str
    content: str


class MetaResponse(_Response):
    tool_icons: dict[str, str | ToolIconEmoji] = Field(default_factory=dict)


ResponseT = TypeVar("ResponseT", bound=BaseModel)


def parse_response(model: type[ResponseT], status: int, body: bytes) -> ResponseT:
    """Decode a 2xx body into ``model``.

    A body that does not fit the model but is a service error object
    (``code``/``message``/``status``) is reported as that error.

    Raises:
        ServiceError: DECODE for malformed bodies, or the embedded service error
    """
    try:
        return model.model_validate_json(body)
    except pydantic.ValidationError as e:
        payload = parse_error_payload(body)
        if payload is not None and isinstance(payload.get("status"), int):
            raise map_error_response(payload["status"], body) from e
        raise decode_error(
            f"unexpected {model.__name__} body ({e.error_count()} validation errors)",
            body,
            http_status=status,
        ) from e


__all__ = [
    "AppMode",
    "AudioToTextResponse",
    "ChatMessagesResponse",
    "CompletionMessagesResponse",
    "ConversationData",
    "ConversationsResponse",
    "FeatureSwitch",
    "FilesUploadResponse",
    "MessageData",
    "MessageFeedback",
    "MessageFile",
    "MessagesResponse",
    "MessagesSuggestedResponse",
    "MetaResponse",
    "ParametersResponse",
    "ResultResponse",
    "ToolIconEmoji",
    "WorkflowsRunResponse",
    "parse_response",
]
