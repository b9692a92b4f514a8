"""
Request Models
==============

Typed request bodies for each endpoint. Models validate on construction:
required identifiers must be non-empty and enum fields must hold known values.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator


def _require_non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty or whitespace")
    return value


# Rejects blank values but sends the caller's text unchanged
NonEmptyStr = Annotated[str, AfterValidator(_require_non_blank)]


class ResponseMode(str, Enum):
    """How the service returns generated content."""

    BLOCKING = "blocking"
    STREAMING = "streaming"


class Rating(str, Enum):
    """Message feedback rating."""

    LIKE = "like"
    DISLIKE = "dislike"


class SortBy(str, Enum):
    """Conversation list ordering (prefix ``-`` for descending)."""

    CREATED_AT = "created_at"
    CREATED_AT_DESC = "-created_at"
    UPDATED_AT = "updated_at"
    UPDATED_AT_DESC = "-updated_at"


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)


class RemoteUrlFile(BaseModel):
    """A file referenced by URL."""

    transfer_method: Literal["remote_url"] = "remote_url"
    type: Literal["image", "document", "audio", "video", "custom"] = "image"
    url: NonEmptyStr


class LocalFile(BaseModel):
    """A file previously uploaded through ``files_upload``."""

    transfer_method: Literal["local_file"] = "local_file"
    type: Literal["image", "document", "audio", "video", "custom"] = "image"
    upload_file_id: NonEmptyStr


ChatMessageFile = Annotated[Union[RemoteUrlFile, LocalFile], Field(discriminator="transfer_method")]


class ChatMessagesRequest(_Request):
    """Send a chat message. ``response_mode`` is set by the client method."""

    query: NonEmptyStr
    user: NonEmptyStr
    inputs: dict[str, Any] = Field(default_factory=dict)
    conversation_id: str = ""
    files: list[ChatMessageFile] = Field(default_factory=list)
    auto_generate_name: bool = True


class CompletionMessagesRequest(_Request):
    """Send a request to a text-generation app."""

    user: NonEmptyStr
    inputs: dict[str, Any] = Field(default_factory=dict)
    files: list[ChatMessageFile] = Field(default_factory=list)


class WorkflowsRunRequest(_Request):
    """Execute a workflow app."""

    user: NonEmptyStr
    inputs: dict[str, Any] = Field(default_factory=dict)
    files: list[ChatMessageFile] = Field(default_factory=list)


class StreamTaskStopRequest(_Request):
    """Stop a streaming task. Only valid for streaming responses."""

    task_id: NonEmptyStr
    user: NonEmptyStr


class FilesUploadRequest(_Request):
    """Upload an image for later use in a message."""

    file: bytes = Field(repr=False)
    user: NonEmptyStr


class AudioToTextRequest(_Request):
    """Transcribe an audio file."""

    file: bytes = Field(repr=False)
    user: NonEmptyStr


class TextToAudioRequest(_Request):
    """Synthesize speech from text or from an existing message."""

    user: NonEmptyStr
    text: str | None = None
    message_id: str | None = None
    streaming: bool = False

    @model_validator(mode="after")
    def _require_source(self) -> "TextToAudioRequest":
        if not (self.text or self.message_id):
            raise ValueError("either text or message_id is required")
        return self


class MessagesFeedbacksRequest(_Request):
    """Rate a message. ``rating=None`` withdraws a previous rating."""

    message_id: NonEmptyStr
    user: NonEmptyStr
    rating: Rating | None = None
    content: str | None = None


class MessagesSuggestedRequest(_Request):
    """Fetch suggested follow-up questions for a message."""

    message_id: NonEmptyStr
    user: NonEmptyStr


class MessagesRequest(_Request):
    """Fetch conversation history, newest page first."""

    conversation_id: NonEmptyStr
    user: NonEmptyStr
    first_id: str | None = None
    limit: int | None = Field(default=None, ge=1, le=100)


class ConversationsRequest(_Request):
    """List the user's conversations."""

    user: NonEmptyStr
    last_id: str | None = None
    limit: int | None = Field(default=None, ge=1, le=100)
    pinned: bool | None = None
    sort_by: SortBy | None = None


class ConversationsRenameRequest(_Request):
    """Rename a conversation, or have the service generate a name."""

    conversation_id: NonEmptyStr
    user: NonEmptyStr
    name: str | None = None
    auto_generate: bool = False

    @model_validator(mode="after")
    def _require_name(self) -> "ConversationsRenameRequest":
        if not self.auto_generate and not (self.name and self.name.strip()):
            raise ValueError("name is required unless auto_generate is true")
        return self


class ConversationsDeleteRequest(_Request):
    """Delete a conversation."""

    conversation_id: NonEmptyStr
    user: NonEmptyStr


class ParametersRequest(_Request):
    """Fetch the app's input parameters and feature switches."""

    user: NonEmptyStr


class MetaRequest(_Request):
    """Fetch the app's meta information (tool icons)."""

    user: NonEmptyStr
