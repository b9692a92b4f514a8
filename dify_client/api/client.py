"""
Dify API Client
===============

Async client for the Dify app API: chat, completion and workflow calls
(buffered or streamed), file upload, audio, conversation history and
feedback.
"""

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from dify_client.api import constants as paths
from dify_client.api.constants import (
    CHAT_TERMINAL_EVENTS,
    MAX_AUDIO_UPLOAD_BYTES,
    MAX_IMAGE_UPLOAD_BYTES,
    WORKFLOW_TERMINAL_EVENTS,
)
from dify_client.api.errors import (
    ErrorKind,
    ServiceError,
    decode_error,
    map_error_response,
    parse_error_payload,
)
from dify_client.api.requests import (
    AudioToTextRequest,
    ChatMessagesRequest,
    CompletionMessagesRequest,
    ConversationsDeleteRequest,
    ConversationsRenameRequest,
    ConversationsRequest,
    FilesUploadRequest,
    MessagesFeedbacksRequest,
    MessagesRequest,
    MessagesSuggestedRequest,
    MetaRequest,
    ParametersRequest,
    ResponseMode,
    StreamTaskStopRequest,
    TextToAudioRequest,
    WorkflowsRunRequest,
)
from dify_client.api.responses import (
    AudioToTextResponse,
    ChatMessagesResponse,
    CompletionMessagesResponse,
    ConversationData,
    ConversationsResponse,
    FilesUploadResponse,
    MessagesResponse,
    MessagesSuggestedResponse,
    MetaResponse,
    ParametersResponse,
    ResponseT,
    ResultResponse,
    WorkflowsRunResponse,
    parse_response,
)
from dify_client.api.transport import (
    BeforeSend,
    FilePart,
    JsonBody,
    MultipartBody,
    OutgoingRequest,
    Transport,
)
from dify_client.core.config import ClientConfig
from dify_client.streaming.stream import EventStream
from dify_client.utils.file_types import AUDIO_TO_TEXT_KINDS, UPLOAD_IMAGE_KINDS, FileKind, sniff

logger = structlog.get_logger(__name__)


def _path(template: str, **ids: str) -> str:
    """Fill identifiers into a path template, URL-quoting each one."""
    return template.format(**{key: quote(value, safe="") for key, value in ids.items()})


def _check_upload(data: bytes, allowed: frozenset[FileKind], max_bytes: int, what: str) -> FileKind:
    """Validate an upload from its content before any request is sent."""
    kind = sniff(data)
    if kind not in allowed:
        detected = kind.mime_type if kind else "unrecognised content"
        raise ServiceError(
            ErrorKind.BAD_REQUEST,
            f"{what} upload must be one of {sorted(k.extension for k in allowed)}, got {detected}",
            code="unsupported_file_type",
        )
    if len(data) > max_bytes:
        raise ServiceError(
            ErrorKind.BAD_REQUEST,
            f"{what} upload is {len(data)} bytes, limit is {max_bytes}",
            code="file_too_large",
        )
    return kind


class DifyClient:
    """
    Client for the Dify app API.

    Handles:
    - Chat, completion and workflow calls (blocking or streaming)
    - Stopping streaming tasks
    - File upload, speech-to-text and text-to-speech
    - Conversation history, renaming and deletion
    - Message feedback and suggested questions
    - App parameters and meta information

    The client keeps no conversation state; pass ``conversation_id`` back in
    the next request to continue a conversation.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        before_send: BeforeSend | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Base URL, API key, timeout and TLS settings
            http_client: Optional preconfigured httpx client
            before_send: Optional hook to rewrite each request before it is sent
                (for example to override the Authorization header)
        """
        self.config = config
        self.transport = Transport(config, http_client=http_client, before_send=before_send)

    @classmethod
    def from_environment(cls, **kwargs: Any) -> "DifyClient":
        """Create a client configured from DIFY_* environment variables."""
        return cls(ClientConfig.from_environment(), **kwargs)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.transport.aclose()

    async def __aenter__(self) -> "DifyClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _call(self, model: type[ResponseT], request: OutgoingRequest) -> ResponseT:
        """Issue a buffered call and decode the body into ``model``."""
        response = await self.transport.send(request)
        return parse_response(model, response.status_code, response.content)

    async def _stream(self, request: OutgoingRequest, terminal_events: frozenset[str]) -> EventStream:
        """Open a streaming call and wrap the live response in an EventStream."""
        response = await self.transport.open_stream(request)
        return EventStream.from_response(response, terminal_events=terminal_events)

    @staticmethod
    def _generation_body(request: Any, mode: ResponseMode) -> JsonBody:
        body = request.model_dump(mode="json")
        body["response_mode"] = mode.value
        return JsonBody(body)

    # =========================================================================
    # Chat Messages
    # =========================================================================

    async def chat_messages(self, request: ChatMessagesRequest) -> ChatMessagesResponse:
        """
        Send a chat message and wait for the complete answer.

        Args:
            request: Chat message request

        Returns:
            The complete answer with its message and conversation ids
        """
        body = self._generation_body(request, ResponseMode.BLOCKING)
        return await self._call(ChatMessagesResponse, OutgoingRequest("POST", paths.CHAT_MESSAGES, body=body))

    async def chat_messages_stream(self, request: ChatMessagesRequest) -> EventStream:
        """
        Send a chat message and stream the answer.

        Args:
            request: Chat message request

        Returns:
            EventStream ending after ``message_end`` (or ``[DONE]``)

        Raises:
            ServiceError: If the call fails before streaming starts
        """
        body = self._generation_body(request, ResponseMode.STREAMING)
        return await self._stream(OutgoingRequest("POST", paths.CHAT_MESSAGES, body=body), CHAT_TERMINAL_EVENTS)

    async def chat_messages_stop(self, request: StreamTaskStopRequest) -> ResultResponse:
        """Stop a streaming chat answer."""
        return await self._stop_task(paths.CHAT_MESSAGES_STOP, request)

    # =========================================================================
    # Completion Messages
    # =========================================================================

    async def completion_messages(self, request: CompletionMessagesRequest) -> CompletionMessagesResponse:
        """Send a request to a text-generation app and wait for the result."""
        body = self._generation_body(request, ResponseMode.BLOCKING)
        return await self._call(
            CompletionMessagesResponse, OutgoingRequest("POST", paths.COMPLETION_MESSAGES, body=body)
        )

    async def completion_messages_stream(self, request: CompletionMessagesRequest) -> EventStream:
        """Send a request to a text-generation app and stream the result."""
        body = self._generation_body(request, ResponseMode.STREAMING)
        return await self._stream(
            OutgoingRequest("POST", paths.COMPLETION_MESSAGES, body=body), CHAT_TERMINAL_EVENTS
        )

    async def completion_messages_stop(self, request: StreamTaskStopRequest) -> ResultResponse:
        """Stop a streaming text-generation task."""
        return await self._stop_task(paths.COMPLETION_MESSAGES_STOP, request)

    # =========================================================================
    # Workflows
    # =========================================================================

    async def workflows_run(self, request: WorkflowsRunRequest) -> WorkflowsRunResponse:
        """Execute a workflow and wait for it to finish."""
        body = self._generation_body(request, ResponseMode.BLOCKING)
        return await self._call(WorkflowsRunResponse, OutgoingRequest("POST", paths.WORKFLOWS_RUN, body=body))

    async def workflows_run_stream(self, request: WorkflowsRunRequest) -> EventStream:
        """
        Execute a workflow and stream its progress.

        Returns:
            EventStream ending after ``workflow_finished`` (or ``[DONE]``)
        """
        body = self._generation_body(request, ResponseMode.STREAMING)
        return await self._stream(
            OutgoingRequest("POST", paths.WORKFLOWS_RUN, body=body), WORKFLOW_TERMINAL_EVENTS
        )

    async def workflows_stop(self, request: StreamTaskStopRequest) -> ResultResponse:
        """Stop a streaming workflow run."""
        return await self._stop_task(paths.WORKFLOWS_STOP, request)

    async def _stop_task(self, template: str, request: StreamTaskStopRequest) -> ResultResponse:
        path = _path(template, task_id=request.task_id)
        body = JsonBody({"user": request.user})
        return await self._call(ResultResponse, OutgoingRequest("POST", path, body=body))

    # =========================================================================
    # Files & Audio
    # =========================================================================

    async def files_upload(self, request: FilesUploadRequest) -> FilesUploadResponse:
        """
        Upload an image for use in a later message.

        Only png, jpeg, gif and webp are accepted; the type is detected from
        the file content.

        Args:
            request: File bytes and user

        Returns:
            Upload record whose ``id`` goes into ``LocalFile.upload_file_id``

        Raises:
            ServiceError: BAD_REQUEST if the content is not an accepted image
                or is too large (no request is sent)
        """
        _check_upload(request.file, UPLOAD_IMAGE_KINDS, MAX_IMAGE_UPLOAD_BYTES, "image")
        body = MultipartBody(
            fields={"user": request.user},
            files={"file": FilePart(request.file, stem="image_file")},
        )
        return await self._call(FilesUploadResponse, OutgoingRequest("POST", paths.FILES_UPLOAD, body=body))

    async def audio_to_text(self, request: AudioToTextRequest) -> AudioToTextResponse:
        """
        Transcribe an audio file.

        Raises:
            ServiceError: BAD_REQUEST if the content is not accepted audio
                or is too large (no request is sent)
        """
        _check_upload(request.file, AUDIO_TO_TEXT_KINDS, MAX_AUDIO_UPLOAD_BYTES, "audio")
        body = MultipartBody(
            fields={"user": request.user},
            files={"file": FilePart(request.file, stem="audio_file")},
        )
        return await self._call(AudioToTextResponse, OutgoingRequest("POST", paths.AUDIO_TO_TEXT, body=body))

    async def text_to_audio(self, request: TextToAudioRequest) -> bytes:
        """
        Synthesize speech.

        Returns:
            Raw audio bytes

        Raises:
            ServiceError: If the response is not audio
        """
        body = JsonBody(request.model_dump(mode="json", exclude_none=True))
        response = await self.transport.send(OutgoingRequest("POST", paths.TEXT_TO_AUDIO, body=body))

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("audio/"):
            return response.content
        # The service sometimes answers 200 with an error object instead of audio
        payload = parse_error_payload(response.content)
        if payload is not None and isinstance(payload.get("status"), int):
            raise map_error_response(payload["status"], response.content)
        raise decode_error(
            f"expected audio, got {content_type or 'no content type'}",
            response.content,
            http_status=response.status_code,
        )

    # =========================================================================
    # Messages
    # =========================================================================

    async def messages_feedbacks(self, request: MessagesFeedbacksRequest) -> ResultResponse:
        """Like, dislike, or withdraw a rating for a message."""
        path = _path(paths.MESSAGES_FEEDBACKS, message_id=request.message_id)
        body = JsonBody(request.model_dump(mode="json", exclude={"message_id"}))
        return await self._call(ResultResponse, OutgoingRequest("POST", path, body=body))

    async def messages_suggested(self, request: MessagesSuggestedRequest) -> MessagesSuggestedResponse:
        """Fetch suggested follow-up questions for a message."""
        path = _path(paths.MESSAGES_SUGGESTED, message_id=request.message_id)
        return await self._call(
            MessagesSuggestedResponse, OutgoingRequest("GET", path, params={"user": request.user})
        )

    async def messages(self, request: MessagesRequest) -> MessagesResponse:
        """
        Fetch conversation history.

        Pages are returned newest first; pass the first message id of a page
        as ``first_id`` to load the previous one.
        """
        params = request.model_dump(mode="json", exclude_none=True)
        return await self._call(MessagesResponse, OutgoingRequest("GET", paths.MESSAGES, params=params))

    # =========================================================================
    # Conversations
    # =========================================================================

    async def conversations(self, request: ConversationsRequest) -> ConversationsResponse:
        """List the user's conversations (most recent 20 by default)."""
        params = request.model_dump(mode="json", exclude_none=True)
        return await self._call(ConversationsResponse, OutgoingRequest("GET", paths.CONVERSATIONS, params=params))

    async def conversations_rename(self, request: ConversationsRenameRequest) -> ConversationData:
        """Rename a conversation or let the service generate a name."""
        path = _path(paths.CONVERSATIONS_RENAME, conversation_id=request.conversation_id)
        body = JsonBody(request.model_dump(mode="json", exclude={"conversation_id"}, exclude_none=True))
        return await self._call(ConversationData, OutgoingRequest("POST", path, body=body))

    async def conversations_delete(self, request: ConversationsDeleteRequest) -> None:
        """
        Delete a conversation.

        Raises:
            ServiceError: If the service refuses the deletion
        """
        path = _path(paths.CONVERSATIONS_DELETE, conversation_id=request.conversation_id)
        response = await self.transport.send(
            OutgoingRequest("DELETE", path, body=JsonBody({"user": request.user}))
        )
        logger.debug("dify_conversation_deleted", status=response.status_code)

    # =========================================================================
    # App Information
    # =========================================================================

    async def parameters(self, request: ParametersRequest) -> ParametersResponse:
        """Fetch the app's input form, feature switches and upload settings."""
        return await self._call(
            ParametersResponse, OutgoingRequest("GET", paths.PARAMETERS, params={"user": request.user})
        )

    async def meta(self, request: MetaRequest) -> MetaResponse:
        """Fetch the app's tool icons."""
        return await self._call(MetaResponse, OutgoingRequest("GET", paths.META, params={"user": request.user}))
