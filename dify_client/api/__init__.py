"""Dify API client: transport, error mapping, request/response models and endpoints."""

from dify_client.api.client import DifyClient
from dify_client.api.errors import ErrorKind, ServiceError
from dify_client.api.requests import (
    AudioToTextRequest,
    ChatMessageFile,
    ChatMessagesRequest,
    CompletionMessagesRequest,
    ConversationsDeleteRequest,
    ConversationsRenameRequest,
    ConversationsRequest,
    FilesUploadRequest,
    LocalFile,
    MessagesFeedbacksRequest,
    MessagesRequest,
    MessagesSuggestedRequest,
    MetaRequest,
    ParametersRequest,
    Rating,
    RemoteUrlFile,
    ResponseMode,
    SortBy,
    StreamTaskStopRequest,
    TextToAudioRequest,
    WorkflowsRunRequest,
)
from dify_client.api.responses import (
    AppMode,
    AudioToTextResponse,
    ChatMessagesResponse,
    CompletionMessagesResponse,
    ConversationData,
    ConversationsResponse,
    FilesUploadResponse,
    MessageData,
    MessagesResponse,
    MessagesSuggestedResponse,
    MetaResponse,
    ParametersResponse,
    ResultResponse,
    WorkflowsRunResponse,
)
from dify_client.api.transport import Transport

__all__ = [
    "AppMode",
    "AudioToTextRequest",
    "AudioToTextResponse",
    "ChatMessageFile",
    "ChatMessagesRequest",
    "ChatMessagesResponse",
    "CompletionMessagesRequest",
    "CompletionMessagesResponse",
    "ConversationData",
    "ConversationsDeleteRequest",
    "ConversationsRenameRequest",
    "ConversationsRequest",
    "ConversationsResponse",
    "DifyClient",
    "ErrorKind",
    "FilesUploadRequest",
    "FilesUploadResponse",
    "LocalFile",
    "MessageData",
    "MessagesFeedbacksRequest",
    "MessagesRequest",
    "MessagesResponse",
    "MessagesSuggestedRequest",
    "MessagesSuggestedResponse",
    "MetaRequest",
    "MetaResponse",
    "ParametersRequest",
    "ParametersResponse",
    "Rating",
    "RemoteUrlFile",
    "ResponseMode",
    "ResultResponse",
    "ServiceError",
    "SortBy",
    "StreamTaskStopRequest",
    "TextToAudioRequest",
    "Transport",
    "WorkflowsRunRequest",
    "WorkflowsRunResponse",
]
