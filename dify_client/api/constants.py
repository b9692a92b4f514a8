"""
Constants for the API Client Module
====================================

Endpoint paths, size limits, and other fixed values used by the client.
"""

USER_AGENT = "dify-client-python/0.3.1"

# Error bodies of failed streaming calls are read up to this many bytes
MAX_ERROR_BODY_BYTES = 64 * 1024

# Upload limits enforced before any request is sent
MAX_IMAGE_UPLOAD_BYTES = 10 * 1024 * 1024
MAX_AUDIO_UPLOAD_BYTES = 15 * 1024 * 1024

# Stream terminal markers
DONE_SENTINEL = "[DONE]"
CHAT_TERMINAL_EVENTS = frozenset({"message_end"})
WORKFLOW_TERMINAL_EVENTS = frozenset({"workflow_finished"})

# API paths
CHAT_MESSAGES = "/v1/chat-messages"
CHAT_MESSAGES_STOP = "/v1/chat-messages/{task_id}/stop"
COMPLETION_MESSAGES = "/v1/completion-messages"
COMPLETION_MESSAGES_STOP = "/v1/completion-messages/{task_id}/stop"
WORKFLOWS_RUN = "/v1/workflows/run"
WORKFLOWS_STOP = "/v1/workflows/{task_id}/stop"
FILES_UPLOAD = "/v1/files/upload"
MESSAGES = "/v1/messages"
MESSAGES_FEEDBACKS = "/v1/messages/{message_id}/feedbacks"
MESSAGES_SUGGESTED = "/v1/messages/{message_id}/suggested"
CONVERSATIONS = "/v1/conversations"
CONVERSATIONS_DELETE = "/v1/conversations/{conversation_id}"
CONVERSATIONS_RENAME = "/v1/conversations/{conversation_id}/name"
AUDIO_TO_TEXT = "/v1/audio-to-text"
TEXT_TO_AUDIO = "/v1/text-to-audio"
PARAMETERS = "/v1/parameters"
META = "/v1/meta"
