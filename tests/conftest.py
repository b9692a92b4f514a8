"""Pytest configuration and shared fixtures for dify-client tests."""

import json
import sys
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

BASE_URL = "https://api.example.com"
API_KEY = "k1"


# ============================================================================
# Config Fixtures
# ============================================================================


@pytest.fixture
def config():
    """Create a ClientConfig pointing at a fake host."""
    from dify_client.core.config import ClientConfig

    return ClientConfig(base_url=BASE_URL, api_key=API_KEY)


# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def make_client(config):
    """Factory for a DifyClient whose HTTP calls go to a MockTransport handler."""
    from dify_client.api.client import DifyClient

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> "DifyClient":
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=1.0)
        return DifyClient(config, http_client=http_client, **kwargs)

    return _make


@pytest.fixture
def make_transport(config):
    """Factory for a Transport backed by a MockTransport handler."""
    from dify_client.api.transport import Transport

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> "Transport":
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=1.0)
        return Transport(config, http_client=http_client, **kwargs)

    return _make


# ============================================================================
# SSE Helpers
# ============================================================================


def sse_block(payload: dict | str, *, event: str | None = None, event_id: str | None = None) -> str:
    """Render one SSE block (terminated by a blank line)."""
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    if event is not None:
        lines.append(f"event: {event}")
    data = payload if isinstance(payload, str) else json.dumps(payload)
    lines.append(f"data: {data}")
    return "\n".join(lines) + "\n\n"


async def iter_chunks(chunks: list[bytes]) -> AsyncIterator[bytes]:
    """Yield pre-split chunks as an async byte stream."""
    for chunk in chunks:
        yield chunk


def split_every(data: bytes, size: int) -> list[bytes]:
    """Split bytes into chunks of ``size``."""
    return [data[i : i + size] for i in range(0, len(data), size)]


class ReleaseRecorder:
    """Release callback that counts how often it was awaited."""

    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


@pytest.fixture
def release():
    """Create a ReleaseRecorder."""
    return ReleaseRecorder()


@pytest.fixture
def chat_sse_body() -> bytes:
    """Three answer chunks followed by message_end."""
    blocks = [
        sse_block({"event": "message", "task_id": "t1", "message_id": "m1", "conversation_id": "c1", "answer": "Hel"}),
        sse_block({"event": "message", "task_id": "t1", "message_id": "m1", "conversation_id": "c1", "answer": "lo"}),
        sse_block({"event": "message", "task_id": "t1", "message_id": "m1", "conversation_id": "c1", "answer": "!"}),
        sse_block(
            {
                "event": "message_end",
                "task_id": "t1",
                "message_id": "m1",
                "conversation_id": "c1",
                "metadata": {"usage": {"total_tokens": 12}},
            }
        ),
    ]
    return "".join(blocks).encode("utf-8")
