"""Configuration and logging setup for dify-client."""

from dify_client.core.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ClientConfig, TlsMode
from dify_client.core.logging import setup_logging

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "ClientConfig",
    "TlsMode",
    "setup_logging",
]
