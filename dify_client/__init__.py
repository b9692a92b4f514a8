"""dify-client: async Python client for the Dify app API."""

# api must load before streaming; the two packages import each other's submodules
from dify_client.api import *  # noqa: F403
from dify_client.api import __all__ as _api_all
from dify_client.core import ClientConfig, TlsMode, setup_logging
from dify_client.streaming import EventStream, MessageAccumulator, StreamEvent

__version__ = "0.3.1"

__all__ = [
    *_api_all,
    "ClientConfig",
    "EventStream",
    "MessageAccumulator",
    "StreamEvent",
    "TlsMode",
    "setup_logging",
]
