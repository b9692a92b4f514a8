"""HTTP transport for the Dify API.

Builds requests against the configured base URL, attaches bearer auth,
serializes JSON or multipart bodies and issues the call, returning either a
buffered response or a live streaming response.
"""

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from dify_client.api.constants import MAX_ERROR_BODY_BYTES, USER_AGENT
from dify_client.api.errors import decode_error, map_error_response, map_transport_error
from dify_client.core.config import ClientConfig
from dify_client.utils.file_types import OCTET_STREAM, sniff

logger = structlog.get_logger(__name__)

BeforeSend = Callable[[httpx.Request], httpx.Request]


@dataclass
class JsonBody:
    """JSON request body."""

    value: Any


@dataclass
class FilePart:
    """Binary multipart part. Content type is inferred from the bytes."""

    content: bytes
    stem: str = "file"


@dataclass
class MultipartBody:
    """multipart/form-data request body."""

    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, FilePart] = field(default_factory=dict)


@dataclass
class OutgoingRequest:
    """A fully described request, owned by the call that builds it."""

    method: str
    path: str
    params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    body: JsonBody | MultipartBody | None = None


@dataclass
class RawResponse:
    """A buffered 2xx response."""

    status_code: int
    headers: httpx.Headers
    content: bytes

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ServiceError: DECODE if the body is not valid JSON
        """
        try:
            return json.loads(self.content)
        except (ValueError, UnicodeDecodeError) as e:
            raise decode_error(f"invalid JSON body ({e})", self.content, http_status=self.status_code) from e


def _multipart_files(body: MultipartBody) -> dict[str, tuple[str, bytes, str]]:
    files = {}
    for name, part in body.files.items():
        kind = sniff(part.content)
        if kind is not None:
            files[name] = (f"{part.stem}.{kind.extension}", part.content, kind.mime_type)
        else:
            files[name] = (part.stem, part.content, OCTET_STREAM)
    return files


class Transport:
    """Thin wrapper over ``httpx.AsyncClient`` bound to one ClientConfig.

    The config is read-only, so a single Transport can serve any number of
    concurrent calls.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        before_send: BeforeSend | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Shared client configuration
            http_client: Optional preconfigured client (tests pass one with a MockTransport)
            before_send: Optional hook applied to every built request
        """
        self.config = config
        self.before_send = before_send
        self.client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            verify=config.ssl_verify(),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _default_headers(self) -> dict[str, str]:
        return {
            "Authorization": self.config.authorization_header(),
            "Cache-Control": "no-cache",
            "User-Agent": USER_AGENT,
        }

    def build(self, request: OutgoingRequest) -> httpx.Request:
        """Turn an OutgoingRequest into an ``httpx.Request``."""
        headers = self._default_headers()
        if request.headers:
            headers.update(request.headers)

        kwargs: dict[str, Any] = {}
        if isinstance(request.body, JsonBody):
            kwargs["json"] = request.body.value
        elif isinstance(request.body, MultipartBody):
            kwargs["data"] = request.body.fields
            kwargs["files"] = _multipart_files(request.body)

        params = {k: v for k, v in (request.params or {}).items() if v is not None}
        built = self.client.build_request(
            request.method,
            self.config.base_url + request.path,
            params=params or None,
            headers=headers,
            **kwargs,
        )
        if self.before_send is not None:
            built = self.before_send(built)
        return built

    async def send(self, request: OutgoingRequest) -> RawResponse:
        """Issue a buffered call.

        Returns:
            RawResponse with a 2xx status and the full body

        Raises:
            ServiceError: On network failure, timeout, or a non-2xx status
        """
        built = self.build(request)
        logger.debug("dify_request_sent", method=built.method, path=request.path, stream=False)
        try:
            async with asyncio.timeout(self.config.timeout_seconds):
                response = await self.client.send(built)
        except (httpx.RequestError, TimeoutError) as e:
            error = map_transport_error(e)
            logger.warning("dify_request_failed", method=built.method, path=request.path, kind=error.kind.value)
            raise error from e

        if not response.is_success:
            error = map_error_response(response.status_code, response.content)
            logger.warning(
                "dify_request_failed",
                method=built.method,
                path=request.path,
                status=response.status_code,
                kind=error.kind.value,
                code=error.code,
            )
            raise error

        return RawResponse(response.status_code, response.headers, response.content)

    async def open_stream(self, request: OutgoingRequest) -> httpx.Response:
        """Issue a streaming call and return the live response.

        The caller owns the returned response and must close it.

        Raises:
            ServiceError: On network failure, timeout, or a non-2xx status
                (the connection is closed before raising)
        """
        built = self.build(request)
        built.headers["Accept"] = "text/event-stream"
        logger.debug("dify_request_sent", method=built.method, path=request.path, stream=True)
        try:
            response = await self.client.send(built, stream=True)
        except httpx.RequestError as e:
            error = map_transport_error(e)
            logger.warning("dify_request_failed", method=built.method, path=request.path, kind=error.kind.value)
            raise error from e

        if response.is_success:
            return response

        try:
            body = await _read_bounded(response, MAX_ERROR_BODY_BYTES)
        except httpx.RequestError as e:
            raise map_transport_error(e) from e
        finally:
            await response.aclose()

        error = map_error_response(response.status_code, body)
        logger.warning(
            "dify_request_failed",
            method=built.method,
            path=request.path,
            status=response.status_code,
            kind=error.kind.value,
            code=error.code,
        )
        raise error


async def _read_bounded(response: httpx.Response, limit: int) -> bytes:
    """Read at most ``limit`` bytes from a streaming response body."""
    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) >= limit:
            break
    return bytes(body[:limit])


__all__ = [
    "BeforeSend",
    "FilePart",
    "JsonBody",
    "MultipartBody",
    "OutgoingRequest",
    "RawResponse",
    "Transport",
]
