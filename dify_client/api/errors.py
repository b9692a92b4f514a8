"""Error taxonomy and mapping from transport/service failures to ServiceError."""

import json
from enum import Enum
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

# Upper bound on raw payload bytes quoted in a decode diagnostic
MAX_ERROR_EXCERPT_BYTES = 512


class ErrorKind(str, Enum):
    """Category of a failed call."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    BAD_REQUEST = "bad_request"
    SERVICE_UNAVAILABLE = "service_unavailable"
    DECODE = "decode"
    UNKNOWN = "unknown"


_RETRYABLE_KINDS = frozenset(
    {ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED, ErrorKind.SERVICE_UNAVAILABLE}
)


class ServiceError(Exception):
    """A failed call to the Dify API.

    Attributes:
        kind: Error category
        http_status: HTTP status of the offending response, if any
        code: Service-supplied error code, if any
        message: Human-readable description
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        http_status: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.http_status = http_status
        self.code = code

    @property
    def retryable(self) -> bool:
        """Whether repeating the same call could plausibly succeed."""
        return self.kind in _RETRYABLE_KINDS

    def __str__(self) -> str:
        parts = [self.kind.value]
        if self.http_status is not None:
            parts.append(str(self.http_status))
        if self.code:
            parts.append(self.code)
        return f"[{' '.join(parts)}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"ServiceError(kind={self.kind.value!r}, http_status={self.http_status!r}, "
            f"code={self.code!r}, message={self.message!r})"
        )


def excerpt(payload: bytes | str, limit: int = MAX_ERROR_EXCERPT_BYTES) -> str:
    """Return at most ``limit`` bytes of a payload as text for diagnostics."""
    raw = payload.encode("utf-8", errors="replace") if isinstance(payload, str) else bytes(payload)
    text = raw[:limit].decode("utf-8", errors="replace")
    if len(raw) > limit:
        text += f"... ({len(raw) - limit} more bytes)"
    return text


def kind_for_status(status: int) -> ErrorKind:
    """Map an HTTP status code onto an error kind."""
    if status in (401, 403):
        return ErrorKind.AUTH
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if 400 <= status <= 499:
        return ErrorKind.BAD_REQUEST
    if 500 <= status <= 599:
        return ErrorKind.SERVICE_UNAVAILABLE
    return ErrorKind.UNKNOWN


def decode_error(reason: str, payload: bytes | str, *, http_status: int | None = None) -> ServiceError:
    """Build a DECODE error quoting a bounded excerpt of the offending payload."""
    return ServiceError(
        ErrorKind.DECODE,
        f"{reason}: {excerpt(payload)!r}",
        http_status=http_status,
    )


def parse_error_payload(body: bytes | str) -> dict[str, Any] | None:
    """Extract a service error object (``code``/``message``) from a body.

    Returns:
        The decoded object if it looks like a service error, None otherwise
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("message"), str):
        return None
    return data


def map_error_response(status: int, body: bytes | str) -> ServiceError:
    """Map a non-2xx response onto a ServiceError.

    Args:
        status: HTTP status code
        body: Raw response body (or a bounded prefix of it)

    Returns:
        ServiceError whose kind follows :func:`kind_for_status`, or DECODE
        when the body is not a service error object
    """
    payload = parse_error_payload(body)
    if payload is None:
        return decode_error(f"HTTP {status} with unparseable error body", body, http_status=status)

    code = payload.get("code")
    return ServiceError(
        kind_for_status(status),
        payload["message"],
        http_status=status,
        code=str(code) if code is not None else None,
    )


def map_stream_error(status: int | None, code: str | None, message: str | None) -> ServiceError:
    """Map an in-band ``error`` stream event onto a ServiceError.

    The service reports these after already answering 200, so the embedded
    status is used. A missing or non-error status counts as the service
    failing mid-stream.
    """
    if status is not None and status >= 400:
        kind = kind_for_status(status)
    else:
        kind = ErrorKind.SERVICE_UNAVAILABLE
    return ServiceError(
        kind,
        message or "stream reported an error",
        http_status=status,
        code=code,
    )


def map_transport_error(exc: BaseException) -> ServiceError:
    """Map an exception raised while talking to the server onto a ServiceError."""
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        kind = ErrorKind.TIMEOUT
    elif isinstance(exc, httpx.DecodingError):
        kind = ErrorKind.DECODE
    elif isinstance(exc, httpx.RequestError):
        kind = ErrorKind.NETWORK
    else:
        kind = ErrorKind.UNKNOWN

    message = str(exc) or type(exc).__name__
    logger.debug("dify_transport_error", kind=kind.value, error=message, error_type=type(exc).__name__)
    return ServiceError(kind, message)
