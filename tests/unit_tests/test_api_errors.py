"""Tests for error mapping from dify_client.api.errors."""

import json

import httpx
import pytest

from dify_client.api.errors import (
    MAX_ERROR_EXCERPT_BYTES,
    ErrorKind,
    ServiceError,
    decode_error,
    excerpt,
    kind_for_status,
    map_error_response,
    map_stream_error,
    map_transport_error,
)


def _error_body(status: int, code: str = "some_code", message: str = "boom") -> bytes:
    return json.dumps({"status": status, "code": code, "message": message}).encode()


class TestKindForStatus:
    """Tests for kind_for_status."""

    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (400, ErrorKind.BAD_REQUEST),
            (401, ErrorKind.AUTH),
            (403, ErrorKind.AUTH),
            (404, ErrorKind.BAD_REQUEST),
            (413, ErrorKind.BAD_REQUEST),
            (415, ErrorKind.BAD_REQUEST),
            (429, ErrorKind.RATE_LIMITED),
            (500, ErrorKind.SERVICE_UNAVAILABLE),
            (503, ErrorKind.SERVICE_UNAVAILABLE),
            (302, ErrorKind.UNKNOWN),
        ],
    )
    def test_status_table(self, status, kind):
        """Test each status class maps to its kind."""
        assert kind_for_status(status) is kind


class TestMapErrorResponse:
    """Tests for map_error_response."""

    def test_rate_limited_keeps_code_and_message(self):
        """Test a 429 error object becomes RATE_LIMITED with the service code."""
        error = map_error_response(429, _error_body(429, "rate_limit_exceeded", "slow down"))

        assert error.kind is ErrorKind.RATE_LIMITED
        assert error.http_status == 429
        assert error.code == "rate_limit_exceeded"
        assert error.message == "slow down"
        assert error.retryable is True

    def test_auth_error_not_retryable(self):
        """Test that auth failures are not retryable."""
        error = map_error_response(401, _error_body(401, "unauthorized", "Invalid key"))
        assert error.kind is ErrorKind.AUTH
        assert error.retryable is False

    def test_numeric_code_is_stringified(self):
        """Test that a numeric service code becomes a string."""
        error = map_error_response(400, json.dumps({"code": 1001, "message": "bad"}))
        assert error.code == "1001"

    def test_unparseable_body_is_decode_error(self):
        """Test that an HTML error page becomes DECODE with an excerpt."""
        error = map_error_response(502, b"<html>Bad Gateway</html>")

        assert error.kind is ErrorKind.DECODE
        assert error.http_status == 502
        assert "Bad Gateway" in error.message

    def test_object_without_message_is_decode_error(self):
        """Test that JSON lacking a message field is not treated as an error object."""
        error = map_error_response(500, b'{"detail": "oops"}')
        assert error.kind is ErrorKind.DECODE


class TestMapStreamError:
    """Tests for map_stream_error."""

    def test_uses_embedded_status(self):
        """Test an in-band 429 maps like an HTTP 429."""
        error = map_stream_error(429, "rate_limit_exceeded", "quota")
        assert error.kind is ErrorKind.RATE_LIMITED
        assert error.code == "rate_limit_exceeded"

    def test_missing_status_is_service_unavailable(self):
        """Test an error event without status counts as a service failure."""
        error = map_stream_error(None, None, None)
        assert error.kind is ErrorKind.SERVICE_UNAVAILABLE
        assert error.message


class TestMapTransportError:
    """Tests for map_transport_error."""

    def test_timeout(self):
        """Test httpx timeouts become TIMEOUT."""
        assert map_transport_error(httpx.ReadTimeout("read timed out")).kind is ErrorKind.TIMEOUT
        assert map_transport_error(TimeoutError()).kind is ErrorKind.TIMEOUT

    def test_connect_error(self):
        """Test connection failures become NETWORK."""
        error = map_transport_error(httpx.ConnectError("connection refused"))
        assert error.kind is ErrorKind.NETWORK
        assert "connection refused" in error.message

    def test_decoding_error(self):
        """Test content decoding failures become DECODE."""
        assert map_transport_error(httpx.DecodingError("bad gzip")).kind is ErrorKind.DECODE

    def test_other_exception_is_unknown(self):
        """Test unexpected exceptions become UNKNOWN."""
        assert map_transport_error(RuntimeError("weird")).kind is ErrorKind.UNKNOWN


class TestDecodeError:
    """Tests for decode_error and excerpt."""

    def test_excerpt_is_bounded(self):
        """Test that long payloads are cut to the excerpt limit."""
        text = excerpt(b"x" * (MAX_ERROR_EXCERPT_BYTES + 100))
        assert text.startswith("x" * MAX_ERROR_EXCERPT_BYTES)
        assert text.endswith("(100 more bytes)")

    def test_decode_error_quotes_payload(self):
        """Test the offending payload appears in the message."""
        error = decode_error("invalid JSON", "not json")
        assert error.kind is ErrorKind.DECODE
        assert "not json" in error.message


class TestServiceError:
    """Tests for ServiceError formatting."""

    def test_str_includes_kind_status_and_code(self):
        """Test string form."""
        error = ServiceError(ErrorKind.BAD_REQUEST, "invalid param", http_status=400, code="invalid_param")
        assert str(error) == "[bad_request 400 invalid_param] invalid param"

    def test_is_exception(self):
        """Test that ServiceError can be raised and caught."""
        with pytest.raises(ServiceError) as exc_info:
            raise ServiceError(ErrorKind.UNKNOWN, "x")
        assert exc_info.value.kind is ErrorKind.UNKNOWN
