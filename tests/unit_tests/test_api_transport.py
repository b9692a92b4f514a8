"""Tests for the HTTP transport in dify_client.api.transport."""

import asyncio
import json

import httpx
import pytest

from dify_client.api.errors import ErrorKind, ServiceError
from dify_client.api.transport import (
    FilePart,
    JsonBody,
    MultipartBody,
    OutgoingRequest,
    RawResponse,
    Transport,
)
from dify_client.core.config import ClientConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestBuild:
    """Tests for Transport.build."""

    def test_default_headers_and_url(self, config):
        """Test bearer auth, cache control and base URL joining."""
        transport = Transport(config)
        request = transport.build(OutgoingRequest("GET", "/v1/meta", params={"user": "u1", "skip": None}))

        assert request.headers["Authorization"] == "Bearer k1"
        assert request.headers["Cache-Control"] == "no-cache"
        assert request.headers["User-Agent"].startswith("dify-client-python/")
        assert str(request.url) == "https://api.example.com/v1/meta?user=u1"

    def test_json_body(self, config):
        """Test JSON bodies are serialized with a JSON content type."""
        transport = Transport(config)
        request = transport.build(OutgoingRequest("POST", "/v1/chat-messages", body=JsonBody({"query": "hi"})))

        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.read()) == {"query": "hi"}

    def test_multipart_body_sniffs_content_type(self, config):
        """Test multipart parts get a filename and MIME type from their bytes."""
        transport = Transport(config)
        body = MultipartBody(fields={"user": "u1"}, files={"file": FilePart(PNG_BYTES, stem="image_file")})
        request = transport.build(OutgoingRequest("POST", "/v1/files/upload", body=body))
        content = request.read()

        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert b'name="user"' in content
        assert b'filename="image_file.png"' in content
        assert b"Content-Type: image/png" in content

    def test_multipart_unknown_bytes_fall_back_to_octet_stream(self, config):
        """Test unrecognised content is sent as application/octet-stream."""
        transport = Transport(config)
        body = MultipartBody(files={"file": FilePart(b"plain text", stem="blob")})
        content = transport.build(OutgoingRequest("POST", "/v1/files/upload", body=body)).read()

        assert b'filename="blob"' in content
        assert b"Content-Type: application/octet-stream" in content

    def test_before_send_hook_can_override_headers(self, config):
        """Test the hook sees and can replace the built request."""

        def hook(request: httpx.Request) -> httpx.Request:
            request.headers["Authorization"] = "Bearer override"
            request.headers["X-Trace"] = "abc"
            return request

        transport = Transport(config, before_send=hook)
        request = transport.build(OutgoingRequest("GET", "/v1/parameters"))

        assert request.headers["Authorization"] == "Bearer override"
        assert request.headers["X-Trace"] == "abc"


class TestSend:
    """Tests for buffered calls."""

    @pytest.mark.asyncio
    async def test_success_returns_raw_response(self, make_transport):
        """Test a 2xx response is returned with its body."""
        transport = make_transport(lambda request: httpx.Response(200, json={"result": "success"}))
        try:
            response = await transport.send(OutgoingRequest("GET", "/v1/meta"))
            assert isinstance(response, RawResponse)
            assert response.json() == {"result": "success"}
        finally:
            await transport.aclose()

    @pytest.mark.asyncio
    async def test_error_status_is_mapped(self, make_transport):
        """Test a 429 error object raises RATE_LIMITED."""
        transport = make_transport(
            lambda request: httpx.Response(
                429, json={"status": 429, "code": "rate_limit_exceeded", "message": "slow down"}
            )
        )
        try:
            with pytest.raises(ServiceError) as exc_info:
                await transport.send(OutgoingRequest("POST", "/v1/chat-messages", body=JsonBody({})))
            assert exc_info.value.kind is ErrorKind.RATE_LIMITED
            assert exc_info.value.http_status == 429
            assert exc_info.value.code == "rate_limit_exceeded"
        finally:
            await transport.aclose()

    @pytest.mark.asyncio
    async def test_connect_error_is_network(self, make_transport):
        """Test a refused connection raises NETWORK."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler)
        try:
            with pytest.raises(ServiceError) as exc_info:
                await transport.send(OutgoingRequest("GET", "/v1/meta"))
            assert exc_info.value.kind is ErrorKind.NETWORK
            assert exc_info.value.http_status is None
        finally:
            await transport.aclose()

    @pytest.mark.asyncio
    async def test_read_timeout_is_timeout(self, make_transport):
        """Test an httpx timeout raises TIMEOUT."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = make_transport(handler)
        try:
            with pytest.raises(ServiceError) as exc_info:
                await transport.send(OutgoingRequest("GET", "/v1/meta"))
            assert exc_info.value.kind is ErrorKind.TIMEOUT
        finally:
            await transport.aclose()

    @pytest.mark.asyncio
    async def test_overall_deadline_is_timeout(self):
        """Test a slow server hits the configured request timeout."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        config = ClientConfig(base_url="https://api.example.com", api_key="k1", request_timeout=0.05)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = Transport(config, http_client=http_client)
        try:
            with pytest.raises(ServiceError) as exc_info:
                await transport.send(OutgoingRequest("GET", "/v1/meta"))
            assert exc_info.value.kind is ErrorKind.TIMEOUT
        finally:
            await transport.aclose()

    def test_raw_response_invalid_json(self):
        """Test RawResponse.json reports DECODE for non-JSON bodies."""
        response = RawResponse(200, httpx.Headers(), b"<html>")
        with pytest.raises(ServiceError) as exc_info:
            response.json()
        assert exc_info.value.kind is ErrorKind.DECODE


class TestOpenStream:
    """Tests for streaming calls."""

    @pytest.mark.asyncio
    async def test_success_returns_open_response(self, make_transport):
        """Test the live response is returned and the SSE Accept header sent."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["accept"] = request.headers.get("accept")
            return httpx.Response(200, content=b"data: [DONE]\n\n", headers={"content-type": "text/event-stream"})

        transport = make_transport(handler)
        try:
            response = await transport.open_stream(OutgoingRequest("POST", "/v1/chat-messages", body=JsonBody({})))
            try:
                assert response.status_code == 200
                assert captured["accept"] == "text/event-stream"
            finally:
                await response.aclose()
        finally:
            await transport.aclose()

    @pytest.mark.asyncio
    async def test_error_status_is_mapped_before_streaming(self, make_transport):
        """Test a non-2xx answer to a streaming call raises with the service error."""
        transport = make_transport(
            lambda request: httpx.Response(
                400, json={"status": 400, "code": "invalid_param", "message": "query is required"}
            )
        )
        try:
            with pytest.raises(ServiceError) as exc_info:
                await transport.open_stream(OutgoingRequest("POST", "/v1/chat-messages", body=JsonBody({})))
            assert exc_info.value.kind is ErrorKind.BAD_REQUEST
            assert exc_info.value.code == "invalid_param"
            assert exc_info.value.message == "query is required"
        finally:
            await transport.aclose()

    @pytest.mark.asyncio
    async def test_connect_error_is_network(self, make_transport):
        """Test a refused streaming connection raises NETWORK."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler)
        try:
            with pytest.raises(ServiceError) as exc_info:
                await transport.open_stream(OutgoingRequest("POST", "/v1/chat-messages", body=JsonBody({})))
            assert exc_info.value.kind is ErrorKind.NETWORK
        finally:
            await transport.aclose()
