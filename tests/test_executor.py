"""
Comprehensive tests for request execution through HTTPSClient.

Tests cover:
- Successful requests for every verb
- Body encoding (text, JSON, bytes, custom encodings)
- Status >= 400 translation to HTTPChainError
- Transport and body-read failures
- Interceptor notification on every failure path
- Argument validation before any interceptor/transport call
- Lifecycle of the underlying httpx client
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Iterable

import httpx
import pytest

from httpchain import (
    ClientSettings,
    HeaderInterceptor,
    HTTPChainError,
    HTTPSClient,
    Interceptor,
)


class FailingStream(httpx.AsyncByteStream):
    """Body stream that yields some chunks and then raises."""

    def __init__(self, chunks: Iterable[bytes], exc: Exception):
        self._chunks = list(chunks)
        self._exc = exc

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        raise self._exc


class RecordingInterceptor(Interceptor):
    """Keeps every object passed to each hook."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []
        self.errors: list[BaseException] = []

    async def on_request(self, request):
        self.requests.append(request)

    async def on_response(self, response):
        self.responses.append(response)

    async def on_error(self, error):
        self.errors.append(error)


def make_client(handler: Callable[[httpx.Request], httpx.Response], **settings) -> HTTPSClient:
    settings.setdefault("http2", False)
    return HTTPSClient(ClientSettings(**settings), transport=httpx.MockTransport(handler))


@pytest.fixture
def recorder():
    return RecordingInterceptor()


class TestSuccessfulRequests:
    """Responses below 400 are returned with their body read."""

    @pytest.mark.asyncio
    async def test_get_returns_body(self, recorder):
        def handler(request):
            assert request.method == "GET"
            return httpx.Response(200, text='{"id":1}')

        async with make_client(handler) as client:
            client.add_interceptor(recorder)
            response = await client.get("https://api.example.com/items/1")

        assert response.status_code == 200
        assert response.text == '{"id":1}'
        assert len(recorder.requests) == 1
        assert recorder.responses == [response]
        assert recorder.errors == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verb", ["get", "post", "put", "patch", "delete"])
    async def test_every_verb_uses_its_method(self, verb):
        seen = []

        def handler(request):
            seen.append(request.method)
            return httpx.Response(204)

        async with make_client(handler) as client:
            response = await getattr(client, verb)("https://api.example.com/items/1")

        assert response.status_code == 204
        assert seen == [verb.upper()]

    @pytest.mark.asyncio
    async def test_execute_accepts_lowercase_method(self):
        async with make_client(lambda request: httpx.Response(200, text=request.method)) as client:
            response = await client.execute("put", "https://api.example.com/x")

        assert response.text == "PUT"

    @pytest.mark.asyncio
    async def test_accepts_parsed_url(self):
        def handler(request):
            assert request.url == httpx.URL("https://api.example.com/items?page=2")
            return httpx.Response(200)

        async with make_client(handler) as client:
            response = await client.get(httpx.URL("https://api.example.com/items?page=2"))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_caller_headers_and_defaults_are_sent(self):
        captured = {}

        def handler(request):
            captured.update(request.headers)
            return httpx.Response(200)

        async with make_client(handler, user_agent="suite/1.0") as client:
            await client.get("https://api.example.com", headers={"X-Request-Id": "abc"})

        assert captured["x-request-id"] == "abc"
        assert captured["user-agent"] == "suite/1.0"

    @pytest.mark.asyncio
    async def test_on_request_can_mutate_outbound_request(self):
        captured = {}

        def handler(request):
            captured.update(request.headers)
            return httpx.Response(200)

        async with make_client(handler) as client:
            client.add_interceptor(HeaderInterceptor({"Authorization": "Bearer t0k"}))
            await client.get("https://api.example.com")

        assert captured["authorization"] == "Bearer t0k"

    @pytest.mark.asyncio
    async def test_request_alias(self):
        async with make_client(lambda request: httpx.Response(200, text="ok")) as client:
            response = await client.request("GET", "https://api.example.com")

        assert response.text == "ok"


class TestRequestBodies:
    """Body encoding rules."""

    @pytest.mark.asyncio
    async def test_structured_body_is_sent_as_json(self):
        captured = {}

        def handler(request):
            captured["body"] = request.content
            captured["content_type"] = request.headers["Content-Type"]
            return httpx.Response(201)

        async with make_client(handler) as client:
            await client.post("https://api.example.com/items", body={"name": "widget", "qty": 2})

        assert json.loads(captured["body"]) == {"name": "widget", "qty": 2}
        assert captured["content_type"] == "application/json; charset=utf-8"

    @pytest.mark.asyncio
    async def test_text_body_is_sent_verbatim(self):
        captured = {}

        def handler(request):
            captured["body"] = request.content
            captured["content_type"] = request.headers["Content-Type"]
            return httpx.Response(200)

        async with make_client(handler) as client:
            await client.put("https://api.example.com/notes/1", body="plain text")

        assert captured["body"] == b"plain text"
        assert captured["content_type"] == "text/plain; charset=utf-8"

    @pytest.mark.asyncio
    async def test_encoding_override(self):
        captured = {}

        def handler(request):
            captured["body"] = request.content
            captured["content_type"] = request.headers["Content-Type"]
            return httpx.Response(200)

        async with make_client(handler) as client:
            await client.patch("https://api.example.com/notes/1", body="café", encoding="latin-1")

        assert captured["body"] == "café".encode("latin-1")
        assert captured["content_type"] == "text/plain; charset=latin-1"

    @pytest.mark.asyncio
    async def test_explicit_content_type_is_kept(self):
        captured = {}

        def handler(request):
            captured["content_type"] = request.headers["Content-Type"]
            return httpx.Response(200)

        async with make_client(handler) as client:
            await client.post(
                "https://api.example.com/items",
                headers={"Content-Type": "application/vnd.api+json"},
                body={"a": 1},
            )

        assert captured["content_type"] == "application/vnd.api+json"

    @pytest.mark.asyncio
    async def test_bytes_body_is_sent_unchanged(self):
        captured = {}

        def handler(request):
            captured["body"] = request.content
            return httpx.Response(200)

        async with make_client(handler) as client:
            await client.post("https://api.example.com/blob", body=b"\x00\x01\x02")

        assert captured["body"] == b"\x00\x01\x02"

    @pytest.mark.asyncio
    async def test_unserializable_body_fails_before_interceptors(self, recorder):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        async with make_client(handler) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError, match="Failed to encode request body"):
                await client.post("https://api.example.com", body={"when": object()})

        assert calls == []
        assert recorder.requests == []
        assert recorder.errors == []


class TestHTTPErrors:
    """Status >= 400 is never returned as a response."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 404, 418, 429, 500, 502, 503])
    async def test_error_status_raises_with_status_code(self, status, recorder):
        async with make_client(lambda request: httpx.Response(status, text="nope")) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError) as exc_info:
                await client.get("https://api.example.com/items/1")

        error = exc_info.value
        assert error.status_code == status
        assert error.cause is None
        assert f"status code: {status}" in error.message
        assert recorder.errors == [error]
        assert recorder.responses == []

    @pytest.mark.asyncio
    async def test_redirect_below_400_is_followed(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://api.example.com/new"})
            return httpx.Response(200, text="moved here")

        async with make_client(handler) as client:
            response = await client.get("https://api.example.com/old")

        assert response.status_code == 200
        assert response.text == "moved here"


class TestTransportFailures:
    """Send and body-read failures are wrapped and reported."""

    @pytest.mark.asyncio
    async def test_send_failure_is_wrapped(self, recorder):
        def handler(request):
            raise httpx.ConnectError("Connection refused")

        async with make_client(handler) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError) as exc_info:
                await client.get("https://api.example.com/items")

        error = exc_info.value
        assert error.message.startswith("Failed to send GET request to https://api.example.com/items")
        assert "Connection refused" in error.message
        assert error.status_code is None
        assert isinstance(error.cause, httpx.ConnectError)
        assert error.__cause__ is error.cause
        assert recorder.errors == [error]
        assert recorder.responses == []

    @pytest.mark.asyncio
    async def test_core_error_from_transport_is_not_rewrapped(self, recorder):
        original = HTTPChainError(message="upstream says no", status_code=502)

        def handler(request):
            raise original

        async with make_client(handler) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError) as exc_info:
                await client.get("https://api.example.com/items")

        assert exc_info.value is original
        assert recorder.errors == [original]

    @pytest.mark.asyncio
    async def test_body_read_failure_is_wrapped(self, recorder):
        def handler(request):
            return httpx.Response(
                200,
                stream=FailingStream([b"partial"], httpx.ReadError("Connection reset by peer")),
            )

        async with make_client(handler) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError) as exc_info:
                await client.get("https://api.example.com/items")

        error = exc_info.value
        assert error.message.startswith("Failed to process response")
        assert isinstance(error.cause, httpx.ReadError)
        assert error.status_code is None
        assert recorder.errors == [error]
        assert recorder.responses == []


class TestArgumentValidation:
    """Invalid addresses fail before any interceptor or transport call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_url", [123, None, b"https://example.com", ["https://example.com"]])
    @pytest.mark.parametrize("verb", ["get", "post", "put", "patch", "delete"])
    async def test_non_url_types_fail_fast(self, verb, bad_url, recorder):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        async with make_client(handler) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError, match="URL must be a str or httpx.URL"):
                await getattr(client, verb)(bad_url)

        assert calls == []
        assert recorder.requests == []
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_relative_url_fails_fast(self, recorder):
        async with make_client(lambda request: httpx.Response(200)) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError, match="must be absolute"):
                await client.get("/items/1")

        assert recorder.requests == []
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_unsupported_method(self, recorder):
        async with make_client(lambda request: httpx.Response(200)) as client:
            client.add_interceptor(recorder)
            with pytest.raises(HTTPChainError, match="Unsupported HTTP method: TRACE"):
                await client.execute("TRACE", "https://api.example.com")

        assert recorder.requests == []

    def test_to_url(self):
        parsed = HTTPSClient.to_url("https://example.com/a?b=c")

        assert isinstance(parsed, httpx.URL)
        assert parsed.host == "example.com"
        assert HTTPSClient.to_url(parsed) is parsed
        with pytest.raises(HTTPChainError):
            HTTPSClient.to_url(42)


class TestInterceptorFailures:
    """A failing hook aborts the operation with its own exception."""

    @pytest.mark.asyncio
    async def test_on_request_failure_propagates_unwrapped(self):
        calls = []

        class Exploding(Interceptor):
            async def on_request(self, request):
                raise ValueError("signing key missing")

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        async with make_client(handler) as client:
            client.add_interceptor(Exploding())
            with pytest.raises(ValueError, match="signing key missing"):
                await client.get("https://api.example.com")

        assert calls == []

    @pytest.mark.asyncio
    async def test_on_error_cannot_suppress_the_error(self):
        class Swallowing(Interceptor):
            async def on_error(self, error):
                return True

        async with make_client(lambda request: httpx.Response(500)) as client:
            client.add_interceptor(Swallowing())
            with pytest.raises(HTTPChainError) as exc_info:
                await client.get("https://api.example.com")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_removed_interceptor_is_not_called(self, recorder):
        async with make_client(lambda request: httpx.Response(200)) as client:
            client.add_interceptor(recorder)
            client.remove_interceptor(recorder)
            await client.get("https://api.example.com")

        assert recorder.requests == []
        assert len(client.interceptors) == 0


class TestLifecycle:
    """httpx client creation, logging and closing."""

    @pytest.mark.asyncio
    async def test_client_is_created_lazily_and_closed(self):
        client = make_client(lambda request: httpx.Response(200))
        assert client._client is None

        await client.get("https://api.example.com")
        assert client._client is not None

        await client.aclose()
        assert client._client is None

    @pytest.mark.asyncio
    async def test_logs_request_events(self, caplog):
        caplog.set_level(logging.INFO, logger="httpchain")

        async with make_client(lambda request: httpx.Response(200, text="ok")) as client:
            await client.get("https://api.example.com/ok")

        messages = [record.getMessage() for record in caplog.records]
        assert "request.started" in messages
        completed = next(r for r in caplog.records if r.getMessage() == "request.completed")
        assert completed.status_code == 200
        assert completed.url == "https://api.example.com/ok"

    @pytest.mark.asyncio
    async def test_logs_failures(self, caplog):
        caplog.set_level(logging.INFO, logger="httpchain")

        async with make_client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(HTTPChainError):
                await client.get("https://api.example.com/missing")

        failed = next(r for r in caplog.records if r.getMessage() == "request.failed")
        assert failed.status_code == 404
        assert failed.levelno == logging.ERROR
