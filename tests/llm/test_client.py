"""Tests for the completion endpoint client."""

from __future__ import annotations

import io
import json
import threading
from http.client import IncompleteRead
from urllib.error import HTTPError, URLError

import pytest

from notegen.errors import (
    GenerationCancelled,
    GenerationError,
    MalformedResponseError,
    ServiceError,
    TransportError,
)
from notegen.llm.client import CancellationToken, GenerationClient


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def read(self):
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _client(transport=None, **kwargs) -> GenerationClient:
    kwargs.setdefault("base_url", "http://endpoint.test/v1")
    kwargs.setdefault("api_key", "secret")
    return GenerationClient("test-model", transport=transport, **kwargs)


def test_client_joins_text_blocks_and_drops_others() -> None:
    payload = {
        "content": [
            {"type": "text", "text": "A"},
            {"type": "image", "source": {"data": "..."}},
            {"type": "text", "text": "B"},
        ]
    }

    result = _client(lambda request: payload).generate("prompt")

    assert result.text == "A\nB"


def test_client_surfaces_service_error_message_verbatim() -> None:
    client = _client(lambda request: {"error": {"message": "rate limited"}})

    with pytest.raises(ServiceError) as excinfo:
        client.generate("prompt")

    assert str(excinfo.value) == "rate limited"
    assert isinstance(excinfo.value, GenerationError)


@pytest.mark.parametrize(
    "payload",
    [
        {"content": "not a list"},
        {},
        ["unexpected"],
    ],
)
def test_client_rejects_malformed_responses(payload) -> None:
    with pytest.raises(MalformedResponseError):
        _client(lambda request: payload).generate("prompt")


def test_client_without_text_blocks_returns_empty_article() -> None:
    client = _client(lambda request: {"content": [{"type": "tool_use", "name": "search"}]})

    assert client.generate("prompt").text == ""


def test_client_builds_single_user_message_request() -> None:
    captured = {}

    def fake_transport(request):
        captured["payload"] = request.payload()
        captured["timeout"] = request.request_timeout
        captured["api_key"] = request.api_key
        return {"content": [{"type": "text", "text": "ok"}]}

    _client(fake_transport, max_tokens=1024, request_timeout=12.5).generate("Write something")

    assert captured["payload"] == {
        "model": "test-model",
        "max_tokens": 1024,
        "messages": [{"role": "user", "content": "Write something"}],
    }
    assert captured["timeout"] == 12.5
    assert captured["api_key"] == "secret"


def test_client_defaults_and_environment(monkeypatch) -> None:
    monkeypatch.delenv("NOTEGEN_MODEL", raising=False)
    monkeypatch.delenv("ANTHROPIC_MODEL", raising=False)
    monkeypatch.delenv("NOTEGEN_BASE_URL", raising=False)
    monkeypatch.delenv("ANTHROPIC_BASE_URL", raising=False)
    monkeypatch.delenv("NOTEGEN_API_KEY", raising=False)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")

    client = GenerationClient()

    assert client.model == GenerationClient.DEFAULT_MODEL
    assert client.base_url == "https://api.anthropic.com/v1"
    assert client.max_tokens == 4096
    assert client.api_key == "env-key"


def test_client_http_posts_payload(monkeypatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["headers"] = {k.lower(): v for k, v in request.header_items()}
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse({"content": [{"type": "text", "text": "An article."}]})

    monkeypatch.setattr("notegen.llm.client.urlopen", fake_urlopen)

    client = GenerationClient(
        "claude-sonnet-4-20250514",
        base_url="https://api.example.test/v1/",
        api_key="local-key",
        max_tokens=2048,
        request_timeout=25.0,
    )
    result = client.generate("Write about whales.")

    assert result.text == "An article."
    assert captured["url"] == "https://api.example.test/v1/messages"
    headers = captured["headers"]
    assert headers["content-type"] == "application/json"
    assert headers["x-api-key"] == "local-key"
    assert headers["anthropic-version"] == "2023-06-01"
    assert captured["payload"]["messages"] == [{"role": "user", "content": "Write about whales."}]
    assert captured["payload"]["max_tokens"] == 2048
    assert captured["timeout"] == 25.0


def test_client_http_error_with_error_payload_is_a_service_error(monkeypatch) -> None:
    body = json.dumps({"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}})

    def fake_urlopen(request, timeout=None):
        raise HTTPError(request.full_url, 529, "Overloaded", {}, io.BytesIO(body.encode("utf-8")))

    monkeypatch.setattr("notegen.llm.client.urlopen", fake_urlopen)

    with pytest.raises(ServiceError) as excinfo:
        _client().generate("prompt")

    assert str(excinfo.value) == "Overloaded"


def test_client_http_error_without_payload_is_a_transport_error(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise HTTPError(request.full_url, 502, "Bad Gateway", {}, io.BytesIO(b"<html>bad gateway</html>"))

    monkeypatch.setattr("notegen.llm.client.urlopen", fake_urlopen)

    with pytest.raises(TransportError) as excinfo:
        _client().generate("prompt")

    assert "502" in str(excinfo.value)


def test_client_network_failure_is_a_transport_error(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise URLError("connection refused")

    monkeypatch.setattr("notegen.llm.client.urlopen", fake_urlopen)

    with pytest.raises(TransportError) as excinfo:
        _client().generate("prompt")

    assert "connection refused" in str(excinfo.value)


def test_client_timeout_is_a_transport_error(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise TimeoutError("timed out")

    monkeypatch.setattr("notegen.llm.client.urlopen", fake_urlopen)

    with pytest.raises(TransportError):
        _client().generate("prompt")


def test_client_invalid_json_is_malformed(monkeypatch) -> None:
    class RawResponse(FakeResponse):
        def read(self):
            return b"not json"

    monkeypatch.setattr("notegen.llm.client.urlopen", lambda request, timeout=None: RawResponse(None))

    with pytest.raises(MalformedResponseError):
        _client().generate("prompt")


def test_cancel_before_dispatch_sends_nothing() -> None:
    calls = []
    token = CancellationToken()
    token.cancel()

    with pytest.raises(GenerationCancelled):
        _client(lambda request: calls.append(request)).generate("prompt", cancel=token)

    assert calls == []


def test_cancel_while_in_flight_discards_response() -> None:
    started = threading.Event()
    release = threading.Event()
    token = CancellationToken()

    def slow_transport(request):
        started.set()
        release.wait(timeout=5)
        return {"content": [{"type": "text", "text": "too late"}]}

    def cancel_when_started():
        started.wait(timeout=5)
        token.cancel()

    canceller = threading.Thread(target=cancel_when_started)
    canceller.start()
    try:
        with pytest.raises(GenerationCancelled):
            _client(slow_transport).generate("prompt", cancel=token)
    finally:
        release.set()
        canceller.join(timeout=5)


def test_token_passes_through_successful_generation() -> None:
    token = CancellationToken()

    result = _client(lambda request: {"content": [{"type": "text", "text": "done"}]}).generate(
        "prompt", cancel=token
    )

    assert result.text == "done"
    assert token.cancelled is False


def test_client_connection_cut_mid_body_is_a_transport_error(monkeypatch) -> None:
    class TruncatedResponse(FakeResponse):
        def read(self):
            raise IncompleteRead(b"partial")

    monkeypatch.setattr(
        "notegen.llm.client.urlopen", lambda request, timeout=None: TruncatedResponse(None)
    )

    with pytest.raises(TransportError):
        _client().generate("prompt")


def test_client_wraps_low_level_errors_from_custom_transport() -> None:
    def dropping_transport(request):
        raise IncompleteRead(b"partial")

    with pytest.raises(TransportError):
        _client(dropping_transport).generate("prompt")


@pytest.mark.parametrize("base_url", ["api.example.com/v1", "ftp://files.example.com", "https://"])
def test_client_rejects_base_url_without_http_scheme(base_url) -> None:
    with pytest.raises(TransportError):
        _client(base_url=base_url)


def test_client_rejects_base_url_without_scheme_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("NOTEGEN_BASE_URL", "api.example.com/v1")

    with pytest.raises(TransportError):
        GenerationClient("test-model", api_key="secret")


def test_client_uses_default_timeout_when_unset(monkeypatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout=None):
        captured["timeout"] = timeout
        return FakeResponse({"content": [{"type": "text", "text": "ok"}]})

    monkeypatch.setattr("notegen.llm.client.urlopen", fake_urlopen)

    _client(request_timeout=None).generate("prompt")

    assert captured["timeout"] == GenerationClient.DEFAULT_TIMEOUT
