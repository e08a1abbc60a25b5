from __future__ import annotations

import json

import httpx
import pytest

from tseleskop.services.ai.client import AIConfig, CompletionClient
from tseleskop.services.ai.errors import ConfigurationError, TransportError, UpstreamError
from tseleskop.services.ai.types import ChatMessage


def _completion(content, *, choices=None) -> dict:
    return {
        "id": "cmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "deepseek-chat",
        "choices": choices
        if choices is not None
        else [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


def _client(handler) -> CompletionClient:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return CompletionClient(AIConfig(api_key="test-key"), http_client=http_client)


def test_config_requires_api_key() -> None:
    with pytest.raises(ConfigurationError):
        AIConfig(api_key="")


def test_sends_system_prompt_first_and_returns_content() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("Привет"))

    result = _client(handler).complete([ChatMessage(role="user", content="Вопрос")], system_prompt="Ты коуч")

    assert result == "Привет"
    assert seen["url"] == "https://api.deepseek.com/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "deepseek-chat"
    assert seen["body"]["temperature"] == 0.3
    assert seen["body"]["messages"] == [
        {"role": "system", "content": "Ты коуч"},
        {"role": "user", "content": "Вопрос"},
    ]


def test_without_system_prompt_only_caller_messages_are_sent() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("ok"))

    _client(handler).complete([ChatMessage(role="user", content="a"), ChatMessage(role="assistant", content="b")])

    assert [m["role"] for m in seen["body"]["messages"]] == ["user", "assistant"]


def test_unexpected_shape_returns_empty_string() -> None:
    client = _client(lambda request: httpx.Response(200, json=_completion(None, choices=[])))
    assert client.complete([ChatMessage(role="user", content="x")]) == ""


def test_null_content_returns_empty_string() -> None:
    client = _client(lambda request: httpx.Response(200, json=_completion(None)))
    assert client.complete([ChatMessage(role="user", content="x")]) == ""


def test_non_success_status_raises_upstream_error_with_body() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, json={"error": {"message": "boom"}})

    with pytest.raises(UpstreamError) as excinfo:
        _client(handler).complete([ChatMessage(role="user", content="x")])

    assert excinfo.value.status_code == 500
    assert "boom" in excinfo.value.body
    assert len(calls) == 1


def test_connection_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        _client(handler).complete([ChatMessage(role="user", content="x")])
