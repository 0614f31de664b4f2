from __future__ import annotations

import asyncio
import io
import json
import urllib.error
import urllib.request
from typing import Any

import pytest

from adapters.gemini_client import (
    GeminiAPIError,
    GeminiClient,
    build_request_body,
    describe_error,
    parse_response,
)
from core.models import ChatMessage


class _FakeResponse:
    def __init__(self, payload: dict[str, Any]) -> None:
        self._body = json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None


def _messages() -> list[ChatMessage]:
    return [
        ChatMessage(role="user", content="Hi", id=1),
        ChatMessage(role="assistant", content="Hello!", id=2),
        ChatMessage(role="user", content="Recommend a laptop", id=3),
    ]


def _http_error(code: int, body: bytes) -> urllib.error.HTTPError:
    return urllib.error.HTTPError("https://example.test", code, "error", None, io.BytesIO(body))


def test_request_body_maps_roles_and_generation_config() -> None:
    body = build_request_body(_messages(), 0.5, 100, system_prompt="Be brief.")

    assert [item["role"] for item in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][2]["parts"] == [{"text": "Recommend a laptop"}]
    assert body["generationConfig"] == {
        "temperature": 0.5,
        "maxOutputTokens": 100,
        "candidateCount": 1,
    }
    assert body["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
    assert "systemInstruction" not in build_request_body(_messages(), 0.5, 100)


def test_parse_response_requires_text() -> None:
    payload = {"candidates": [{"content": {"parts": [{"text": "Sure"}, {"text": "!"}]}}]}
    assert parse_response(payload) == "Sure!"

    with pytest.raises(GeminiAPIError) as info:
        parse_response({"candidates": []})
    assert info.value.status == 500


def test_generate_posts_to_model_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    def fake_urlopen(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        seen["url"] = request.full_url
        seen["body"] = json.loads(request.data.decode("utf-8"))
        return _FakeResponse({"candidates": [{"content": {"parts": [{"text": "A Dell XPS."}]}}]})

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    client = GeminiClient("secret", base_url="https://api.example/v1/")

    reply = client.generate(_messages(), model="gemini-pro", temperature=0.7, max_output_tokens=50)

    assert reply == "A Dell XPS."
    assert seen["url"] == "https://api.example/v1/models/gemini-pro:generateContent?key=secret"
    assert seen["body"]["generationConfig"]["maxOutputTokens"] == 50


def test_http_error_uses_api_message(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        raise _http_error(400, json.dumps({"error": {"message": "Bad model"}}).encode("utf-8"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(GeminiAPIError) as info:
        GeminiClient("k").generate(_messages(), model="x", temperature=0.1, max_output_tokens=1)

    assert str(info.value) == "Bad model"
    assert info.value.status == 400


def test_complete_translates_rate_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        raise _http_error(429, b"not json")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    client = GeminiClient("k")

    with pytest.raises(GeminiAPIError) as info:
        asyncio.run(
            client.complete(_messages(), model="x", temperature=0.1, max_output_tokens=1)
        )

    assert info.value.status == 429
    assert "Rate limit" in str(info.value)


def test_describe_error_falls_back_to_message() -> None:
    assert describe_error(GeminiAPIError("Network error: down")) == "Network error: down"
    assert describe_error(GeminiAPIError("")) == "Failed to send message. Please try again."
