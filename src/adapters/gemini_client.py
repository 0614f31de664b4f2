"""Gemini generative-language API adapter.

Implements the core LanguageModelPort on top of the public REST endpoint.
"""

from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import Any, Optional, Sequence

from adapters.http_client import ProviderAPIError, describe_error, post_json
from adapters.providers import GEMINI, PROVIDER_MODELS
from core.models import ChatMessage

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

MODELS = PROVIDER_MODELS[GEMINI]


class GeminiAPIError(ProviderAPIError):
    provider = GEMINI


def build_request_body(
    messages: Sequence[ChatMessage],
    temperature: float,
    max_output_tokens: int,
    system_prompt: Optional[str] = None,
) -> dict[str, Any]:
    """Map chat messages onto the generateContent request schema."""

    contents = [
        {
            "role": "model" if message.role == "assistant" else "user",
            "parts": [{"text": message.content}],
        }
        for message in messages
    ]
    body: dict[str, Any] = {
        "contents": contents,
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
            "candidateCount": 1,
        },
    }
    if system_prompt:
        body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
    return body


def parse_response(payload: dict[str, Any]) -> str:
    """Extract the first candidate's text from a generateContent response."""

    candidates = payload.get("candidates") or []
    if not candidates or not candidates[0].get("content"):
        raise GeminiAPIError("No response generated", 500)
    parts = candidates[0]["content"].get("parts") or []
    text = "".join(part.get("text", "") for part in parts)
    if not text:
        raise GeminiAPIError("No response generated", 500)
    return text


class GeminiClient:
    """Language-model adapter that calls the Gemini REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        system_prompt: Optional[str] = None,
        timeout: float = 60,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._system_prompt = system_prompt
        self._timeout = timeout

    def _endpoint(self, model: str) -> str:
        query = urllib.parse.urlencode({"key": self._api_key})
        return f"{self._base_url}/models/{model}:generateContent?{query}"

    def generate(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        """Send the conversation and return the reply text (blocking)."""

        body = build_request_body(messages, temperature, max_output_tokens, self._system_prompt)
        LOGGER.info("Sending %s messages to %s", len(messages), model)
        payload = post_json(
            self._endpoint(model),
            body,
            error_type=GeminiAPIError,
            timeout=self._timeout,
        )
        return parse_response(payload)

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        # The HTTP call is blocking; run it off the event loop so the UI stays live.
        try:
            return await asyncio.to_thread(
                self.generate,
                messages,
                model=model,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            )
        except GeminiAPIError as error:
            raise GeminiAPIError(describe_error(error), error.status) from error
