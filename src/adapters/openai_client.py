"""OpenAI chat-completions adapter (LanguageModelPort)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from adapters.http_client import ProviderAPIError, describe_error, post_json
from adapters.providers import OPENAI, PROVIDER_MODELS
from core.models import ChatMessage

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"

MODELS = PROVIDER_MODELS[OPENAI]


class OpenAIAPIError(ProviderAPIError):
    provider = OPENAI


def build_request_body(
    messages: Sequence[ChatMessage],
    model: str,
    temperature: float,
    max_output_tokens: int,
    system_prompt: Optional[str] = None,
) -> dict[str, Any]:
    """Map chat messages onto the chat-completions request schema."""

    chat = [{"role": message.role, "content": message.content} for message in messages]
    if system_prompt:
        chat.insert(0, {"role": "system", "content": system_prompt})
    return {
        "model": model,
        "messages": chat,
        "temperature": temperature,
        "max_tokens": max_output_tokens,
        "stream": False,
    }


def parse_response(payload: dict[str, Any]) -> str:
    choices = payload.get("choices") or []
    message = choices[0].get("message") if choices else None
    if not message or not message.get("content"):
        raise OpenAIAPIError("No response generated", 500)
    return message["content"]


class OpenAIClient:
    """Language-model adapter that calls the OpenAI chat-completions API."""

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

    def generate(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        """Send the conversation and return the reply text (blocking)."""

        body = build_request_body(
            messages, model, temperature, max_output_tokens, self._system_prompt
        )
        LOGGER.info("Sending %s messages to %s", len(messages), model)
        payload = post_json(
            f"{self._base_url}/chat/completions",
            body,
            error_type=OpenAIAPIError,
            headers={"Authorization": f"Bearer {self._api_key}"},
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
        try:
            return await asyncio.to_thread(
                self.generate,
                messages,
                model=model,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            )
        except OpenAIAPIError as error:
            raise OpenAIAPIError(describe_error(error), error.status) from error
