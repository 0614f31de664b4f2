"""Language-model client factory for adscope."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

import settings
from adapters import gemini_client, openai_client
from adapters.providers import GEMINI, OPENAI
from core.ports import LanguageModelPort


def build_language_models() -> dict[str, LanguageModelPort]:
    """Create one client per provider that has an API key in the environment.

    We read GEMINI_API_KEY / OPENAI_API_KEY via python-dotenv to keep secrets
    out of the repo. The *_BASE_URL variables are optional overrides.
    """

    load_dotenv()
    logger = logging.getLogger(__name__)
    system_prompt = settings.SYSTEM_PROMPT or None

    models: dict[str, LanguageModelPort] = {}
    gemini_key = os.getenv("GEMINI_API_KEY")
    if gemini_key:
        models[GEMINI] = gemini_client.GeminiClient(
            api_key=gemini_key,
            base_url=os.getenv("GEMINI_BASE_URL") or gemini_client.DEFAULT_BASE_URL,
            system_prompt=system_prompt,
        )
    openai_key = os.getenv("OPENAI_API_KEY")
    if openai_key:
        models[OPENAI] = openai_client.OpenAIClient(
            api_key=openai_key,
            base_url=os.getenv("OPENAI_BASE_URL") or openai_client.DEFAULT_BASE_URL,
            system_prompt=system_prompt,
        )

    # Fail fast on missing credentials instead of a confusing 401 mid-chat.
    if not models:
        raise RuntimeError("Missing GEMINI_API_KEY or OPENAI_API_KEY in environment")

    logger.info("Initializing language models: %s", ", ".join(models))
    return models
