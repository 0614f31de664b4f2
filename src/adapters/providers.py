"""Supported language-model providers and their model tables."""

from __future__ import annotations

GEMINI = "gemini"
OPENAI = "openai"

PROVIDER_LABELS = {
    GEMINI: "Gemini",
    OPENAI: "OpenAI",
}

PROVIDER_MODELS = {
    OPENAI: {
        "gpt-4o": "GPT-4o",
        "gpt-4o-mini": "GPT-4o Mini",
        "gpt-4-turbo": "GPT-4 Turbo",
        "gpt-3.5-turbo": "GPT-3.5 Turbo",
    },
    GEMINI: {
        "gemini-1.5-pro": "Gemini 1.5 Pro",
        "gemini-1.5-flash": "Gemini 1.5 Flash",
        "gemini-pro": "Gemini Pro",
    },
}

DEFAULT_MODELS = {
    OPENAI: "gpt-4o-mini",
    GEMINI: "gemini-1.5-flash",
}


def provider_label(provider: str) -> str:
    return PROVIDER_LABELS.get(provider, provider)
