from __future__ import annotations

from frontend.modals import model_options


def test_model_options_follow_provider() -> None:
    assert ("GPT-4o", "gpt-4o") in model_options("openai")
    assert all(not model.startswith("gpt") for _, model in model_options("gemini"))


def test_unknown_current_model_is_kept() -> None:
    options = model_options("gemini", "gemini-2.0-experimental")

    assert options[-1] == ("gemini-2.0-experimental", "gemini-2.0-experimental")
    assert model_options("unknown") == []
