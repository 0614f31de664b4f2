"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so the app layer can build them safely from settings.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringWeights:
    """Points awarded per keyword for each match bucket."""

    brand: int = 25
    exact_tag: int = 20
    title: int = 15
    category: int = 10
    summary: int = 8
    partial_tag: int = 3

    def validate(self) -> None:
        """Reject weights that break brand > exact > title > category > summary > partial."""

        ordered = [
            ("brand", self.brand),
            ("exact_tag", self.exact_tag),
            ("title", self.title),
            ("category", self.category),
            ("summary", self.summary),
            ("partial_tag", self.partial_tag),
        ]
        for (higher_name, higher), (lower_name, lower) in zip(ordered, ordered[1:]):
            if higher <= lower:
                raise ValueError(
                    f"Scoring weight {higher_name}={higher} must exceed {lower_name}={lower}"
                )
        if self.partial_tag < 0:
            raise ValueError("Scoring weights must be non-negative")


@dataclass(frozen=True)
class SelectionConfig:
    """Selector-wide settings."""

    recency_penalty: float = 0.3


@dataclass(frozen=True)
class RegistryConfig:
    """Shown-ad registry settings."""

    recent_capacity: int = 10


@dataclass(frozen=True)
class PlacementConfig:
    """Thresholds and heuristics used by the placement policy.

    Thresholds drop as more text accumulates: the user's message alone needs
    a strong signal, the finished reply less so, and contextual reinforcement
    over several messages the least.
    """

    input_min_score: int = 15
    streaming_min_score: int = 15
    completion_min_score: int = 10
    contextual_min_score: int = 8
    early_context_chars: int = 300
    stream_min_chars: int = 250
    max_ads_per_conversation: int = 3
    min_messages_between_ads: int = 4
    contextual_window: int = 3


@dataclass(frozen=True)
class ChatConfig:
    """Model request settings used by the chat processor."""

    provider: str = "gemini"
    model: str = "gemini-1.5-flash"
    temperature: float = 0.7
    max_output_tokens: int = 4000
    enable_streaming: bool = True
    stream_speed: float = 1.0
