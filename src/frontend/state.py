"""State container for the chat view."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ChatViewState:
    busy: bool = False
    error: str | None = None
