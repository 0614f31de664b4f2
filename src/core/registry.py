"""Shown-ad tracking (core domain).

Two independent structures with different lifetimes:
- a per-conversation set of shown ad ids (grows, cleared per conversation);
- a global most-recent-first queue with a fixed capacity, shared by all
  conversations and never cleared by conversation changes.
"""

from __future__ import annotations

from collections import deque
from typing import Hashable, List, Optional

from core.config import RegistryConfig


class ShownAdRegistry:
    """Remembers which ads were shown, for exclusion and recency dampening."""

    def __init__(self, config: Optional[RegistryConfig] = None) -> None:
        capacity = (config or RegistryConfig()).recent_capacity
        if capacity <= 0:
            raise ValueError("recent_capacity must be positive")
        self._shown_by_conversation: dict[Hashable, set[int]] = {}
        self._recent: deque[int] = deque(maxlen=capacity)

    def mark_shown(self, conversation_id: Hashable, ad_id: int) -> None:
        self._shown_by_conversation.setdefault(conversation_id, set()).add(ad_id)
        # appendleft on a bounded deque evicts the oldest id from the right.
        self._recent.appendleft(ad_id)

    def get_shown(self, conversation_id: Hashable) -> set[int]:
        return set(self._shown_by_conversation.get(conversation_id, ()))

    def get_recent(self) -> List[int]:
        return list(self._recent)

    def clear(self, conversation_id: Hashable) -> None:
        self._shown_by_conversation.pop(conversation_id, None)

    def reset(self) -> None:
        """Forget every conversation's shown set; recency is kept."""

        self._shown_by_conversation.clear()
