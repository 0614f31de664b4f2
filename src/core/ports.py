"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the language-model adapters, the ad
selector, and conversation storage so the core can be exercised with fakes
and alternate backends.
"""

from __future__ import annotations

from typing import Any, Collection, List, Optional, Protocol, Sequence

from core.models import AdMatch, CatalogEntry, ChatMessage, Conversation, StoredConversation


class LanguageModelPort(Protocol):
    """Chat completion operations required by the chat processor."""

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        ...


class SelectorPort(Protocol):
    """Ranking operation required by the placement policy."""

    @property
    def catalog(self) -> Sequence[CatalogEntry]:
        ...

    def select(
        self,
        text: Any,
        *,
        max_results: int = 1,
        min_score: int = 10,
        exclude_ids: Collection[int] = (),
        recent_ids: Collection[int] = (),
    ) -> List[AdMatch]:
        ...


class StoragePort(Protocol):
    """Conversation persistence required by the chat processor."""

    def save_conversation(self, conversation: Conversation) -> None:
        ...

    def add_message(
        self, conversation_id: int, message: ChatMessage, ad_id: Optional[int] = None
    ) -> None:
        ...

    def delete_conversation(self, conversation_id: int) -> None:
        ...

    def load_conversations(self) -> List[StoredConversation]:
        ...

    def save_setting(self, key: str, value: Any) -> None:
        ...

    def get_setting(self, key: str, default: Any = None) -> Any:
        ...
