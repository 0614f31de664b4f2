"""Core chat processing pipeline.

This module is integration-agnostic. It only relies on the language-model,
storage, and selector ports plus the placement policy, so the Textual UI, the
CLI, and tests all drive the same flow:

1) Append the user message and run the input ad trigger
2) Ask the conversation's provider for the full reply
3) Replay the reply as growing partials, consulting the policy on each
4) Run the completion trigger, record the committed ad, and persist the turn
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, List, Mapping, Optional

from core.catalog import get_entry_by_id
from core.config import ChatConfig
from core.ids import IdGenerator
from core.models import CatalogEntry, ChatMessage, Conversation
from core.placement import (
    ContextualPlacement,
    PlacementPolicy,
    PlacementRequest,
    plan_contextual_placements,
)
from core.ports import LanguageModelPort, SelectorPort, StoragePort
from core.registry import ShownAdRegistry
from core.streaming import stream_chunks

LOGGER = logging.getLogger(__name__)

TITLE_MAX_CHARS = 50
PREFERENCES_KEY = "preferences"

PartialCallback = Callable[[str, Optional[CatalogEntry]], Awaitable[None]]


@dataclass(frozen=True)
class ChatTurn:
    """Outcome of one user message."""

    user_message: ChatMessage
    reply: Optional[ChatMessage]
    ad: Optional[CatalogEntry]
    error: Optional[str] = None


def conversation_title(text: str) -> str:
    """Derive a conversation title from the first user message."""

    if len(text) > TITLE_MAX_CHARS:
        return text[: TITLE_MAX_CHARS - 3] + "..."
    return text


class ChatProcessor:
    """Orchestrates conversations, model calls, ad placement, and persistence."""

    def __init__(
        self,
        language_models: Mapping[str, LanguageModelPort],
        selector: SelectorPort,
        policy: PlacementPolicy,
        registry: ShownAdRegistry,
        chat_config: ChatConfig,
        ids: Optional[IdGenerator] = None,
        rng: Optional[random.Random] = None,
        storage: Optional[StoragePort] = None,
    ) -> None:
        self._llms = dict(language_models)
        self._selector = selector
        self._policy = policy
        self._registry = registry
        self._config = chat_config
        self._ids = ids or IdGenerator()
        self._rng = rng or random.Random()
        self._storage = storage
        self._conversations: dict[int, Conversation] = {}
        self._current_id: Optional[int] = None

    @property
    def config(self) -> ChatConfig:
        return self._config

    @property
    def providers(self) -> List[str]:
        """Providers that have a configured language model."""

        return list(self._llms)

    @property
    def current(self) -> Optional[Conversation]:
        if self._current_id is None:
            return None
        return self._conversations.get(self._current_id)

    def conversations(self) -> List[Conversation]:
        """Return conversations, newest first."""

        return sorted(self._conversations.values(), key=lambda conv: conv.id, reverse=True)

    def load(self) -> int:
        """Restore saved preferences and conversations; return how many were loaded.

        The newest conversation becomes current. Ads are resolved against the
        selector's catalog; ids that no longer exist are dropped.
        """

        if self._storage is None:
            return 0

        preferences = self._storage.get_setting(PREFERENCES_KEY) or {}
        known = {
            name: preferences[name]
            for name in ("provider", "model", "enable_streaming")
            if name in preferences
        }
        if known:
            self._config = replace(self._config, **known)

        highest = 0
        for record in self._storage.load_conversations():
            conversation = record.conversation
            for message_id, ad_id in record.ad_ids.items():
                entry = get_entry_by_id(self._selector.catalog, ad_id)
                if entry is None:
                    LOGGER.warning("Stored ad %s is not in the catalog; dropping it", ad_id)
                    continue
                conversation.message_ads[message_id] = entry
            self._conversations[conversation.id] = conversation
            highest = max([highest, conversation.id] + [m.id for m in conversation.messages])

        self._ids.reserve_through(highest)
        if self._conversations:
            self._current_id = max(self._conversations)
        LOGGER.info("Loaded %s conversations from storage", len(self._conversations))
        return len(self._conversations)

    def update_settings(self, config: ChatConfig) -> None:
        """Apply new chat settings to future requests and the current conversation."""

        self._config = config
        conversation = self.current
        if conversation is not None:
            conversation.provider = config.provider
            conversation.model = config.model
        if self._storage is None:
            return
        self._storage.save_setting(
            PREFERENCES_KEY,
            {
                "provider": config.provider,
                "model": config.model,
                "enable_streaming": config.enable_streaming,
            },
        )
        if conversation is not None:
            self._storage.save_conversation(conversation)

    def new_conversation(
        self, model: Optional[str] = None, provider: Optional[str] = None
    ) -> Conversation:
        conversation = Conversation(
            id=self._ids.next_id(),
            model=model or self._config.model,
            provider=provider or self._config.provider,
        )
        self._conversations[conversation.id] = conversation
        self._current_id = conversation.id
        if self._storage is not None:
            self._storage.save_conversation(conversation)
        LOGGER.info("Started conversation %s", conversation.id)
        return conversation

    def switch_conversation(self, conversation_id: int) -> Conversation:
        """Make another conversation current and reset its shown-ad set."""

        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise KeyError(f"Unknown conversation: {conversation_id}")
        self._registry.clear(conversation_id)
        self._current_id = conversation_id
        return conversation

    def delete_conversation(self, conversation_id: int) -> None:
        conversation = self._conversations.pop(conversation_id, None)
        if conversation is None:
            return
        self._registry.clear(conversation_id)
        self._policy.forget(message.id for message in conversation.messages)
        if self._storage is not None:
            self._storage.delete_conversation(conversation_id)
        if self._current_id == conversation_id:
            self._current_id = None

    def contextual_placements(
        self, conversation_id: Optional[int] = None
    ) -> List[ContextualPlacement]:
        """Suggest reinforcement ads across a transcript (the current one by default)."""

        if conversation_id is None:
            conversation = self.current
        else:
            conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return []
        return plan_contextual_placements(
            conversation.messages,
            self._selector,
            recent_ids=self._registry.get_recent(),
        )

    def _language_model(self, provider: str) -> LanguageModelPort:
        llm = self._llms.get(provider)
        if llm is None:
            raise RuntimeError(f"API key not found for {provider}")
        return llm

    async def send(self, text: str, on_partial: Optional[PartialCallback] = None) -> ChatTurn:
        """Run one user message through the model and the placement policy."""

        content = text.strip()
        if not content:
            raise ValueError("Message text is empty")

        conversation = self.current or self.new_conversation()
        user_message = ChatMessage(role="user", content=content, id=self._ids.next_id())
        if not conversation.messages:
            conversation.title = conversation_title(content)
        conversation.messages.append(user_message)
        if self._storage is not None:
            self._storage.save_conversation(conversation)
            self._storage.add_message(conversation.id, user_message)

        # The reply id is minted up front so the input trigger can reserve an
        # ad for the reply before it exists.
        reply_id = self._ids.next_id()
        request = PlacementRequest(
            conversation_id=conversation.id,
            message_id=reply_id,
            user_text=content,
        )
        self._policy.place(request)

        try:
            llm = self._language_model(conversation.provider)
            reply_text = await llm.complete(
                conversation.messages,
                model=conversation.model,
                temperature=self._config.temperature,
                max_output_tokens=self._config.max_output_tokens,
            )
        except Exception as exc:
            LOGGER.exception("Model request failed for conversation %s", conversation.id)
            self._policy.forget([reply_id])
            return ChatTurn(user_message=user_message, reply=None, ad=None, error=str(exc))

        if on_partial is not None and self._config.enable_streaming:
            for partial, delay in stream_chunks(reply_text, self._rng):
                ad = self._policy.place(
                    PlacementRequest(
                        conversation_id=conversation.id,
                        message_id=reply_id,
                        user_text=content,
                        reply_text=partial,
                    )
                )
                await on_partial(partial, ad)
                await asyncio.sleep(delay * self._config.stream_speed)

        ad = self._policy.place(
            PlacementRequest(
                conversation_id=conversation.id,
                message_id=reply_id,
                user_text=content,
                reply_text=reply_text,
                complete=True,
            )
        )

        reply = ChatMessage(role="assistant", content=reply_text, id=reply_id)
        conversation.messages.append(reply)
        if ad is not None:
            conversation.message_ads[reply_id] = ad
        # The conversation now owns the commitment.
        self._policy.forget([reply_id])
        if self._storage is not None:
            self._storage.add_message(conversation.id, reply, ad.id if ad else None)
        return ChatTurn(user_message=user_message, reply=reply, ad=ad)
