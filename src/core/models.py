"""Core domain models.

These dataclasses are shared across the core, adapters, and frontend to avoid
coupling the matching engine to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CompanyInfo:
    """Advertiser metadata; only the name takes part in scoring."""

    name: str
    logo: Optional[str] = None


@dataclass(frozen=True)
class AdLink:
    """Call-to-action link rendered under an ad card."""

    text: str
    url: str
    description: Optional[str] = None


@dataclass(frozen=True)
class CatalogEntry:
    """One static advertisement record from the bundled catalog."""

    id: int
    title: str
    summary: str
    category: str
    keywords: tuple[str, ...]
    company: Optional[CompanyInfo] = None
    links: tuple[AdLink, ...] = ()


@dataclass(frozen=True)
class AdMatch:
    """A single selector result with its raw score and the keywords behind it."""

    entry: CatalogEntry
    score: int
    matched_keywords: tuple[str, ...]


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str
    id: int


@dataclass
class Conversation:
    """A chat thread; message_ads holds one committed ad per reply."""

    id: int
    model: str
    provider: str = "gemini"
    title: str = "New Chat"
    messages: list[ChatMessage] = field(default_factory=list)
    message_ads: dict[int, CatalogEntry] = field(default_factory=dict)


@dataclass(frozen=True)
class StoredConversation:
    """A conversation as loaded from storage, with ads still referenced by id."""

    conversation: Conversation
    ad_ids: dict[int, int] = field(default_factory=dict)
