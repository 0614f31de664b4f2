"""Message widgets for the chat log."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Label, ListItem, Markdown, Static

from adapters.ad_formatting import format_ad_card
from core.models import CatalogEntry

from .constants import USER_COLOR
from .layout import split_for_ad


class UserMessage(Static):
    """A user's message, rendered as plain text."""

    def __init__(self, content: str, **kwargs: Any) -> None:
        super().__init__(Text.assemble(("You  ", f"bold {USER_COLOR}"), content), **kwargs)


class AssistantMessage(Vertical):
    """An assistant reply with an optional inline ad card.

    The reply is split around the ad slot: text before the card, the card,
    then the remaining text. While the slot is not yet open the whole reply
    sits in the first part and the card stays hidden.
    """

    def __init__(self, content: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._content = content
        self._ad: Optional[CatalogEntry] = None
        self._streaming = True

    def compose(self) -> ComposeResult:
        yield Markdown(self._content, classes="reply-head")
        yield Markdown("", classes="ad-card hidden")
        yield Markdown("", classes="reply-tail hidden")

    def render_reply(self, content: str, ad: Optional[CatalogEntry], streaming: bool) -> None:
        """Re-render the reply for the current partial text and committed ad."""

        self._content = content
        self._streaming = streaming
        if ad is not None and self._ad is None:
            self._ad = ad
            self.query_one(".ad-card", Markdown).update(format_ad_card(ad, "markdown"))

        head = self.query_one(".reply-head", Markdown)
        card = self.query_one(".ad-card", Markdown)
        tail = self.query_one(".reply-tail", Markdown)

        if self._ad is None:
            head.update(content)
            card.add_class("hidden")
            tail.add_class("hidden")
            return

        before, after = split_for_ad(content, streaming)
        head.update(before)
        if after is None:
            card.add_class("hidden")
            tail.add_class("hidden")
            return
        card.remove_class("hidden")
        tail.update(after)
        tail.set_class(not after.strip(), "hidden")


class ErrorMessage(Static):
    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(Text(message, style="bold red"), **kwargs)


class ConversationItem(ListItem):
    """Sidebar entry bound to a conversation id."""

    def __init__(self, conversation_id: int, title: str, **kwargs: Any) -> None:
        super().__init__(Label(title), **kwargs)
        self.conversation_id = conversation_id
