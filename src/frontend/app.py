"""Main Textual app for the adscope chat demo."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Footer, Input, ListView, Static

from adapters.providers import provider_label
from core.config import ChatConfig
from core.models import CatalogEntry, Conversation
from core.processor import ChatProcessor

from .constants import ACCENT
from .modals import DeleteConversationScreen, SettingsScreen
from .state import ChatViewState
from .widgets import AssistantMessage, ConversationItem, ErrorMessage, UserMessage


class ChatApp(App):
    """Chat log with inline sponsored cards and a conversation sidebar."""

    CSS = """
    Screen {
        background: #14161a;
        color: #e6e6e6;
    }

    #header {
        height: 3;
        padding: 0 2;
        border-bottom: solid #2e3238;
    }

    #title {
        width: 1fr;
        text-style: bold;
    }

    #header-status {
        width: auto;
        color: #9aa0a6;
    }

    #sidebar {
        width: 28;
        border-right: solid #2e3238;
    }

    #messages {
        height: 1fr;
        padding: 0 2;
    }

    UserMessage {
        margin: 1 0 0 0;
    }

    AssistantMessage {
        height: auto;
        margin: 1 0 0 0;
    }

    .ad-card {
        border: round #F5A524;
        padding: 0 1;
        margin: 1 0;
    }

    .hidden {
        display: none;
    }

    #prompt {
        dock: bottom;
        margin: 0 2 1 2;
    }

    .modal-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        border: round #F5A524;
        background: #1d2026;
    }

    .modal-title {
        text-style: bold;
    }

    .modal-actions {
        height: auto;
        margin-top: 1;
    }

    SettingsScreen, DeleteConversationScreen {
        align: center middle;
    }
    """

    BINDINGS = [
        ("ctrl+n", "new_conversation", "New chat"),
        ("ctrl+o", "open_settings", "Settings"),
        ("ctrl+d", "delete_conversation", "Delete chat"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, processor: ChatProcessor, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.processor = processor
        self.view_state = ChatViewState()

    def compose(self) -> ComposeResult:
        with Horizontal(id="header"):
            yield Static(self._title_text(), id="title")
            yield Static("", id="header-status")
        with Horizontal():
            yield ListView(id="sidebar")
            with Vertical():
                yield VerticalScroll(id="messages")
                yield Input(placeholder="Message the assistant...", id="prompt")
        yield Footer()

    def on_mount(self) -> None:
        conversation = self.processor.current or self.processor.new_conversation()
        self.run_worker(self._render_conversation(conversation), exclusive=True)
        self._refresh_sidebar()
        self._refresh_header()
        self.query_one("#prompt", Input).focus()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        if not text or self.view_state.busy:
            return
        event.input.value = ""
        self.run_worker(self._send(text), exclusive=True)

    async def _send(self, text: str) -> None:
        log = self.query_one("#messages", VerticalScroll)
        self.view_state.busy = True
        self.view_state.error = None
        self._refresh_header()

        await log.mount(UserMessage(text))
        reply_widget = AssistantMessage()
        await log.mount(reply_widget)
        log.scroll_end(animate=False)

        async def on_partial(partial: str, ad: Optional[CatalogEntry]) -> None:
            reply_widget.render_reply(partial, ad, streaming=True)
            log.scroll_end(animate=False)

        try:
            turn = await self.processor.send(text, on_partial=on_partial)
        finally:
            self.view_state.busy = False

        if turn.error:
            await reply_widget.remove()
            await log.mount(ErrorMessage(turn.error))
            self.view_state.error = turn.error
        elif turn.reply is not None:
            reply_widget.render_reply(turn.reply.content, turn.ad, streaming=False)
        log.scroll_end(animate=False)
        self._refresh_sidebar()
        self._refresh_header()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if not isinstance(item, ConversationItem) or self.view_state.busy:
            return
        conversation = self.processor.switch_conversation(item.conversation_id)
        self.run_worker(self._render_conversation(conversation), exclusive=True)
        self._refresh_header()

    async def _render_conversation(self, conversation: Conversation) -> None:
        log = self.query_one("#messages", VerticalScroll)
        await log.remove_children()
        for message in conversation.messages:
            if message.role == "user":
                await log.mount(UserMessage(message.content))
                continue
            widget = AssistantMessage()
            await log.mount(widget)
            widget.render_reply(
                message.content, conversation.message_ads.get(message.id), streaming=False
            )
        log.scroll_end(animate=False)

    def action_new_conversation(self) -> None:
        if self.view_state.busy:
            return
        conversation = self.processor.new_conversation()
        self.run_worker(self._render_conversation(conversation), exclusive=True)
        self._refresh_sidebar()
        self._refresh_header()

    def action_open_settings(self) -> None:
        self.push_screen(
            SettingsScreen(self.processor.config, self.processor.providers), self._handle_settings
        )

    def _handle_settings(self, config: Optional[ChatConfig]) -> None:
        if config is None:
            return
        self.processor.update_settings(config)
        self._refresh_header()

    def action_delete_conversation(self) -> None:
        if self.view_state.busy or self.processor.current is None:
            return
        self.push_screen(DeleteConversationScreen(), self._handle_delete)

    def _handle_delete(self, confirmed: bool | None) -> None:
        current = self.processor.current
        if not confirmed or current is None:
            return
        self.processor.delete_conversation(current.id)
        remaining = self.processor.conversations()
        if remaining:
            conversation = self.processor.switch_conversation(remaining[0].id)
        else:
            conversation = self.processor.new_conversation()
        self.run_worker(self._render_conversation(conversation), exclusive=True)
        self._refresh_sidebar()
        self._refresh_header()

    def _refresh_sidebar(self) -> None:
        sidebar = self.query_one("#sidebar", ListView)
        sidebar.clear()
        for conversation in self.processor.conversations():
            sidebar.append(ConversationItem(conversation.id, conversation.title))

    def _refresh_header(self) -> None:
        status = self.query_one("#header-status", Static)
        current = self.processor.current
        config = self.processor.config
        provider = provider_label(current.provider if current else config.provider)
        model = f"{provider} {current.model if current else config.model}"
        streaming = "on" if config.enable_streaming else "off"
        if self.view_state.busy:
            status.update(f"{model} · thinking...")
        elif self.view_state.error:
            status.update(Text(f"{model} · error", style="red"))
        else:
            status.update(f"{model} · streaming {streaming}")

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("AD", ACCENT),
            ("SCOPE > Chat", "bold"),
        )
