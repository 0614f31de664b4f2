"""Modal dialogs for the Textual chat UI."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Select, Static, Switch

from adapters.providers import DEFAULT_MODELS, PROVIDER_MODELS, provider_label
from core.config import ChatConfig


def model_options(provider: str, current: Optional[str] = None) -> list[tuple[str, str]]:
    """Return (label, model) pairs for ``provider``, keeping an unknown current model."""

    models = PROVIDER_MODELS.get(provider, {})
    options = [(label, model) for model, label in models.items()]
    if current and current not in models:
        options.append((current, current))
    return options


class SettingsScreen(ModalScreen[Optional[ChatConfig]]):
    """Edit the provider, model, and streaming switch for new requests."""

    def __init__(self, config: ChatConfig, providers: Sequence[str]) -> None:
        super().__init__()
        self._config = config
        self._providers = list(providers) or [config.provider]
        if config.provider not in self._providers:
            self._providers.append(config.provider)

    def compose(self) -> ComposeResult:
        provider_options = [(provider_label(name), name) for name in self._providers]
        yield Container(
            Static("Settings", classes="modal-title"),
            Static("provider", classes="form-label"),
            Select(
                provider_options,
                value=self._config.provider,
                allow_blank=False,
                id="settings-provider",
            ),
            Static("model", classes="form-label"),
            Select(
                model_options(self._config.provider, self._config.model),
                value=self._config.model,
                allow_blank=False,
                id="settings-model",
            ),
            Static("streaming", classes="form-label"),
            Switch(value=self._config.enable_streaming, id="settings-streaming"),
            Horizontal(
                Button("Save", id="settings-save", variant="success"),
                Button("Cancel", id="settings-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog",
        )

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "settings-provider":
            return
        provider = str(event.value)
        model_select = self.query_one("#settings-model", Select)
        if model_select.value in PROVIDER_MODELS.get(provider, {}):
            return
        model_select.set_options(model_options(provider))
        model_select.value = DEFAULT_MODELS.get(provider, self._config.model)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id != "settings-save":
            self.dismiss(None)
            return
        provider = self.query_one("#settings-provider", Select).value
        model = self.query_one("#settings-model", Select).value
        streaming = self.query_one("#settings-streaming", Switch).value
        self.dismiss(
            replace(
                self._config,
                provider=str(provider),
                model=str(model),
                enable_streaming=streaming,
            )
        )


class DeleteConversationScreen(ModalScreen[bool]):
    """Confirm deleting the current conversation."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Delete conversation?", classes="modal-title"),
            Static("Messages and their ads will be lost.", classes="modal-body"),
            Horizontal(
                Button("Delete", id="delete-confirm", variant="error"),
                Button("Cancel", id="delete-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "delete-confirm")
