"""Textual front end that renders the conversation and forwards user intents."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Button, Footer, Header, Input

from .assistant import AssistantClient, OpenAICompatibleAssistant
from .config import load_config
from .controller import ChatView, RequestLifecycleController
from .encoder import ContentEncoder
from .exceptions import EncodingError
from .logging_utils import configure_logging
from .screens import ImagePathScreen
from .widgets.conversation import ConversationView
from .widgets.input_box import InputBox

LOGGER = logging.getLogger(__name__)


class M1traChatApp(App[None]):
    """Single-conversation chat UI for text and image prompts."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    #empty_hint {
        width: 100%;
        content-align: center middle;
        color: $text-muted;
        padding: 2 0;
    }

    #thinking_indicator {
        color: $text-muted;
        text-style: italic;
        padding: 0 2;
    }

    InputBox {
        height: auto;
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    #input_row, #image_row {
        height: auto;
    }

    #image_row.hidden {
        display: none;
    }

    #image_preview {
        width: auto;
        padding: 1 1 0 1;
    }

    #message_input {
        width: 1fr;
        margin: 0 1;
    }

    MessageBubble {
        width: 85%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-user {
        background: $primary;
    }

    .message-assistant {
        background: $surface;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "send_message": "Send",
        "attach_image": "Image",
        "clear_image": "Clear Image",
        "quit": "Quit",
    }

    def __init__(
        self,
        config: dict[str, dict[str, Any]] | None = None,
        assistant: AssistantClient | None = None,
    ) -> None:
        self.config = config or load_config()
        configure_logging(self.config["logging"])
        LOGGER.info(
            "app.python",
            extra={"event": "app.python", "version": sys.version.split()[0]},
        )

        assistant_cfg = self.config["assistant"]
        if assistant is None:
            assistant = OpenAICompatibleAssistant(
                base_url=str(assistant_cfg["base_url"]),
                model=str(assistant_cfg["model"]),
                api_key=str(assistant_cfg["api_key"]),
                system_prompt=str(assistant_cfg["system_prompt"]),
                timeout=int(assistant_cfg["timeout"]),
            )
        self.controller = RequestLifecycleController(
            assistant=assistant,
            encoder=ContentEncoder(
                max_image_bytes=int(self.config["attachments"]["max_image_bytes"])
            ),
        )
        self._submit_task: asyncio.Task[bool] | None = None
        self._binding_specs = self._binding_specs_from_config(self.config)
        super().__init__()

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name, description in cls.DEFAULT_ACTION_DESCRIPTIONS.items():
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=description,
                        show=True,
                    )
                )
        return bindings

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="app-root"):
            yield ConversationView(id="conversation")
            yield InputBox()
        yield Footer()

    async def on_mount(self) -> None:
        self.title = str(self.config["app"]["title"])
        self.sub_title = f"Model: {self.config['assistant']['model']}"
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
            )
        self.controller.add_listener(self._on_view_changed)
        await self._render_view()
        self.query_one("#message_input", Input).focus()

    def _on_view_changed(self, _view: ChatView) -> None:
        # Renders are queued on the message pump so mounts never interleave.
        self.call_later(self._render_view)

    async def _render_view(self) -> None:
        view = self.controller.view()
        await self.query_one(ConversationView).sync(view.messages, view.is_pending)
        input_box = self.query_one(InputBox)
        input_box.show_pending_image(view.pending_image)

        message_input = self.query_one("#message_input", Input)
        if view.is_pending and message_input.value:
            message_input.value = ""
        message_input.disabled = view.is_pending
        self.query_one("#send_button", Button).disabled = not view.can_submit
        self.query_one("#attach_button", Button).disabled = view.is_pending

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "message_input":
            self.controller.set_text(event.value)

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "message_input":
            await self.action_send_message()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            await self.action_send_message()

    async def action_send_message(self) -> None:
        """Start a submission in the background; the UI stays responsive."""
        view = self.controller.view()
        if view.is_pending:
            self.sub_title = "Busy. Wait for current request to finish."
            return
        if not view.can_submit:
            self.sub_title = "Cannot send an empty message."
            return
        self.sub_title = "Sending message..."
        self._submit_task = asyncio.create_task(self._run_submit())

    async def _run_submit(self) -> bool:
        accepted = await self.controller.submit()
        self.sub_title = f"Model: {self.config['assistant']['model']}"
        return accepted

    async def on_input_box_attach_requested(
        self, _message: InputBox.AttachRequested
    ) -> None:
        await self.action_attach_image()

    async def action_attach_image(self) -> None:
        if self.controller.view().is_pending:
            return
        self.push_screen(ImagePathScreen(), callback=self._on_image_path_dismissed)

    def _on_image_path_dismissed(self, source: str | None) -> None:
        if source:
            self.call_later(self._attach_image, source)

    async def _attach_image(self, source: str) -> None:
        try:
            part = await self.controller.set_image(source)
        except EncodingError as exc:
            LOGGER.warning(
                "app.image.rejected",
                extra={"event": "app.image.rejected", "reason": str(exc)},
            )
            self.sub_title = str(exc)
            return
        self.sub_title = f"Image attached ({part.mime_type or 'url'})"

    def on_input_box_clear_image_requested(
        self, _message: InputBox.ClearImageRequested
    ) -> None:
        self.action_clear_image()

    def action_clear_image(self) -> None:
        self.controller.clear_image()

    async def on_unmount(self) -> None:
        task = self._submit_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
