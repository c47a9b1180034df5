"""Modal screens used by the chat app."""

from __future__ import annotations

from typing import Any

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Input, Static


class ImagePathScreen(ModalScreen[str | None]):
    """Prompt for an image path, URL, or data URI to attach."""

    CSS = """
    ImagePathScreen {
        align: center middle;
    }

    #image-path-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        border: round $panel;
        background: $surface;
    }

    #image-path-title {
        padding-bottom: 1;
        text-style: bold;
    }

    #image-path-input {
        width: 100%;
        margin-bottom: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Container(id="image-path-dialog"):
            yield Static("Attach image", id="image-path-title")
            yield Input(
                placeholder="~/Pictures/photo.png, https://... or data:image/...",
                id="image-path-input",
            )
            yield Static("Enter to attach | Esc to cancel", id="image-path-help")

    def on_mount(self) -> None:
        self.query_one("#image-path-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "image-path-input":
            return
        event.stop()
        value = event.value.strip()
        self.dismiss(value or None)

    def on_key(self, event: Any) -> None:  # noqa: ANN401
        if str(getattr(event, "key", "")).lower() == "escape":
            self.dismiss(None)
