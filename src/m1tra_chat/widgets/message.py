"""Message bubble widget for conversation rendering."""

from __future__ import annotations

from typing import Any

from rich.markdown import Markdown
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

from ..models import ImagePart, Message, Role, TextPart


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def describe_image(part: ImagePart) -> str:
    """Return a one-line label for an image part (terminals cannot show it)."""
    if not part.is_embedded:
        return f"[image] {part.uri}"
    payload = part.uri.split(",", 1)[1] if "," in part.uri else ""
    decoded_size = len(payload) * 3 // 4 - payload[-2:].count("=")
    return f"[image] {part.mime_type or 'unknown'}, {format_size(max(decoded_size, 0))}"


class MessageBubble(Vertical):
    """Render a single chat message: role header, then each part in order."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > .image-part {
        color: $text-muted;
        padding: 0 1;
        border-left: solid $accent;
    }
    """

    def __init__(self, message: Message, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.add_class(f"message-{message.role.value}")

    @property
    def role_prefix(self) -> str:
        return "You" if self.message.role == Role.USER else "Assistant"

    def compose(self) -> ComposeResult:
        yield Static(Markdown(f"**{self.role_prefix}**"), classes="message-header")
        for part in self.message.parts:
            if isinstance(part, TextPart):
                yield Static(Markdown(part.text), classes="text-part")
            elif isinstance(part, ImagePart):
                yield Static(Text(describe_image(part), style="italic"), classes="image-part")
