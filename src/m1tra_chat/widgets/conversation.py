"""Scrollable conversation view widget."""

from __future__ import annotations

from typing import Any

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Static

from ..models import Message
from .message import MessageBubble

EMPTY_HINT = "Send a message or upload an image to start the conversation"
THINKING_TEXT = "AI is thinking..."


class ConversationView(VerticalScroll):
    """Host message bubbles; mounts only messages it has not rendered yet."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._rendered = 0

    def compose(self) -> ComposeResult:
        yield Static(EMPTY_HINT, id="empty_hint")
        yield Static(THINKING_TEXT, id="thinking_indicator")

    async def sync(self, messages: tuple[Message, ...], pending: bool) -> None:
        """Bring the view in line with an append-only transcript snapshot."""
        indicator = self.query_one("#thinking_indicator", Static)
        self.query_one("#empty_hint", Static).display = not messages
        for message in messages[self._rendered :]:
            await self.mount(MessageBubble(message), before=indicator)
        added = len(messages) > self._rendered
        self._rendered = len(messages)
        indicator.display = pending
        if added or pending:
            self.scroll_end(animate=True)
