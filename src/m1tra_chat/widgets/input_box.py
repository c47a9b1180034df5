"""Input region with message field, image controls, and send button."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, Static

from ..models import ImagePart
from .message import describe_image


class InputBox(Vertical):
    """Message input row plus a preview row for the pending image."""

    class AttachRequested(Message):
        """Posted when the user clicks the image attach button."""

    class ClearImageRequested(Message):
        """Posted when the user removes the pending image."""

    def compose(self) -> ComposeResult:
        with Horizontal(id="image_row", classes="hidden"):
            yield Static("", id="image_preview")
            yield Button("×", id="clear_image_button", variant="error")
        with Horizontal(id="input_row"):
            yield Button("Image", id="attach_button", variant="default")
            yield Input(placeholder="Type your message...", id="message_input")
            yield Button("Send", id="send_button", variant="success")

    def show_pending_image(self, image: ImagePart | None) -> None:
        row = self.query_one("#image_row", Horizontal)
        if image is None:
            row.add_class("hidden")
            return
        self.query_one("#image_preview", Static).update(describe_image(image))
        row.remove_class("hidden")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "attach_button":
            event.stop()
            self.post_message(self.AttachRequested())
        elif event.button.id == "clear_image_button":
            event.stop()
            self.post_message(self.ClearImageRequested())
