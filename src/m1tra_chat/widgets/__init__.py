"""Widget exports for m1tra_chat UI."""

from .conversation import ConversationView
from .input_box import InputBox
from .message import MessageBubble

__all__ = ["ConversationView", "InputBox", "MessageBubble"]
