"""Top-level package for m1tra-chat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import M1traChatApp
    from .assistant import AssistantClient, OpenAICompatibleAssistant
    from .config import ensure_config_dir, load_config
    from .controller import FALLBACK_REPLY, ChatView, RequestLifecycleController
    from .conversation_store import ConversationStore
    from .encoder import ContentEncoder
    from .exceptions import (
        CollaboratorError,
        ConfigValidationError,
        EncodingError,
        InvalidMessageError,
        M1traChatError,
    )
    from .models import AssistantReply, Draft, ImagePart, Message, Role, TextPart
    from .state import RequestStatus, StateManager

# Symbol -> submodule. The UI module is imported lazily so the core stays
# usable without a terminal.
_EXPORTS: dict[str, str] = {
    "M1traChatApp": "app",
    "AssistantClient": "assistant",
    "OpenAICompatibleAssistant": "assistant",
    "ensure_config_dir": "config",
    "load_config": "config",
    "FALLBACK_REPLY": "controller",
    "ChatView": "controller",
    "RequestLifecycleController": "controller",
    "ConversationStore": "conversation_store",
    "ContentEncoder": "encoder",
    "CollaboratorError": "exceptions",
    "ConfigValidationError": "exceptions",
    "EncodingError": "exceptions",
    "InvalidMessageError": "exceptions",
    "M1traChatError": "exceptions",
    "AssistantReply": "models",
    "Draft": "models",
    "ImagePart": "models",
    "Message": "models",
    "Role": "models",
    "TextPart": "models",
    "RequestStatus": "state",
    "StateManager": "state",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep UI dependencies out of core imports."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(f".{module_name}", __name__), name)
