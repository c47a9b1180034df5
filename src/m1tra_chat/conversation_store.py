"""Append-only transcript storage for multi-part messages."""

from __future__ import annotations

import json

from .exceptions import InvalidMessageError
from .models import Message


class ConversationStore:
    """Ordered, append-only conversation history.

    Insertion order is chronological order is display order. Stored messages
    are frozen and there is no delete or edit operation.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def message_count(self) -> int:
        """Return the number of stored messages."""
        return len(self._messages)

    def append(self, message: Message) -> None:
        """Append a message; reject messages without content parts."""
        if not message.parts:
            raise InvalidMessageError(
                f"Refusing to append {message.role.value} message with no content parts."
            )
        self._messages.append(message)

    def snapshot(self) -> tuple[Message, ...]:
        """Return a read-only view of every message in append order."""
        return tuple(self._messages)

    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def export_json(self) -> str:
        """Export history using stable list and field ordering."""
        return json.dumps(
            [message.to_payload() for message in self._messages],
            ensure_ascii=False,
            separators=(",", ":"),
        )
