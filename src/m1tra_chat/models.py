"""Message, draft, and reply value types shared by the core and the UI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Role(str, Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class TextPart:
    """Plain text content of a message."""

    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ImagePart:
    """Image content referenced by URL or embedded as a data URI."""

    uri: str

    @property
    def is_embedded(self) -> bool:
        """Return True when the image bytes travel inside the URI."""
        return self.uri.startswith("data:")

    @property
    def mime_type(self) -> str:
        """Return the MIME type of an embedded image, or an empty string."""
        if not self.is_embedded:
            return ""
        header = self.uri[len("data:") :].split(",", 1)[0]
        return header.split(";", 1)[0]

    def to_payload(self) -> dict[str, Any]:
        return {"type": "image_url", "image_url": {"url": self.uri}}


MessagePart = Union[TextPart, ImagePart]


@dataclass(frozen=True)
class Message:
    """A single conversation entry made of ordered content parts."""

    role: Role
    parts: tuple[MessagePart, ...]

    @property
    def text(self) -> str:
        """Return all text parts joined by newlines."""
        return "\n".join(part.text for part in self.parts if isinstance(part, TextPart))

    @property
    def images(self) -> tuple[ImagePart, ...]:
        return tuple(part for part in self.parts if isinstance(part, ImagePart))

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the chat-completions message shape."""
        return {
            "role": self.role.value,
            "content": [part.to_payload() for part in self.parts],
        }


@dataclass
class Draft:
    """Not-yet-sent user input: free text plus at most one pending image."""

    text: str = ""
    pending_image: ImagePart | None = None

    def is_submittable(self) -> bool:
        """Return True when the draft carries any content worth sending."""
        return bool(self.text.strip()) or self.pending_image is not None

    def build_parts(self) -> tuple[MessagePart, ...]:
        """Assemble message parts in fixed order: text first, image second."""
        parts: list[MessagePart] = []
        if self.text.strip():
            parts.append(TextPart(self.text))
        if self.pending_image is not None:
            parts.append(self.pending_image)
        return tuple(parts)

    def clear(self) -> None:
        self.text = ""
        self.pending_image = None


@dataclass(frozen=True)
class AssistantReply:
    """Structured assistant result with one or more reply choices."""

    choices: tuple[str, ...] = field(default_factory=tuple)

    @property
    def first_choice(self) -> str:
        return self.choices[0]
