"""Domain exception hierarchy for the m1tra chat client."""

from __future__ import annotations


class M1traChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class InvalidMessageError(M1traChatError):
    """Raised when a message without content parts is appended."""


class EncodingError(M1traChatError):
    """Raised when an image source cannot be turned into an embeddable URI."""


class CollaboratorError(M1traChatError):
    """Raised when the assistant service fails to produce a reply."""


class CollaboratorConnectionError(CollaboratorError):
    """Raised when the assistant host cannot be reached or times out."""


class CollaboratorStatusError(CollaboratorError):
    """Raised when the assistant host answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class CollaboratorResponseError(CollaboratorError):
    """Raised when the assistant reply body is not in the expected shape."""


class ConfigValidationError(M1traChatError):
    """Raised when configuration cannot be validated safely."""
