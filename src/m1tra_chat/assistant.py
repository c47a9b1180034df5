"""Assistant collaborator: protocol plus an httpx chat-completions client."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol

import httpx

from .exceptions import (
    CollaboratorConnectionError,
    CollaboratorResponseError,
    CollaboratorStatusError,
)
from .models import AssistantReply, Message

LOGGER = logging.getLogger(__name__)


class AssistantClient(Protocol):
    """Anything that turns one user message into an assistant reply."""

    async def send(self, message: Message) -> AssistantReply:
        """Return the reply or raise ``CollaboratorError``."""
        ...


class OpenAICompatibleAssistant:
    """Send user messages to an OpenAI-style ``/chat/completions`` endpoint.

    Works against any server speaking that dialect, including Ollama's
    ``/v1`` compatibility layer. Only the single submitted message (plus an
    optional system prompt) is sent; the transcript is not replayed.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str = "",
        system_prompt: str = "",
        timeout: float = 120,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.system_prompt = system_prompt.strip()
        self.timeout = timeout
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_payload(self, message: Message) -> dict[str, Any]:
        messages: list[dict[str, Any]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append(message.to_payload())
        return {"model": self.model, "messages": messages, "stream": False}

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(
                self.endpoint, json=payload, headers=self._headers()
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.endpoint, json=payload, headers=self._headers())

    async def send(self, message: Message) -> AssistantReply:
        """POST the message and parse the first-choice reply text."""
        payload = self.build_payload(message)
        started = time.perf_counter()
        LOGGER.info(
            "assistant.request.start",
            extra={
                "event": "assistant.request.start",
                "model": self.model,
                "parts": len(message.parts),
            },
        )
        try:
            response = await self._post(payload)
        except httpx.TimeoutException as exc:
            raise CollaboratorConnectionError(
                f"Assistant request to {self.endpoint} timed out after {self.timeout}s."
            ) from exc
        except httpx.RequestError as exc:
            raise CollaboratorConnectionError(
                f"Unable to reach assistant at {self.endpoint}: {exc}"
            ) from exc

        if response.status_code >= 400:
            raise CollaboratorStatusError(
                f"Assistant returned HTTP {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise CollaboratorResponseError("Assistant reply is not valid JSON.") from exc

        reply = self.parse_reply(data)
        LOGGER.info(
            "assistant.request.complete",
            extra={
                "event": "assistant.request.complete",
                "model": self.model,
                "status_code": response.status_code,
                "choices": len(reply.choices),
                "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return reply

    @classmethod
    def parse_reply(cls, data: Any) -> AssistantReply:
        """Extract choice texts from a chat-completions response body."""
        if not isinstance(data, dict):
            raise CollaboratorResponseError("Assistant reply must be a JSON object.")
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise CollaboratorResponseError("Assistant reply contains no choices.")

        first = cls._choice_text(choices[0])
        if not first.strip():
            raise CollaboratorResponseError("First assistant choice has empty content.")

        # Only the first choice is displayed; unreadable alternatives are dropped.
        texts = [first]
        for choice in choices[1:]:
            try:
                texts.append(cls._choice_text(choice))
            except CollaboratorResponseError:
                LOGGER.debug(
                    "assistant.choice.skipped",
                    extra={"event": "assistant.choice.skipped"},
                )
        return AssistantReply(choices=tuple(texts))

    @staticmethod
    def _choice_text(choice: Any) -> str:
        message = choice.get("message") if isinstance(choice, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str):
            return content
        # Some servers return content as a list of typed parts.
        if isinstance(content, list):
            fragments = [
                item.get("text", "")
                for item in content
                if isinstance(item, dict) and item.get("type") == "text"
            ]
            if fragments and all(isinstance(f, str) for f in fragments):
                return "".join(fragments)
        raise CollaboratorResponseError("Assistant choice is missing textual content.")
