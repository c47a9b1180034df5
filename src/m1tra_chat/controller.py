"""Request lifecycle controller: draft intents, single-flight submit, reconciliation."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
import logging

from .assistant import AssistantClient
from .conversation_store import ConversationStore
from .encoder import ContentEncoder, ImageSource
from .exceptions import CollaboratorError
from .models import Draft, ImagePart, Message, Role, TextPart
from .state import RequestStatus, StateManager

LOGGER = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, there was an error processing your request."

ChangeListener = Callable[["ChatView"], None]


@dataclass(frozen=True)
class ChatView:
    """Render-ready snapshot handed to the presentation layer."""

    messages: tuple[Message, ...]
    status: RequestStatus
    draft_text: str
    pending_image: ImagePart | None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def can_submit(self) -> bool:
        """Mirror of the submit precondition, for enabling the send button."""
        has_content = bool(self.draft_text.strip()) or self.pending_image is not None
        return not self.is_pending and has_content


class RequestLifecycleController:
    """Own one conversation session and drive IDLE -> PENDING -> IDLE.

    Every accepted submit appends exactly two messages: the user message when
    the request starts and an assistant message (reply or fallback apology)
    when it resolves. Collaborator failures never escape this class. A
    cancelled submit still appends the fallback before ``CancelledError``
    propagates.
    """

    def __init__(
        self,
        assistant: AssistantClient,
        encoder: ContentEncoder | None = None,
        store: ConversationStore | None = None,
        fallback_reply: str = FALLBACK_REPLY,
    ) -> None:
        self._assistant = assistant
        self._encoder = encoder or ContentEncoder()
        self._store = store or ConversationStore()
        self._state = StateManager()
        self._draft = Draft()
        self._fallback_reply = fallback_reply
        self._listeners: list[ChangeListener] = []

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def status(self) -> RequestStatus:
        return self._state.current

    @property
    def draft(self) -> Draft:
        """Return a copy of the current draft."""
        return Draft(text=self._draft.text, pending_image=self._draft.pending_image)

    def snapshot(self) -> tuple[Message, ...]:
        return self._store.snapshot()

    def view(self) -> ChatView:
        return ChatView(
            messages=self._store.snapshot(),
            status=self._state.current,
            draft_text=self._draft.text,
            pending_image=self._draft.pending_image,
        )

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a callback invoked with a fresh view after each change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        if not self._listeners:
            return
        view = self.view()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:  # noqa: BLE001 - a broken view must not corrupt state.
                LOGGER.exception(
                    "controller.listener.failed",
                    extra={"event": "controller.listener.failed"},
                )

    # Draft intents

    def set_text(self, text: str) -> None:
        self._draft.text = text
        self._notify()

    async def set_image(self, source: ImageSource) -> ImagePart:
        """Encode *source* and make it the pending image.

        ``EncodingError`` propagates to the caller and leaves the draft as it was.
        """
        part = await self._encoder.encode(source)
        self._draft.pending_image = part
        LOGGER.info(
            "controller.image.selected",
            extra={"event": "controller.image.selected", "mime_type": part.mime_type},
        )
        self._notify()
        return part

    def clear_image(self) -> None:
        if self._draft.pending_image is None:
            return
        self._draft.pending_image = None
        self._notify()

    # Submission

    async def submit(self) -> bool:
        """Send the draft and wait for the assistant outcome.

        Returns False without side effects when the draft is empty or a
        request is already outstanding.
        """
        if not self._draft.is_submittable():
            LOGGER.debug(
                "controller.submit.rejected",
                extra={"event": "controller.submit.rejected", "reason": "empty"},
            )
            return False
        if not await self._state.try_acquire():
            LOGGER.info(
                "controller.submit.rejected",
                extra={"event": "controller.submit.rejected", "reason": "pending"},
            )
            return False

        try:
            parts = self._draft.build_parts()
            if not parts:
                # Draft was emptied while the slot was being claimed.
                return False
            user_message = Message(role=Role.USER, parts=parts)
            self._store.append(user_message)
            self._draft.clear()
            self._notify()

            try:
                reply_text = await self._dispatch(user_message)
            except asyncio.CancelledError:
                # The user message is already in the transcript; close the pair.
                LOGGER.info(
                    "controller.request.cancelled",
                    extra={"event": "controller.request.cancelled"},
                )
                self._append_reply(self._fallback_reply)
                raise
            self._append_reply(reply_text)
        finally:
            await self._state.release()
            self._notify()
        return True

    def _append_reply(self, text: str) -> None:
        self._store.append(Message(role=Role.ASSISTANT, parts=(TextPart(text),)))

    async def _dispatch(self, message: Message) -> str:
        """Return reply text, or the fallback apology on any collaborator failure."""
        try:
            reply = await self._assistant.send(message)
            text = reply.choices[0] if reply.choices else None
            if not isinstance(text, str) or not text.strip():
                raise CollaboratorError("Assistant reply has no usable first choice.")
            return text
        except CollaboratorError as exc:
            LOGGER.warning(
                "controller.request.failed",
                extra={
                    "event": "controller.request.failed",
                    "error_type": type(exc).__name__,
                    "reason": str(exc),
                },
            )
        except Exception as exc:  # noqa: BLE001 - collaborator bugs are failures too.
            LOGGER.exception(
                "controller.request.failed",
                extra={
                    "event": "controller.request.failed",
                    "error_type": type(exc).__name__,
                    "reason": str(exc),
                },
            )
        return self._fallback_reply
