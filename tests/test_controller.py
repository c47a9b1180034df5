"""Tests for the request lifecycle controller."""

from __future__ import annotations

import asyncio
import unittest

from m1tra_chat.controller import FALLBACK_REPLY, ChatView, RequestLifecycleController
from m1tra_chat.exceptions import (
    CollaboratorConnectionError,
    CollaboratorResponseError,
    EncodingError,
)
from m1tra_chat.models import AssistantReply, ImagePart, Message, Role, TextPart
from m1tra_chat.state import RequestStatus

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeAssistant:
    """Deterministic assistant that can block, fail, or reply."""

    def __init__(
        self,
        replies: list[str] | None = None,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.replies = replies or ["hi there"]
        self.error = error
        self.gate = gate
        self.sent: list[Message] = []

    async def send(self, message: Message) -> AssistantReply:
        self.sent.append(message)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return AssistantReply(choices=tuple(self.replies))


class RawAssistant:
    """Assistant returning a prebuilt reply object."""

    def __init__(self, reply: AssistantReply) -> None:
        self.reply = reply

    async def send(self, message: Message) -> AssistantReply:  # noqa: ARG002
        return self.reply


class SubmitTests(unittest.IsolatedAsyncioTestCase):
    """Validate submit acceptance, ordering, and reconciliation."""

    async def test_text_submit_scenario(self) -> None:
        gate = asyncio.Event()
        assistant = FakeAssistant(replies=["hi there"], gate=gate)
        controller = RequestLifecycleController(assistant=assistant)
        controller.set_text("hello")

        task = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        self.assertEqual(
            controller.snapshot(), (Message(Role.USER, (TextPart("hello"),)),)
        )
        self.assertEqual(controller.status, RequestStatus.PENDING)

        gate.set()
        self.assertTrue(await task)
        self.assertEqual(
            controller.snapshot(),
            (
                Message(Role.USER, (TextPart("hello"),)),
                Message(Role.ASSISTANT, (TextPart("hi there"),)),
            ),
        )
        self.assertEqual(controller.status, RequestStatus.IDLE)

    async def test_first_choice_is_used(self) -> None:
        controller = RequestLifecycleController(
            assistant=FakeAssistant(replies=["first", "second"])
        )
        controller.set_text("pick one")
        await controller.submit()
        self.assertEqual(controller.snapshot()[-1].parts, (TextPart("first"),))

    async def test_image_only_submit_has_no_text_part(self) -> None:
        assistant = FakeAssistant()
        controller = RequestLifecycleController(assistant=assistant)
        image = await controller.set_image(PNG_BYTES)

        self.assertTrue(await controller.submit())
        first = controller.snapshot()[0]
        self.assertEqual(first.role, Role.USER)
        self.assertEqual(first.parts, (image,))
        self.assertEqual(assistant.sent, [first])

    async def test_text_and_image_are_ordered_text_first(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        image = await controller.set_image("https://example.com/cat.png")
        controller.set_text("what is this?")

        await controller.submit()
        self.assertEqual(
            controller.snapshot()[0].parts, (TextPart("what is this?"), image)
        )

    async def test_text_is_sent_verbatim_not_trimmed(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        controller.set_text("  spaced out  ")
        await controller.submit()
        self.assertEqual(controller.snapshot()[0].parts, (TextPart("  spaced out  "),))

    async def test_accepted_submit_clears_draft(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        controller.set_text("hello")
        await controller.set_image(PNG_BYTES)
        await controller.submit()
        self.assertEqual(controller.draft.text, "")
        self.assertIsNone(controller.draft.pending_image)

    async def test_each_cycle_appends_exactly_two(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        for turn in range(3):
            controller.set_text(f"turn {turn}")
            await controller.submit()
            self.assertEqual(len(controller.snapshot()), 2 * (turn + 1))
            self.assertEqual(controller.snapshot()[-1].role, Role.ASSISTANT)


class RejectionTests(unittest.IsolatedAsyncioTestCase):
    """Validate the no-op paths of submit."""

    async def test_empty_draft_is_noop(self) -> None:
        assistant = FakeAssistant()
        controller = RequestLifecycleController(assistant=assistant)
        self.assertFalse(await controller.submit())
        controller.set_text("   ")
        self.assertFalse(await controller.submit())
        self.assertEqual(controller.snapshot(), ())
        self.assertEqual(controller.status, RequestStatus.IDLE)
        self.assertEqual(assistant.sent, [])
        self.assertEqual(controller.draft.text, "   ")

    async def test_submit_while_pending_is_noop(self) -> None:
        gate = asyncio.Event()
        assistant = FakeAssistant(gate=gate)
        controller = RequestLifecycleController(assistant=assistant)
        controller.set_text("first")
        task = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        controller.set_text("second")
        self.assertFalse(await controller.submit())
        self.assertEqual(len(controller.snapshot()), 1)
        self.assertEqual(controller.status, RequestStatus.PENDING)
        self.assertEqual(controller.draft.text, "second")

        gate.set()
        await task
        self.assertEqual(len(controller.snapshot()), 2)
        self.assertEqual(len(assistant.sent), 1)

    async def test_empty_draft_while_pending_is_noop(self) -> None:
        gate = asyncio.Event()
        controller = RequestLifecycleController(assistant=FakeAssistant(gate=gate))
        controller.set_text("first")
        task = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        self.assertFalse(await controller.submit())
        self.assertEqual(len(controller.snapshot()), 1)
        gate.set()
        await task

    async def test_concurrent_submits_single_flight(self) -> None:
        gate = asyncio.Event()
        assistant = FakeAssistant(gate=gate)
        controller = RequestLifecycleController(assistant=assistant)
        controller.set_text("race")

        tasks = [asyncio.create_task(controller.submit()) for _ in range(5)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        self.assertEqual(results.count(True), 1)
        self.assertEqual(len(controller.snapshot()), 2)
        self.assertEqual(len(assistant.sent), 1)


class FailureTests(unittest.IsolatedAsyncioTestCase):
    """Validate collaborator failure recovery."""

    async def test_transport_error_yields_fallback(self) -> None:
        controller = RequestLifecycleController(
            assistant=FakeAssistant(error=CollaboratorConnectionError("refused"))
        )
        controller.set_text("hello")

        with self.assertLogs("m1tra_chat.controller", level="WARNING") as logs:
            self.assertTrue(await controller.submit())

        self.assertEqual(
            controller.snapshot()[1],
            Message(Role.ASSISTANT, (TextPart(FALLBACK_REPLY),)),
        )
        self.assertEqual(
            FALLBACK_REPLY, "Sorry, there was an error processing your request."
        )
        self.assertEqual(controller.status, RequestStatus.IDLE)
        self.assertTrue(any("controller.request.failed" in line for line in logs.output))

    async def test_unexpected_exception_yields_fallback(self) -> None:
        controller = RequestLifecycleController(
            assistant=FakeAssistant(error=KeyError("choices"))
        )
        controller.set_text("hello")
        with self.assertLogs("m1tra_chat.controller", level="ERROR"):
            await controller.submit()
        self.assertEqual(controller.snapshot()[1].parts, (TextPart(FALLBACK_REPLY),))

    async def test_malformed_replies_yield_fallback(self) -> None:
        for reply in (AssistantReply(choices=()), AssistantReply(choices=("  ",))):
            with self.subTest(reply=reply):
                controller = RequestLifecycleController(assistant=RawAssistant(reply))
                controller.set_text("hello")
                with self.assertLogs("m1tra_chat.controller", level="WARNING"):
                    await controller.submit()
                self.assertEqual(
                    controller.snapshot()[1].parts, (TextPart(FALLBACK_REPLY),)
                )

    async def test_fallback_hides_error_detail(self) -> None:
        controller = RequestLifecycleController(
            assistant=FakeAssistant(error=CollaboratorResponseError("secret detail"))
        )
        controller.set_text("hello")
        with self.assertLogs("m1tra_chat.controller", level="WARNING"):
            await controller.submit()
        self.assertNotIn("secret detail", controller.snapshot()[1].text)

    async def test_submit_accepted_again_after_failure(self) -> None:
        assistant = FakeAssistant(error=CollaboratorConnectionError("down"))
        controller = RequestLifecycleController(assistant=assistant)
        controller.set_text("one")
        with self.assertLogs("m1tra_chat.controller", level="WARNING"):
            await controller.submit()
        assistant.error = None
        controller.set_text("two")
        self.assertTrue(await controller.submit())
        self.assertEqual(len(controller.snapshot()), 4)

    async def test_cancelled_submit_still_appends_reply(self) -> None:
        controller = RequestLifecycleController(
            assistant=FakeAssistant(gate=asyncio.Event())
        )
        controller.set_text("hello")
        task = asyncio.create_task(controller.submit())
        for _ in range(10):
            await asyncio.sleep(0)
            if controller.status == RequestStatus.PENDING:
                break
        self.assertEqual(len(controller.snapshot()), 1)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        snapshot = controller.snapshot()
        self.assertEqual([message.role for message in snapshot], [Role.USER, Role.ASSISTANT])
        self.assertEqual(snapshot[1].parts, (TextPart(FALLBACK_REPLY),))
        self.assertEqual(controller.status, RequestStatus.IDLE)


class DraftIntentTests(unittest.IsolatedAsyncioTestCase):
    """Validate image intents and change notification."""

    async def test_encoding_error_leaves_draft_unchanged(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        image = await controller.set_image(PNG_BYTES)
        with self.assertRaises(EncodingError):
            await controller.set_image(b"")
        self.assertEqual(controller.draft.pending_image, image)

    async def test_clear_image(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        await controller.set_image(PNG_BYTES)
        controller.clear_image()
        self.assertIsNone(controller.draft.pending_image)

    async def test_draft_property_returns_copy(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        controller.set_text("hello")
        controller.draft.text = "mutated"
        self.assertEqual(controller.draft.text, "hello")

    async def test_listeners_receive_views(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        views: list[ChatView] = []
        controller.add_listener(views.append)

        controller.set_text("hello")
        self.assertTrue(views[-1].can_submit)
        await controller.submit()

        statuses = [view.status for view in views]
        self.assertIn(RequestStatus.PENDING, statuses)
        self.assertEqual(views[-1].status, RequestStatus.IDLE)
        self.assertEqual(len(views[-1].messages), 2)
        self.assertFalse(views[-1].can_submit)

        controller.remove_listener(views.append)
        count = len(views)
        controller.set_text("more")
        self.assertEqual(len(views), count)

    async def test_failing_listener_does_not_break_submit(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())

        def broken(_view: ChatView) -> None:
            raise RuntimeError("render failed")

        controller.add_listener(broken)
        with self.assertLogs("m1tra_chat.controller", level="ERROR"):
            controller.set_text("hello")
            self.assertTrue(await controller.submit())
        self.assertEqual(len(controller.snapshot()), 2)

    async def test_view_reports_pending_image(self) -> None:
        controller = RequestLifecycleController(assistant=FakeAssistant())
        image = await controller.set_image(PNG_BYTES)
        view = controller.view()
        self.assertEqual(view.pending_image, image)
        self.assertTrue(view.can_submit)
        self.assertIsInstance(view.pending_image, ImagePart)


if __name__ == "__main__":
    unittest.main()
