"""Tests for top-level package lazy exports."""

from __future__ import annotations

import unittest

import m1tra_chat


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_core_symbols(self) -> None:
        self.assertTrue(callable(m1tra_chat.load_config))
        self.assertIsNotNone(m1tra_chat.RequestLifecycleController)
        self.assertIsNotNone(m1tra_chat.ConversationStore)
        self.assertIsNotNone(m1tra_chat.ContentEncoder)
        self.assertIsNotNone(m1tra_chat.RequestStatus)
        self.assertTrue(issubclass(m1tra_chat.EncodingError, m1tra_chat.M1traChatError))
        self.assertEqual(
            m1tra_chat.FALLBACK_REPLY,
            "Sorry, there was an error processing your request.",
        )

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(m1tra_chat, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
