"""Tests for message and model value types."""

from __future__ import annotations

import unittest

from playground_chat.models import (
    ImagePart,
    Message,
    Mode,
    Model,
    PartsContent,
    RenderHint,
    Role,
    TextPart,
)
from playground_chat.state import ConversationState


class ModelLabelTests(unittest.TestCase):
    def test_label_marks_free_and_paid(self) -> None:
        self.assertEqual(Model("sdxl", Mode.IMAGE).label, "sdxl (Free)")
        self.assertEqual(Model("gpt-4o", Mode.CHAT, is_free=False).label, "gpt-4o (Paid)")


class MessageTests(unittest.TestCase):
    """Validate content variants and wire serialization."""

    def test_user_message_defaults(self) -> None:
        message = Message.user("hi")
        self.assertEqual(message.role, Role.USER)
        self.assertEqual(message.render_hint, RenderHint.PLAIN)
        self.assertEqual(message.attachments, ())
        self.assertEqual(message.to_wire(), {"role": "user", "content": "hi"})

    def test_parts_content_text_ignores_images(self) -> None:
        content = PartsContent((TextPart("look "), ImagePart("data:x"), TextPart("here")))
        message = Message(Role.USER, content)
        self.assertEqual(message.text, "look here")
        self.assertEqual(
            message.to_wire()["content"],
            [
                {"type": "text", "text": "look "},
                {"type": "image_url", "image_url": "data:x"},
                {"type": "text", "text": "here"},
            ],
        )

    def test_messages_are_immutable(self) -> None:
        message = Message.error("Error: x")
        with self.assertRaises(AttributeError):
            message.role = Role.USER  # type: ignore[misc]


class ConversationStateTests(unittest.TestCase):
    def test_only_sending_is_busy(self) -> None:
        self.assertTrue(ConversationState.SENDING.is_busy)
        self.assertFalse(ConversationState.IDLE.is_busy)
        self.assertFalse(ConversationState.FAILED.is_busy)


if __name__ == "__main__":
    unittest.main()
