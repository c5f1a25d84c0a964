"""Append-only conversation history with tail truncation for retries."""

from __future__ import annotations

import json

from .models import Message, Role


class MessageStore:
    """Ordered message history owned by a single conversation."""

    def __init__(self) -> None:
        self._messages: list[Message] = []

    @property
    def messages(self) -> list[Message]:
        """Return a shallow copy of all stored messages."""
        return list(self._messages)

    @property
    def message_count(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def truncate(self, index: int) -> None:
        """Drop every message from ``index`` onward."""
        del self._messages[max(0, index):]

    def clear(self) -> None:
        self._messages = []

    def is_retry_target(self, index: int) -> bool:
        """Return True when ``index`` directly follows a user message."""
        return 1 <= index <= len(self._messages) and (
            self._messages[index - 1].role is Role.USER
        )

    def export_json(self) -> str:
        """Export current history using stable list and field ordering."""
        stable_messages = [
            {
                "role": message.role.value,
                "content": message.content.to_wire(),
                "render_hint": message.render_hint.value,
            }
            for message in self._messages
        ]
        return json.dumps(stable_messages, ensure_ascii=False, separators=(",", ":"))
