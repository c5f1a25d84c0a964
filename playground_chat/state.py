"""Exchange lifecycle states for a conversation."""

from __future__ import annotations

from enum import Enum


class ConversationState(str, Enum):
    """Finite state machine for the active exchange lifecycle."""

    IDLE = "IDLE"
    SENDING = "SENDING"
    FAILED = "FAILED"

    @property
    def is_busy(self) -> bool:
        """Return True while an exchange is in flight."""
        return self is ConversationState.SENDING
