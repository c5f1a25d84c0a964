"""Value types shared by the catalog, dispatcher and conversation store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Mode(str, Enum):
    """Request mode: multi-turn chat or single-turn image generation."""

    CHAT = "chat"
    IMAGE = "image"


class Role(str, Enum):
    """Author of a history entry."""

    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"


class RenderHint(str, Enum):
    """How the rendering layer should display a message."""

    PLAIN = "plain"
    MARKDOWN = "markdown"
    IMAGE = "image"


@dataclass(frozen=True)
class Model:
    """A classified entry of the provider model catalog."""

    id: str
    kind: Mode
    is_free: bool = True
    endpoint_path: str = "/v1/chat/completions"

    @property
    def label(self) -> str:
        """Return the picker label, e.g. ``gpt-4o (Paid)``."""
        return f"{self.id} {'(Free)' if self.is_free else '(Paid)'}"


@dataclass(frozen=True)
class TextPart:
    """Plain text segment of a structured message."""

    text: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ImagePart:
    """Image segment of a structured message, referenced by data URI."""

    image_ref: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "image_url", "image_url": self.image_ref}


ContentPart = Union[TextPart, ImagePart]


@dataclass(frozen=True)
class TextContent:
    """Message content made of a single string."""

    text: str

    def to_wire(self) -> str:
        return self.text


@dataclass(frozen=True)
class PartsContent:
    """Message content made of an ordered sequence of parts."""

    parts: tuple[ContentPart, ...]

    @property
    def text(self) -> str:
        """Concatenate the text parts, ignoring images."""
        return "".join(part.text for part in self.parts if isinstance(part, TextPart))

    def to_wire(self) -> list[dict[str, Any]]:
        return [part.to_wire() for part in self.parts]


MessageContent = Union[TextContent, PartsContent]


@dataclass(frozen=True)
class Message:
    """A single history entry.

    ``attachments``, ``model_id`` and ``mode`` record what a user message was
    submitted with, so a retry can replay exactly the same request.
    """

    role: Role
    content: MessageContent
    render_hint: RenderHint = RenderHint.PLAIN
    attachments: tuple[str, ...] = field(default_factory=tuple)
    model_id: str = ""
    mode: Mode = Mode.CHAT

    @classmethod
    def user(
        cls,
        prompt: str,
        attachments: tuple[str, ...] = (),
        model_id: str = "",
        mode: Mode = Mode.CHAT,
    ) -> Message:
        return cls(
            Role.USER,
            TextContent(prompt),
            RenderHint.PLAIN,
            tuple(attachments),
            model_id,
            mode,
        )

    @classmethod
    def assistant(cls, text: str, render_hint: RenderHint) -> Message:
        return cls(Role.ASSISTANT, TextContent(text), render_hint)

    @classmethod
    def error(cls, text: str) -> Message:
        return cls(Role.ERROR, TextContent(text), RenderHint.PLAIN)

    @property
    def text(self) -> str:
        """Return the textual content regardless of the content variant."""
        return self.content.text

    def to_wire(self) -> dict[str, Any]:
        """Serialize as an OpenAI-style ``{role, content}`` message."""
        return {"role": self.role.value, "content": self.content.to_wire()}
