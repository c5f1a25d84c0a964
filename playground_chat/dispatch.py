"""Endpoint resolution, payload construction and execution of provider calls."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import json
import logging
import re
from typing import Any

import httpx

from .exceptions import InvalidEndpointError, MalformedResponseError, ProviderError
from .models import ImagePart, Message, Mode, Model, PartsContent, RenderHint, Role, TextPart

LOGGER = logging.getLogger(__name__)

IMAGE_SIZE = "1024x1024"
IMAGE_COUNT = 1

# Endpoint paths are provider-supplied data; only these targets may be called.
ALLOWED_ENDPOINT_PATTERN = re.compile(
    r"(v1/chat/completions|v1/images/generations|unf/chat/completions)$"
)


def resolve_url(base_url: str, endpoint_path: str) -> str:
    """Join base URL and endpoint path and check it against the allowed targets.

    Providers mirror their path prefixes, so one duplicated ``v1/v1`` or
    ``unf/unf`` pair is collapsed before the check.
    """
    url = f"{base_url}{endpoint_path}"
    url = url.replace("v1/v1", "v1", 1)
    url = url.replace("unf/unf", "unf", 1)
    if not ALLOWED_ENDPOINT_PATTERN.search(url):
        raise InvalidEndpointError(f"Invalid endpoint URL: {url}")
    return url


def format_user_message(prompt: str, attachments: Sequence[str]) -> Message:
    """Build the outgoing user message, switching to parts when images are attached."""
    if not attachments:
        return Message.user(prompt)
    parts = (TextPart(prompt),) + tuple(ImagePart(ref) for ref in attachments)
    return Message(Role.USER, PartsContent(parts), RenderHint.PLAIN, tuple(attachments))


def build_payload(
    mode: Mode,
    model: Model,
    prompt: str,
    history: Sequence[Message] = (),
    attachments: Sequence[str] = (),
) -> dict[str, Any]:
    """Return the JSON body for a chat completion or an image generation call."""
    if mode is Mode.IMAGE:
        return {"model": model.id, "prompt": prompt, "n": IMAGE_COUNT, "size": IMAGE_SIZE}

    outgoing = format_user_message(prompt, attachments)
    messages = [
        {"role": message.role.value, "content": message.text}
        for message in history
        if message.role is not Role.ERROR
    ]
    messages.append(outgoing.to_wire())
    return {"model": model.id, "messages": messages}


@dataclass(frozen=True)
class DispatchResult:
    """Normalized outcome of a successful provider call."""

    message: Message
    clear_attachments: bool


class RequestDispatcher:
    """Send prompts to the provider and normalize what comes back."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 120.0) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def send(
        self,
        mode: Mode,
        model: Model,
        api_key: str,
        base_url: str,
        history: Sequence[Message],
        prompt: str,
        attachments: Sequence[str] = (),
    ) -> DispatchResult:
        """Dispatch one exchange.

        ``history`` is the conversation before the user message being sent.
        Raises a :class:`~playground_chat.exceptions.DispatchError` subclass on
        any failure; nothing is sent when the endpoint is rejected.
        """
        url = resolve_url(base_url, model.endpoint_path)
        payload = build_payload(mode, model, prompt, history, attachments)
        LOGGER.info(
            "dispatch.request.start",
            extra={
                "event": "dispatch.request.start",
                "mode": mode.value,
                "model": model.id,
                "attachments": len(attachments) if mode is Mode.CHAT else 0,
            },
        )

        try:
            response = await self._client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "dispatch.request.failed",
                extra={"event": "dispatch.request.failed", "error_type": type(exc).__name__},
            )
            raise ProviderError(f"Unable to reach {url}: {exc}") from exc

        if not response.is_success:
            message = self._error_message(response)
            LOGGER.warning(
                "dispatch.request.failed",
                extra={
                    "event": "dispatch.request.failed",
                    "status": response.status_code,
                    "error": message,
                },
            )
            raise ProviderError(message)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Provider response is not JSON.") from exc

        if mode is Mode.IMAGE:
            return DispatchResult(
                Message.assistant(self._image_url(data), RenderHint.IMAGE),
                clear_attachments=False,
            )
        return DispatchResult(
            Message.assistant(self._chat_content(data), RenderHint.MARKDOWN),
            clear_attachments=True,
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Prefer the provider's ``error.message``; fall back to the raw body."""
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return json.dumps(data, ensure_ascii=False)

    @staticmethod
    def _chat_content(data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("Chat response has no choices[0].message.content.") from exc
        if not isinstance(content, str):
            raise MalformedResponseError("Chat response content is not text.")
        return content

    @staticmethod
    def _image_url(data: Any) -> str:
        try:
            url = data["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("Image response has no data[0].url.") from exc
        if not isinstance(url, str):
            raise MalformedResponseError("Image response url is not text.")
        return url

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
