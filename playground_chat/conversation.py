"""Conversation store: history, pending attachments and the submit/retry state machine.

This is the only component a rendering layer talks to for conversational
actions. Callers must serialise ``submit`` and ``retry``: the store does not
guard against two exchanges being in flight at once.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging

import httpx

from .catalog import DEFAULT_REFRESH_DELAY_SECONDS, ModelCatalog
from .config import DEFAULT_BASE_URL
from .credentials import CredentialStore
from .dispatch import RequestDispatcher
from .exceptions import CatalogFetchError, DispatchError, SubmissionRejected
from .message_store import MessageStore
from .models import Message, Mode, Model
from .state import ConversationState

LOGGER = logging.getLogger(__name__)

CATALOG_ERROR_BANNER = "Failed to fetch models. Please check your API Base URL."


@dataclass(frozen=True)
class Configuration:
    """Operator-controlled settings for the active session."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    mode: Mode = Mode.CHAT
    selected_model_id: str = ""


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only view handed to the rendering layer."""

    configuration: Configuration
    models: tuple[Model, ...]
    filtered_models: tuple[Model, ...]
    messages: tuple[Message, ...]
    attachments: tuple[str, ...]
    loading: bool
    error: str
    state: ConversationState


class ConversationStore:
    """Own message history and drive exchanges through the dispatcher."""

    def __init__(
        self,
        credential_store: CredentialStore,
        *,
        base_url: str = DEFAULT_BASE_URL,
        mode: Mode = Mode.CHAT,
        catalog: ModelCatalog | None = None,
        dispatcher: RequestDispatcher | None = None,
        client: httpx.AsyncClient | None = None,
        refresh_delay_seconds: float = DEFAULT_REFRESH_DELAY_SECONDS,
        timeout: float = 120.0,
    ) -> None:
        self._owns_client = client is None and (catalog is None or dispatcher is None)
        if self._owns_client:
            client = httpx.AsyncClient(timeout=timeout)
        self.catalog = catalog or ModelCatalog(client, refresh_delay_seconds=refresh_delay_seconds)
        self.dispatcher = dispatcher or RequestDispatcher(client)
        self._client = client

        self._credentials = credential_store
        self._config = Configuration(
            base_url=base_url, api_key=credential_store.load(), mode=mode
        )
        self._history = MessageStore()
        self._attachments: list[str] = []
        self._search_query = ""
        self._state = ConversationState.IDLE
        self._error = ""

        self.catalog.on_refresh(self._on_catalog_refreshed)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def configuration(self) -> Configuration:
        return self._config

    @property
    def messages(self) -> list[Message]:
        return self._history.messages

    @property
    def models(self) -> list[Model]:
        return self.catalog.models

    @property
    def filtered_models(self) -> list[Model]:
        return self.catalog.search(self._search_query)

    @property
    def attachments(self) -> list[str]:
        return list(self._attachments)

    @property
    def loading(self) -> bool:
        return self._state.is_busy or self.catalog.is_refreshing

    @property
    def error(self) -> str:
        return self._error

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def selected_model(self) -> Model | None:
        if not self._config.selected_model_id:
            return None
        return self.catalog.find(self._config.selected_model_id)

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            configuration=self._config,
            models=tuple(self.models),
            filtered_models=tuple(self.filtered_models),
            messages=tuple(self.messages),
            attachments=tuple(self._attachments),
            loading=self.loading,
            error=self._error,
            state=self._state,
        )

    # ------------------------------------------------------------------
    # Configuration and catalog
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule the initial catalog refresh for the current configuration."""
        self.catalog.schedule_refresh(self._config.base_url, self._config.api_key)

    def set_configuration(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        mode: Mode | str | None = None,
    ) -> None:
        """Apply operator changes.

        A new API key is persisted immediately. A new base URL or mode
        restarts the debounced catalog refresh.
        """
        config = self._config
        needs_refresh = False

        if api_key is not None and api_key != config.api_key:
            config = replace(config, api_key=api_key)
            self._credentials.save(api_key)

        if base_url is not None and base_url != config.base_url:
            config = replace(config, base_url=base_url)
            self._error = ""
            needs_refresh = True

        if mode is not None:
            new_mode = Mode(mode)
            if new_mode != config.mode:
                config = replace(config, mode=new_mode)
                needs_refresh = True

        self._config = config
        self._select_default_model()
        if needs_refresh:
            self.catalog.schedule_refresh(config.base_url, config.api_key)

    async def refresh_models(self) -> None:
        """Refresh the catalog now, bypassing the debounce timer."""
        try:
            await self.catalog.refresh(self._config.base_url, self._config.api_key)
        except CatalogFetchError:
            pass  # Reported through the refresh listener.

    async def wait_for_catalog(self) -> None:
        await self.catalog.wait_for_refresh()

    def search_models(self, query: str) -> list[Model]:
        self._search_query = query
        return self.filtered_models

    def select_model(self, model_id: str) -> bool:
        """Select a model of the active mode; other ids are ignored."""
        model = self.catalog.find(model_id)
        if model is None or model.kind != self._config.mode:
            return False
        self._config = replace(self._config, selected_model_id=model.id)
        return True

    def _on_catalog_refreshed(
        self, models: list[Model], error: CatalogFetchError | None
    ) -> None:
        self._error = CATALOG_ERROR_BANNER if error is not None else ""
        self._select_default_model()

    def _select_default_model(self) -> None:
        """Keep the selection pointing at a model of the active mode, or empty."""
        mode = self._config.mode
        current = self.selected_model
        if current is not None and current.kind == mode:
            return
        candidate = self.catalog.default_model_for(mode)
        selected_id = candidate.id if candidate is not None and candidate.kind == mode else ""
        self._config = replace(self._config, selected_model_id=selected_id)

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def attach_image(self, data_uri: str) -> bool:
        """Queue an encoded image for the next chat message."""
        if not data_uri.startswith("data:"):
            LOGGER.warning(
                "conversation.attachment.rejected",
                extra={"event": "conversation.attachment.rejected"},
            )
            return False
        self._attachments.append(data_uri)
        return True

    def remove_attachment(self, index: int) -> bool:
        if not 0 <= index < len(self._attachments):
            return False
        del self._attachments[index]
        return True

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------

    def clear_history(self) -> None:
        self._history.clear()
        self._state = ConversationState.IDLE

    def export_json(self) -> str:
        return self._history.export_json()

    def _require_model(self) -> Model:
        if not self.catalog.models_for(self._config.mode):
            raise SubmissionRejected("No models available for the active mode.")
        model = self.selected_model
        if model is None:
            raise SubmissionRejected("No model selected.")
        return model

    async def submit(self, prompt: str) -> bool:
        """Send a new prompt. Returns False when the submission is rejected."""
        try:
            if not prompt.strip():
                raise SubmissionRejected("Prompt is empty.")
            model = self._require_model()
        except SubmissionRejected as exc:
            LOGGER.debug(
                "conversation.submit.rejected",
                extra={"event": "conversation.submit.rejected", "reason": str(exc)},
            )
            return False

        mode = self._config.mode
        snapshot = tuple(self._attachments) if mode is Mode.CHAT else ()
        user_message = Message.user(prompt, snapshot, model.id, mode)
        prior_history = self._history.messages
        self._history.append(user_message)
        await self._exchange(model, prior_history, user_message)
        return True

    async def retry(self, index: int) -> bool:
        """Replay the user message preceding ``index`` after dropping the tail.

        The request reuses the model, mode and attachments recorded on that
        message. Invalid indices, or a model no longer in the catalog, are
        ignored and leave history untouched.
        """
        if not self._history.is_retry_target(index):
            return False
        user_message = self._history[index - 1]
        model = self.catalog.find(user_message.model_id)
        if model is None:
            LOGGER.debug(
                "conversation.retry.rejected",
                extra={
                    "event": "conversation.retry.rejected",
                    "reason": f"Model {user_message.model_id!r} is no longer available.",
                },
            )
            return False

        self._history.truncate(index)
        prior_history = self._history.messages[: index - 1]
        LOGGER.info(
            "conversation.retry",
            extra={"event": "conversation.retry", "index": index},
        )
        await self._exchange(model, prior_history, user_message)
        return True

    async def _exchange(
        self, model: Model, prior_history: list[Message], user_message: Message
    ) -> None:
        self._state = ConversationState.SENDING
        self._error = ""
        config = self._config
        try:
            result = await self.dispatcher.send(
                user_message.mode,
                model,
                config.api_key,
                config.base_url,
                prior_history,
                user_message.text,
                user_message.attachments,
            )
        except DispatchError as exc:
            self._error = f"Error: {exc}"
            self._history.append(Message.error(self._error))
            self._state = ConversationState.FAILED
            LOGGER.warning(
                "conversation.exchange.failed",
                extra={
                    "event": "conversation.exchange.failed",
                    "error_type": type(exc).__name__,
                },
            )
            return

        self._history.append(result.message)
        if result.clear_attachments:
            self._attachments.clear()
        self._state = ConversationState.IDLE

    async def close(self) -> None:
        """Cancel pending refreshes and release HTTP resources."""
        await self.catalog.close()
        await self.dispatcher.close()
        if self._owns_client and self._client is not None:
            await self._client.aclose()

