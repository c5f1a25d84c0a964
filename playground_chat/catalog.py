"""Provider model catalog: fetching, classification, search and refresh scheduling."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import Any

import httpx

from .debounce import DebouncedTimer
from .exceptions import CatalogFetchError
from .models import Mode, Model

LOGGER = logging.getLogger(__name__)

DEFAULT_ENDPOINT_PATH = "/v1/chat/completions"
DEFAULT_REFRESH_DELAY_SECONDS = 1.0

# Substrings of model ids that belong to conversational model families.
CHAT_ID_KEYWORDS: tuple[str, ...] = (
    "gpt", "claude", "mistral", "gemini", "deepseek", "llama", "gemma",
    "mixtral", "yi-", "ernie", "command-r", "stral", "o1", "o3", "grok",
    "sonar", "r1", "qwen", "expe", "reka", "thug", "toppy", "mytho", "airo",
    "tulu", "olmo", "amazon", "gigac", "aion", "zuki", "cara", "phi", "beta",
    "chat", "preview", "-7", "-8", "-1", "-2", "auto",
)

RefreshListener = Callable[[list[Model], CatalogFetchError | None], Any]


def classify_model(raw: dict[str, Any]) -> Model:
    """Turn a raw ``/models`` record into a :class:`Model`.

    Precedence: image/free defaults, then the id keyword match, then an
    explicit ``type`` field, then an explicit ``is_free`` flag.
    """
    model_id = str(raw["id"])
    kind = Mode.IMAGE
    is_free = True

    lowered = model_id.lower()
    if any(keyword in lowered for keyword in CHAT_ID_KEYWORDS):
        kind = Mode.CHAT

    raw_type = raw.get("type")
    if raw_type:
        kind = Mode.CHAT if "chat" in str(raw_type) else Mode.IMAGE

    if raw.get("is_free") is not None:
        is_free = bool(raw["is_free"])

    endpoint = raw.get("endpoint")
    endpoint_path = endpoint if isinstance(endpoint, str) and endpoint else DEFAULT_ENDPOINT_PATH
    return Model(id=model_id, kind=kind, is_free=is_free, endpoint_path=endpoint_path)


class ModelCatalog:
    """Hold the classified model list for the configured provider."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        refresh_delay_seconds: float = DEFAULT_REFRESH_DELAY_SECONDS,
        timeout: float = 120.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        self._models: list[Model] = []
        self._timer = DebouncedTimer(refresh_delay_seconds, name="catalog.refresh")
        self._listeners: list[RefreshListener] = []
        self._refreshing = False
        self.last_error: CatalogFetchError | None = None

    @property
    def models(self) -> list[Model]:
        """Return the catalog in refresh order."""
        return list(self._models)

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def refresh_pending(self) -> bool:
        """Return True while a debounced refresh is waiting or running."""
        return self._timer.pending

    def on_refresh(self, callback: RefreshListener) -> None:
        """Register a callback invoked with ``(models, error)`` after each refresh."""
        self._listeners.append(callback)

    def search(self, query: str) -> list[Model]:
        """Case-insensitive substring match on model id or kind."""
        needle = query.lower()
        if not needle:
            return list(self._models)
        return [
            model
            for model in self._models
            if needle in model.id.lower() or needle in model.kind.value
        ]

    def models_for(self, mode: Mode) -> list[Model]:
        return [model for model in self._models if model.kind == mode]

    def find(self, model_id: str) -> Model | None:
        for model in self._models:
            if model.id == model_id:
                return model
        return None

    def default_model_for(self, mode: Mode) -> Model | None:
        """First model of ``mode``, else the first model, else ``None``."""
        for model in self._models:
            if model.kind == mode:
                return model
        return self._models[0] if self._models else None

    async def fetch(self, base_url: str, api_key: str) -> list[Model]:
        """Fetch and classify ``{base_url}/models`` without touching the catalog."""
        url = f"{base_url}/models"
        try:
            response = await self._client.get(
                url, headers={"Authorization": f"Bearer {api_key}"}
            )
        except httpx.HTTPError as exc:
            raise CatalogFetchError(f"Unable to reach {url}: {exc}") from exc

        if not response.is_success:
            raise CatalogFetchError(
                f"Model listing at {url} failed with status {response.status_code}."
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogFetchError(f"Model listing at {url} is not JSON.") from exc

        records = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise CatalogFetchError("Invalid model data received.")

        models: list[Model] = []
        for record in records:
            if not isinstance(record, dict) or not isinstance(record.get("id"), str):
                LOGGER.warning(
                    "catalog.record.skipped",
                    extra={"event": "catalog.record.skipped", "record": repr(record)[:200]},
                )
                continue
            models.append(classify_model(record))
        return models

    async def refresh(self, base_url: str, api_key: str) -> list[Model]:
        """Replace the catalog with a fresh listing.

        On failure the catalog is emptied, ``last_error`` is set and the
        :class:`CatalogFetchError` is re-raised after listeners are notified.
        """
        self._refreshing = True
        error: CatalogFetchError | None = None
        try:
            self._models = await self.fetch(base_url, api_key)
        except CatalogFetchError as exc:
            error = exc
            self._models = []
            LOGGER.warning(
                "catalog.refresh.failed",
                extra={"event": "catalog.refresh.failed", "base_url": base_url, "error": str(exc)},
            )
        finally:
            self._refreshing = False

        self.last_error = error
        if error is None:
            LOGGER.info(
                "catalog.refresh.complete",
                extra={"event": "catalog.refresh.complete", "count": len(self._models)},
            )
        await self._notify(error)
        if error is not None:
            raise error
        return self.models

    def schedule_refresh(self, base_url: str, api_key: str) -> None:
        """Debounce a refresh; only the last call within the delay runs."""

        async def _refresh() -> None:
            try:
                await self.refresh(base_url, api_key)
            except CatalogFetchError:
                pass  # Already recorded in last_error and delivered to listeners.

        self._timer.schedule(_refresh)

    async def wait_for_refresh(self) -> None:
        """Await the pending debounced refresh, if any."""
        await self._timer.wait()

    async def _notify(self, error: CatalogFetchError | None) -> None:
        models = self.models
        for callback in self._listeners:
            try:
                result = callback(models, error)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:  # noqa: BLE001 - listeners must not break refresh.
                LOGGER.error(
                    "catalog.listener.failed",
                    extra={"event": "catalog.listener.failed", "error": str(exc)},
                )

    async def close(self) -> None:
        """Cancel pending refreshes and close the HTTP client when owned."""
        self._timer.cancel()
        if self._owns_client:
            await self._client.aclose()
