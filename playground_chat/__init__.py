"""Top-level package for playground-chat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .catalog import ModelCatalog
    from .config import ensure_config_dir, load_config
    from .conversation import ConversationStore
    from .credentials import CredentialStore
    from .dispatch import RequestDispatcher
    from .exceptions import (
        CatalogFetchError,
        ConfigValidationError,
        DispatchError,
        InvalidEndpointError,
        MalformedResponseError,
        PlaygroundError,
        ProviderError,
    )
    from .models import Message, Mode, Model
    from .state import ConversationState

__all__ = [
    "CatalogFetchError",
    "ConfigValidationError",
    "ConversationState",
    "ConversationStore",
    "CredentialStore",
    "DispatchError",
    "InvalidEndpointError",
    "MalformedResponseError",
    "Message",
    "Mode",
    "Model",
    "ModelCatalog",
    "PlaygroundError",
    "ProviderError",
    "RequestDispatcher",
    "ensure_config_dir",
    "load_config",
]

_EXCEPTIONS = {
    "CatalogFetchError",
    "ConfigValidationError",
    "DispatchError",
    "InvalidEndpointError",
    "MalformedResponseError",
    "PlaygroundError",
    "ProviderError",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols so importing the package stays cheap."""
    if name in _EXCEPTIONS:
        from . import exceptions

        return getattr(exceptions, name)
    if name in {"ensure_config_dir", "load_config"}:
        from .config import ensure_config_dir, load_config

        return {"ensure_config_dir": ensure_config_dir, "load_config": load_config}[name]
    if name in {"Message", "Mode", "Model"}:
        from . import models

        return getattr(models, name)
    if name == "ConversationState":
        from .state import ConversationState

        return ConversationState
    if name == "ModelCatalog":
        from .catalog import ModelCatalog

        return ModelCatalog
    if name == "RequestDispatcher":
        from .dispatch import RequestDispatcher

        return RequestDispatcher
    if name == "ConversationStore":
        from .conversation import ConversationStore

        return ConversationStore
    if name == "CredentialStore":
        from .credentials import CredentialStore

        return CredentialStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
