"""Persistent storage for the provider API key."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

LOGGER = logging.getLogger(__name__)

CREDENTIAL_KEY = "api_key"


class CredentialStore:
    """Keep a single API key in a private JSON file across sessions."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _enforce_private_permissions(self) -> None:
        if os.name != "posix":
            return
        try:
            self.path.chmod(0o600)
        except OSError:
            LOGGER.warning("Unable to enforce 0600 permissions for %s", self.path)

    def load(self) -> str:
        """Return the stored key, or an empty string when none is readable."""
        if not self.path.exists():
            return ""
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning(
                "credentials.load.failed",
                extra={"event": "credentials.load.failed", "error": str(exc)},
            )
            return ""
        if not isinstance(payload, dict):
            return ""
        value = payload.get(CREDENTIAL_KEY)
        return value if isinstance(value, str) else ""

    def save(self, api_key: str) -> None:
        """Write the key; failures are logged rather than raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps({CREDENTIAL_KEY: api_key}, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as exc:
            LOGGER.warning(
                "credentials.save.failed",
                extra={"event": "credentials.save.failed", "error": str(exc)},
            )
            return
        self._enforce_private_permissions()
