"""Bearer credential providers.

A provider is any zero-argument callable returning the current token or
``None``. The posts client calls it before every request so a token saved
mid-session is picked up without rebuilding the client.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

CredentialProvider = Callable[[], str | None]


def no_credentials() -> str | None:
    return None


class StaticCredentials:
    """Always returns the same token (empty means none)."""

    def __init__(self, token: str) -> None:
        self._token = token.strip()

    def __call__(self) -> str | None:
        return self._token or None


class TokenFile:
    """Token persisted as JSON in the client-local data directory."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self._path, exc)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token.strip():
            return None
        return token.strip()

    def save(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"token": token.strip()}))
        logger.info("Saved credential to %s", self._path)

    def clear(self) -> bool:
        """Delete the stored token. Returns True if one existed."""
        if not self._path.exists():
            return False
        self._path.unlink()
        logger.info("Removed credential at %s", self._path)
        return True


class ChainedCredentials:
    """Returns the first token any of the wrapped providers yields."""

    def __init__(self, *providers: CredentialProvider) -> None:
        self._providers = providers

    def __call__(self) -> str | None:
        for provider in self._providers:
            token = provider()
            if token:
                return token
        return None


def credentials_from_settings(settings) -> CredentialProvider:
    """Environment token first, then the token file."""
    return ChainedCredentials(
        StaticCredentials(settings.api_token),
        TokenFile(settings.credentials_path),
    )
