"""Credential provider interface and the API-key implementation.

The session never reads keys from globals; it asks an AuthProvider whether
a run may start and, when needed, asks it to obtain a (different) key.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Callable, Optional

from veovision.config import settings

logger = logging.getLogger(__name__)

# Environment variables checked when no key is configured, in order
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


class AuthProvider(ABC):
    """Gate for starting runs."""

    @abstractmethod
    def is_authorized(self) -> bool:
        """Return True if a credential is currently selected."""
        ...

    @abstractmethod
    def request_authorization(self) -> bool:
        """Ask the host to select a credential. Return True on success."""
        ...

    @property
    @abstractmethod
    def api_key(self) -> Optional[str]:
        """The selected credential, or None."""
        ...


class ApiKeyAuthProvider(AuthProvider):
    """AuthProvider backed by a Gemini API key.

    The initial key comes from the explicit argument, settings.google.api_key
    or the first set variable in API_KEY_ENV_VARS. request_authorization()
    calls the injected selector (e.g. a hidden terminal prompt) to obtain a
    new one; without a selector it cannot authorize.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        selector: Optional[Callable[[], Optional[str]]] = None,
    ) -> None:
        self._api_key = api_key or _configured_api_key()
        self._selector = selector

    def is_authorized(self) -> bool:
        return bool(self._api_key)

    def request_authorization(self) -> bool:
        if self._selector is None:
            logger.warning("No credential selector available; cannot request an API key")
            return False

        selected = self._selector()
        if not selected or not selected.strip():
            logger.info("API key selection cancelled")
            return False

        self._api_key = selected.strip()
        logger.info("API key selected")
        return True

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key


def _configured_api_key() -> Optional[str]:
    if settings.google.api_key:
        return settings.google.api_key
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None
