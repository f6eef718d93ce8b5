"""Abstract credential store interface.

The CLI depends on BaseCredentialStore, not on a concrete backend, so the
place credentials live can change without touching command code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bbagent_store.models import Credentials


class CredentialStoreError(Exception):
    """Raised when a store cannot write or remove credentials."""


class BaseCredentialStore(ABC):
    """Pluggable persistence for the credentials saved by ``auth login``."""

    @abstractmethod
    def load(self) -> Credentials | None:
        """Return the stored credentials, or None if nothing usable is stored.

        Never raises for a missing or unreadable backing store.
        """

    @abstractmethod
    def save(self, credentials: Credentials) -> None:
        """Persist credentials, replacing any previously stored pair."""

    @abstractmethod
    def clear(self) -> None:
        """Forget stored credentials. Safe to call when nothing is stored."""

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
