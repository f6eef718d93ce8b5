"""No-op store — for environments that only ever use BB_USERNAME/BB_API_TOKEN.

Selected with ``store: none`` in .bbagent.yml (typically CI). Using a
NoOpCredentialStore rather than None lets the CLI always call
store.load() without conditional checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bbagent_store.base import BaseCredentialStore

if TYPE_CHECKING:
    from bbagent_store.models import Credentials


class NoOpCredentialStore(BaseCredentialStore):
    """Never has credentials and discards anything saved."""

    def load(self) -> Credentials | None:
        return None

    def save(self, credentials: Credentials) -> None:
        pass

    def clear(self) -> None:
        pass
