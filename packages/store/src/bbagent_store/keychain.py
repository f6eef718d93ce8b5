"""KeyringCredentialStore — credentials in the OS keychain.

Uses the ``keyring`` package (macOS Keychain, Windows Credential Locker,
Secret Service on Linux). Both halves live under one service name:

    service "bbagent", name "username"  -> alice
    service "bbagent", name "api_token" -> ATBB...

Installations that saved an app password under ``app_password`` are still
read; that entry is never written and is removed on clear().
"""

from __future__ import annotations

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from bbagent_store.base import BaseCredentialStore, CredentialStoreError
from bbagent_store.models import Credentials

logger = logging.getLogger(__name__)

SERVICE_NAME = "bbagent"

_USERNAME = "username"
_API_TOKEN = "api_token"
_LEGACY_TOKEN = "app_password"


class KeyringCredentialStore(BaseCredentialStore):
    def __init__(self, service: str = SERVICE_NAME):
        self.service = service

    def load(self) -> Credentials | None:
        try:
            username = keyring.get_password(self.service, _USERNAME)
            token = keyring.get_password(self.service, _API_TOKEN) or keyring.get_password(
                self.service, _LEGACY_TOKEN
            )
        except KeyringError as e:
            logger.warning("Could not read credentials from the keychain: %s", e)
            return None

        if not username or not token:
            return None
        return Credentials(username=username, api_token=token)

    def save(self, credentials: Credentials) -> None:
        try:
            keyring.set_password(self.service, _USERNAME, credentials.username)
            keyring.set_password(self.service, _API_TOKEN, credentials.api_token)
        except KeyringError as e:
            raise CredentialStoreError(f"Could not save credentials to the keychain: {e}") from e
        logger.debug("Saved credentials for %s to keychain service %r", credentials.username, self.service)

    def clear(self) -> None:
        for name in (_USERNAME, _API_TOKEN, _LEGACY_TOKEN):
            try:
                keyring.delete_password(self.service, name)
            except PasswordDeleteError:
                # Nothing stored under this name.
                continue
            except KeyringError as e:
                raise CredentialStoreError(f"Could not remove credentials from the keychain: {e}") from e
