"""FileCredentialStore — credentials in a private YAML file.

The file lives under the user's config directory
(``$XDG_CONFIG_HOME/bbagent/credentials.yml``, falling back to
``~/.config/bbagent/credentials.yml``) and holds a single mapping:

    username: alice
    api_token: ATBB...

It is created with mode 0600 inside a 0700 directory. Files written by older
releases stored the secret under ``app_password``; that key is still read.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from bbagent_store.base import BaseCredentialStore
from bbagent_store.models import Credentials

logger = logging.getLogger(__name__)


class FileCredentialStore(BaseCredentialStore):
    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Credentials | None:
        if not self._path.exists():
            return None
        try:
            data = yaml.safe_load(self._path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not read credentials from %s: %s", self._path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed credentials file %s", self._path)
            return None

        username = data.get("username")
        token = data.get("api_token") or data.get("app_password")
        if not username or not token:
            return None
        return Credentials(username=str(username), api_token=str(token))

    def save(self, credentials: Credentials) -> None:
        self._path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        content = yaml.dump(
            {"username": credentials.username, "api_token": credentials.api_token},
            default_flow_style=False,
            sort_keys=False,
        )
        # Create with restrictive permissions before any secret is written.
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.chmod(self._path, 0o600)
        logger.debug("Saved credentials for %s to %s", credentials.username, self._path)

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            logger.debug("Removed %s", self._path)
