"""Bitbucket credential resolution.

Resolution order (stops at first success):
  1. BB_USERNAME + BB_API_TOKEN environment variables (CI / explicit override).
     BB_APP_PASSWORD is still accepted in place of BB_API_TOKEN for setups
     created before Bitbucket replaced app passwords with API tokens.
  2. The configured credential store (what `bbagent auth login` saved).
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from bbagent_store.models import Credentials

if TYPE_CHECKING:
    from bbagent_store.base import BaseCredentialStore

logger = logging.getLogger(__name__)

ENV_USERNAME = "BB_USERNAME"
ENV_TOKEN = "BB_API_TOKEN"
ENV_LEGACY_TOKEN = "BB_APP_PASSWORD"


def _credentials_from_env() -> Credentials | None:
    username = os.environ.get(ENV_USERNAME)
    token = os.environ.get(ENV_TOKEN) or os.environ.get(ENV_LEGACY_TOKEN)
    if username and token:
        return Credentials(username=username, api_token=token)
    return None


def resolve_credentials(store: BaseCredentialStore | None) -> Credentials | None:
    """Return credentials or None if no source has a complete pair.

    Never raises; callers should check for None and report exit code 2.
    """
    credentials = _credentials_from_env()
    if credentials:
        logger.debug("Using credentials from %s.", ENV_USERNAME)
        return credentials

    if store is not None:
        credentials = store.load()
        if credentials:
            logger.debug("Using credentials from %s.", type(store).__name__)
            return credentials

    return None


def credential_source(store: BaseCredentialStore | None) -> str | None:
    """Report where credentials would come from: ``"env"``, ``"store"`` or None."""
    if _credentials_from_env():
        return "env"
    if store is not None and store.load():
        return "store"
    return None
