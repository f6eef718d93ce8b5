"""Credential data model.

Decoupled from bbagent_core so the store layer can be used independently;
the core only ever sees a Credentials value handed to it by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credentials:
    """A Bitbucket username and API token (or legacy app password)."""

    username: str
    api_token: str = field(repr=False)
