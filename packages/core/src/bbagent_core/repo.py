"""Working out which Bitbucket repository a command targets.

Resolution order (stops at first success):
  1. --repo workspace/repo on the command line
  2. ``repo:`` in .bbagent.yml
  3. the ``origin`` remote of the git working copy
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bbagent_core import git

logger = logging.getLogger(__name__)


class RepoResolutionError(ValueError):
    """Raised when no repository can be determined or --repo is malformed."""


@dataclass(frozen=True)
class RepoRef:
    workspace: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.workspace}/{self.repo}"

    @property
    def api_path(self) -> str:
        return f"/repositories/{self.workspace}/{self.repo}"


def parse_repo_flag(value: str) -> RepoRef | None:
    parts = value.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return RepoRef(parts[0], parts[1])


def resolve_repository(override: str | None = None, config: dict | None = None) -> RepoRef:
    """Return the target repository or raise RepoResolutionError."""
    if override:
        ref = parse_repo_flag(override)
        if ref is None:
            raise RepoResolutionError(f'Invalid --repo format: "{override}". Expected format: workspace/repo')
        return ref

    configured = (config or {}).get("repo")
    if configured:
        ref = parse_repo_flag(str(configured))
        if ref is None:
            raise RepoResolutionError(f'Invalid repo in config: "{configured}". Expected format: workspace/repo')
        return ref

    url = git.get_origin_url()
    if url:
        parsed = git.parse_remote_url(url)
        if parsed:
            logger.debug("Detected repository %s/%s from git remote", *parsed)
            return RepoRef(*parsed)
        logger.debug("origin remote %r is not a Bitbucket URL", url)

    raise RepoResolutionError(
        "Could not determine repository. Use --repo workspace/repo or run from a directory "
        "with a Bitbucket git remote."
    )
