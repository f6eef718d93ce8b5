"""Helpers that read the local git working copy."""

from __future__ import annotations

import logging
import re
import subprocess

logger = logging.getLogger(__name__)

# git@bitbucket.org:workspace/repo.git
_SSH_RE = re.compile(r"^git@bitbucket\.org:([^/]+)/([^/]+?)(?:\.git)?$")
# https://bitbucket.org/workspace/repo.git, optionally with user@ before the host
_HTTPS_RE = re.compile(r"^https://(?:[^@/]+@)?bitbucket\.org/([^/]+)/([^/]+?)(?:\.git)?/?$")


def _git(*args: str) -> str | None:
    """Run a git command and return its stripped stdout, or None on any failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        logger.debug("git %s failed: %s", " ".join(args), exc)
        return None
    if result.returncode != 0:
        logger.debug("git %s exited with %d", " ".join(args), result.returncode)
        return None
    return result.stdout.strip() or None


def parse_remote_url(url: str) -> tuple[str, str] | None:
    """Extract ``(workspace, repo)`` from a Bitbucket SSH or HTTPS remote URL."""
    for pattern in (_SSH_RE, _HTTPS_RE):
        match = pattern.match(url.strip())
        if match:
            return match.group(1), match.group(2)
    return None


def get_origin_url() -> str | None:
    return _git("remote", "get-url", "origin")


def get_current_branch() -> str | None:
    """Return the checked-out branch, or None outside a repo or on a detached HEAD."""
    branch = _git("rev-parse", "--abbrev-ref", "HEAD")
    if branch == "HEAD":
        return None
    return branch
