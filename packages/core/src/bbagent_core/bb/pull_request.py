"""Pull request endpoints, one coroutine per call the CLI makes.

Each function returns an ``ApiResult``; payloads are validated into the
schemas from ``bbagent_core.bb.models``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from bbagent_core.bb.models import Comment, Page, PullRequest, Repository, Task, User, parse
from bbagent_core.bb.pagination import fetch_all_pages
from bbagent_core.bb.results import ApiFailure, ApiResult, Ok

if TYPE_CHECKING:
    from bbagent_core.bb.client import ApiClient
    from bbagent_core.repo import RepoRef

logger = logging.getLogger(__name__)

PR_STATES = ("open", "merged", "declined", "superseded")


def _pr_path(repo: RepoRef, pr_id: int) -> str:
    return f"{repo.api_path}/pullrequests/{pr_id}"


async def _get_model(client: ApiClient, path: str, model) -> ApiResult:
    result = await client.get(path)
    if isinstance(result, ApiFailure):
        return result
    return parse(model, result.value)


async def get_current_user(client: ApiClient) -> ApiResult:
    return await _get_model(client, "/user", User)


async def list_pull_requests(client: ApiClient, repo: RepoRef, state: str = "open") -> ApiResult:
    """Return the first page of PRs in ``state``."""
    result = await client.get(f"{repo.api_path}/pullrequests?state={state.upper()}")
    if isinstance(result, ApiFailure):
        return result
    page = parse(Page[PullRequest], result.value)
    if isinstance(page, ApiFailure):
        return page
    return Ok(page.value.values)


async def get_pull(client: ApiClient, repo: RepoRef, pr_id: int) -> ApiResult:
    return await _get_model(client, _pr_path(repo, pr_id), PullRequest)


async def get_comments(client: ApiClient, repo: RepoRef, pr_id: int) -> ApiResult:
    return await fetch_all_pages(client, f"{_pr_path(repo, pr_id)}/comments", Comment)


async def get_tasks(client: ApiClient, repo: RepoRef, pr_id: int) -> ApiResult:
    return await fetch_all_pages(client, f"{_pr_path(repo, pr_id)}/tasks", Task)


async def get_comments_and_tasks(client: ApiClient, repo: RepoRef, pr_id: int) -> ApiResult:
    """Fetch every comment and every task of a PR concurrently.

    Returns ``Ok((comments, tasks))`` or the first failure (comments checked
    first).
    """
    comments, tasks = await asyncio.gather(
        get_comments(client, repo, pr_id),
        get_tasks(client, repo, pr_id),
    )
    for result in (comments, tasks):
        if isinstance(result, ApiFailure):
            return result
    return Ok((comments.value, tasks.value))


async def get_diff(client: ApiClient, repo: RepoRef, pr_id: int) -> ApiResult:
    return await client.get_text(f"{_pr_path(repo, pr_id)}/diff")


async def get_repository(client: ApiClient, repo: RepoRef) -> ApiResult:
    return await _get_model(client, repo.api_path, Repository)


async def get_default_branch(client: ApiClient, repo: RepoRef, fallback: str = "main") -> str:
    """Return the repository's main branch, or ``fallback`` if it can't be read.

    Never fails: a broken metadata lookup must not stop PR creation.
    """
    result = await get_repository(client, repo)
    if isinstance(result, ApiFailure):
        logger.debug("Default branch lookup failed (%s); using %r", result.describe(), fallback)
        return fallback
    if result.value.mainbranch is None:
        logger.debug("Repository has no main branch set; using %r", fallback)
        return fallback
    return result.value.mainbranch.name


async def create_pull(
    client: ApiClient,
    repo: RepoRef,
    title: str,
    source: str,
    destination: str | None = None,
    description: str | None = None,
    close_source_branch: bool = False,
) -> ApiResult:
    body: dict = {"title": title, "source": {"branch": {"name": source}}}
    if destination:
        body["destination"] = {"branch": {"name": destination}}
    if description:
        body["description"] = description
    if close_source_branch:
        body["close_source_branch"] = True

    result = await client.post(f"{repo.api_path}/pullrequests", body)
    if isinstance(result, ApiFailure):
        return result
    return parse(PullRequest, result.value)


async def add_comment(client: ApiClient, repo: RepoRef, pr_id: int, text: str, parent_id: int | None = None) -> ApiResult:
    body: dict = {"content": {"raw": text}}
    if parent_id:
        body["parent"] = {"id": parent_id}

    result = await client.post(f"{_pr_path(repo, pr_id)}/comments", body)
    if isinstance(result, ApiFailure):
        return result
    return parse(Comment, result.value)


async def set_comment_resolved(client: ApiClient, repo: RepoRef, pr_id: int, comment_id: int, resolved: bool) -> ApiResult:
    """Resolve (POST) or reopen (DELETE) a comment thread.

    Returns ``Ok(resolved)``, the state the thread is in after the call.
    """
    path = f"{_pr_path(repo, pr_id)}/comments/{comment_id}/resolve"
    result = await (client.post(path, {}) if resolved else client.delete(path))
    if isinstance(result, ApiFailure):
        return result
    return Ok(resolved)


async def set_task_state(client: ApiClient, repo: RepoRef, pr_id: int, task_id: int, state: str) -> ApiResult:
    result = await client.put(f"{_pr_path(repo, pr_id)}/tasks/{task_id}", {"state": state})
    if isinstance(result, ApiFailure):
        return result
    return parse(Task, result.value)
