"""Plumbing shared by every command: argument checks, auth, repo lookup,
running the async API work, and turning API failures into exit codes.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, NoReturn

import click

from bbagent_core.bb.client import ApiClient
from bbagent_core.bb.results import ApiFailure, AuthFailure, Forbidden, NotFound
from bbagent_core.output import ExitCode, Printer
from bbagent_core.repo import RepoRef, RepoResolutionError, resolve_repository

if TYPE_CHECKING:
    from bbagent_store.models import Credentials

AUTH_REQUIRED = (
    "Authentication required. Run 'bbagent auth login' or set BB_USERNAME and BB_API_TOKEN environment variables."
)

repo_option = click.option(
    "--repo",
    "-r",
    default=None,
    help="Workspace/repo (auto-detected from git remote).",
)


def get_printer(ctx: click.Context) -> Printer:
    return ctx.obj["printer"]


def parse_positive_id(ctx: click.Context, value: str, label: str) -> int:
    """Parse a numeric id argument; anything but a positive integer exits 4."""
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number <= 0:
        get_printer(ctx).emit_error(f'Invalid {label}: "{value}". Must be a positive integer.', ExitCode.INVALID_INPUT)
    return number


def require_auth(ctx: click.Context) -> Credentials:
    from bbagent_cli.auth import resolve_credentials

    credentials = resolve_credentials(ctx.obj.get("store"))
    if credentials is None:
        get_printer(ctx).emit_error(AUTH_REQUIRED, ExitCode.AUTH_ERROR)
    return credentials


def require_repo(ctx: click.Context, override: str | None) -> RepoRef:
    try:
        return resolve_repository(override, ctx.obj.get("config"))
    except RepoResolutionError as e:
        get_printer(ctx).emit_error(str(e), ExitCode.INVALID_INPUT)


def run_with_client(
    ctx: click.Context,
    credentials: Credentials,
    work: Callable[[ApiClient], Awaitable[Any]],
) -> Any:
    """Open an ApiClient, await ``work(client)`` on a fresh event loop, return its result."""
    config = ctx.obj.get("config") or {}

    async def _run():
        async with ApiClient(credentials, transport=ctx.obj.get("transport"), timeout=config.get("timeout")) as client:
            return await work(client)

    return asyncio.run(_run())


def handle_api_error(
    ctx: click.Context,
    failure: ApiFailure,
    repo: RepoRef,
    pr_id: int | None = None,
    comment_id: int | None = None,
    task_id: int | None = None,
) -> NoReturn:
    """Translate an API failure into the user-facing message and exit code."""
    printer = get_printer(ctx)
    if isinstance(failure, AuthFailure):
        printer.emit_error("Authentication failed. Check your credentials.", ExitCode.AUTH_ERROR)
    if isinstance(failure, Forbidden):
        printer.emit_error(
            f"Insufficient permissions to access {repo.slug}. Check your API token permissions.",
            ExitCode.AUTH_ERROR,
        )
    if isinstance(failure, NotFound):
        if task_id:
            message = f"Task not found: #{task_id} on PR #{pr_id}"
        elif comment_id:
            message = f"Comment not found: #{comment_id} on PR #{pr_id}"
        elif pr_id:
            message = f"Pull request not found: {repo.slug}#{pr_id}"
        else:
            message = f"Repository not found: {repo.slug}"
        printer.emit_error(message, ExitCode.NOT_FOUND)
    printer.emit_error(failure.describe(), ExitCode.GENERAL_ERROR)
