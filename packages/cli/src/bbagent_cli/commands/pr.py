"""pr commands — list, view, comments, diff, create."""

from __future__ import annotations

import click

from bbagent_core.bb.models import PullRequest
from bbagent_core.bb.pull_request import (
    PR_STATES,
    create_pull,
    get_comments_and_tasks,
    get_default_branch,
    get_diff,
    get_pull,
    list_pull_requests,
)
from bbagent_core.bb.results import ApiFailure
from bbagent_core.git import get_current_branch
from bbagent_core.output import ExitCode
from bbagent_core.threads import build_threads, render_threads_text, threads_to_dict
from bbagent_core.utils.timestamps import format_timestamp
from bbagent_cli.commands.comment import comment_group
from bbagent_cli.commands.common import (
    get_printer,
    handle_api_error,
    parse_positive_id,
    repo_option,
    require_auth,
    require_repo,
    run_with_client,
)
from bbagent_cli.commands.task import task_group


@click.group("pr")
def pr_group():
    """Pull request operations."""


pr_group.add_command(comment_group)
pr_group.add_command(task_group)


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


def _pr_summary(pr: PullRequest) -> dict:
    return {
        "id": pr.id,
        "title": pr.title,
        "state": pr.state,
        "author": pr.author.display_name,
        "source": pr.source.branch.name,
        "destination": pr.destination.branch.name,
        "updated": pr.updated_on,
    }


def _format_pr_list_text(prs: list[dict], state: str) -> str:
    if not prs:
        return f"No {state} pull requests"

    lines = [f"{state.capitalize()} Pull Requests ({len(prs)})", ""]
    for pr in prs:
        lines.append(f"#{pr['id']} {pr['title']}")
        lines.append(f"     by {pr['author']} | {pr['source']} -> {pr['destination']}")
        lines.append(f"     Updated {format_timestamp(pr['updated'])}")
        lines.append("")
    return "\n".join(lines).rstrip()


@pr_group.command("list")
@click.option(
    "--state",
    "-s",
    default="open",
    show_default=True,
    help="Filter by state (open, merged, declined, superseded).",
)
@repo_option
@click.pass_context
def list_cmd(ctx, state: str, repo: str | None):
    """List pull requests."""
    requested = state
    state = state.lower()
    if state not in PR_STATES:
        get_printer(ctx).emit_error(
            f'Invalid --state value: "{requested}". Valid values: {", ".join(PR_STATES)}',
            ExitCode.INVALID_INPUT,
        )
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    result = run_with_client(ctx, credentials, lambda client: list_pull_requests(client, ref, state))
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref)

    prs = [_pr_summary(pr) for pr in result.value]
    get_printer(ctx).emit(_format_pr_list_text(prs, state), {"prs": prs})


# ---------------------------------------------------------------------------
# view
# ---------------------------------------------------------------------------


def _pr_detail(pr: PullRequest) -> dict:
    detail = {
        "id": pr.id,
        "title": pr.title,
        "state": pr.state,
        "author": pr.author.display_name,
        "source": pr.source.branch.name,
        "destination": pr.destination.branch.name,
        "created": pr.created_on,
        "updated": pr.updated_on,
        "comments": pr.comment_count or 0,
        "url": pr.html_url,
        "description": pr.description or None,
        "reviewers": [{"user": r.user.display_name, "approved": r.approved} for r in pr.reviewers],
    }
    # The PR payload only carries the task total, not how many are resolved.
    if pr.task_count is not None:
        detail["tasks"] = {"total": pr.task_count}
    return detail


def _format_pr_view_text(pr: dict) -> str:
    lines = [
        f"PR #{pr['id']}: {pr['title']}",
        f"State: {pr['state']}",
        f"Author: {pr['author']}",
        f"Branch: {pr['source']} -> {pr['destination']}",
        f"Created: {format_timestamp(pr['created'])}",
        f"Updated: {format_timestamp(pr['updated'])}",
        f"Comments: {pr['comments']}",
    ]
    if "tasks" in pr:
        lines.append(f"Tasks: {pr['tasks']['total']}")
    if pr["url"]:
        lines.append(f"URL: {pr['url']}")

    if pr["reviewers"]:
        lines.append("")
        lines.append("Reviewers:")
        for reviewer in pr["reviewers"]:
            status = "approved" if reviewer["approved"] else "pending"
            lines.append(f"  - {reviewer['user']} ({status})")

    if pr["description"]:
        lines.append("")
        lines.append("Description:")
        lines.extend(f"  {line}".rstrip() for line in pr["description"].splitlines())

    return "\n".join(lines)


@pr_group.command("view")
@click.argument("pr_id")
@repo_option
@click.pass_context
def view_cmd(ctx, pr_id: str, repo: str | None):
    """View PR details."""
    pr_number = parse_positive_id(ctx, pr_id, "PR ID")
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    result = run_with_client(ctx, credentials, lambda client: get_pull(client, ref, pr_number))
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref, pr_id=pr_number)

    detail = _pr_detail(result.value)
    get_printer(ctx).emit(_format_pr_view_text(detail), detail)


# ---------------------------------------------------------------------------
# comments
# ---------------------------------------------------------------------------


@pr_group.command("comments")
@click.argument("pr_id")
@repo_option
@click.pass_context
def comments_cmd(ctx, pr_id: str, repo: str | None):
    """View PR comments as threads, with their tasks."""
    pr_number = parse_positive_id(ctx, pr_id, "PR ID")
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    result = run_with_client(ctx, credentials, lambda client: get_comments_and_tasks(client, ref, pr_number))
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref, pr_id=pr_number)

    comments, tasks = result.value
    threads = build_threads(comments, tasks)
    get_printer(ctx).emit(render_threads_text(pr_number, threads), threads_to_dict(threads))


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


@pr_group.command("diff")
@click.argument("pr_id")
@repo_option
@click.pass_context
def diff_cmd(ctx, pr_id: str, repo: str | None):
    """View PR diff (always plain text)."""
    pr_number = parse_positive_id(ctx, pr_id, "PR ID")
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    result = run_with_client(ctx, credentials, lambda client: get_diff(client, ref, pr_number))
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref, pr_id=pr_number)

    get_printer(ctx).raw(result.value or "")


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


def _format_create_text(pr: dict) -> str:
    lines = [f"Created PR #{pr['id']}: {pr['title']}", f"Branch: {pr['source']} -> {pr['destination']}"]
    if pr["url"]:
        lines.append(f"URL: {pr['url']}")
    return "\n".join(lines)


@pr_group.command("create")
@click.option("--title", "-t", default=None, help="PR title (defaults to branch name).")
@click.option("--source", "-s", default=None, help="Source branch (defaults to current branch).")
@click.option("--destination", "-d", default=None, help="Destination branch (defaults to the repository's main branch).")
@click.option("--description", "-m", default=None, help="PR description.")
@click.option("--close", "-c", "close_source", is_flag=True, help="Close source branch after merge.")
@repo_option
@click.pass_context
def create_cmd(
    ctx,
    title: str | None,
    source: str | None,
    destination: str | None,
    description: str | None,
    close_source: bool,
    repo: str | None,
):
    """Create a new pull request."""
    printer = get_printer(ctx)
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    source = source or get_current_branch()
    if not source:
        printer.emit_error(
            "Could not determine source branch. Use --source to specify the branch.",
            ExitCode.INVALID_INPUT,
        )

    fallback = ctx.obj["config"].get("default_branch") or "main"

    async def work(client):
        dest = destination or await get_default_branch(client, ref, fallback=fallback)
        if dest == source:
            return dest, None
        created = await create_pull(
            client,
            ref,
            title=title or source,
            source=source,
            destination=destination,
            description=description,
            close_source_branch=close_source,
        )
        return dest, created

    dest, result = run_with_client(ctx, credentials, work)
    if result is None:
        printer.emit_error(
            f'Source branch "{source}" cannot be the same as destination branch "{dest}".',
            ExitCode.INVALID_INPUT,
        )
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref)

    pr = result.value
    created = {
        "id": pr.id,
        "title": pr.title,
        "state": pr.state,
        "source": pr.source.branch.name,
        "destination": pr.destination.branch.name,
        "url": pr.html_url,
    }
    printer.emit(_format_create_text(created), created)
