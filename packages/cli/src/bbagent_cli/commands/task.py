"""pr task commands — resolve, unresolve."""

from __future__ import annotations

import click

from bbagent_core.bb.pull_request import set_task_state
from bbagent_core.bb.results import ApiFailure
from bbagent_cli.commands.common import (
    get_printer,
    handle_api_error,
    parse_positive_id,
    repo_option,
    require_auth,
    require_repo,
    run_with_client,
)


@click.group("task")
def task_group():
    """PR task operations."""


def _set_state(ctx: click.Context, pr_id: str, task_id: str, repo: str | None, state: str) -> None:
    pr_number = parse_positive_id(ctx, pr_id, "PR ID")
    task_number = parse_positive_id(ctx, task_id, "task ID")
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    result = run_with_client(ctx, credentials, lambda client: set_task_state(client, ref, pr_number, task_number, state))
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref, pr_id=pr_number, task_id=task_number)

    # Report what the server says the task is now, not what we asked for.
    task = result.value
    action = "Resolved" if task.state == "RESOLVED" else "Reopened"
    get_printer(ctx).emit(
        f"{action} task #{task.id} on PR #{pr_number}",
        {"task_id": task.id, "state": task.state},
    )


@task_group.command("resolve")
@click.argument("pr_id")
@click.argument("task_id")
@repo_option
@click.pass_context
def resolve_cmd(ctx, pr_id: str, task_id: str, repo: str | None):
    """Resolve a task."""
    _set_state(ctx, pr_id, task_id, repo, "RESOLVED")


@task_group.command("unresolve")
@click.argument("pr_id")
@click.argument("task_id")
@repo_option
@click.pass_context
def unresolve_cmd(ctx, pr_id: str, task_id: str, repo: str | None):
    """Reopen a resolved task."""
    _set_state(ctx, pr_id, task_id, repo, "UNRESOLVED")
