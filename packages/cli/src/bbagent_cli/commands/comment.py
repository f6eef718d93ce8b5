"""pr comment commands — add, resolve, unresolve."""

from __future__ import annotations

import click

from bbagent_core.bb.pull_request import add_comment, set_comment_resolved
from bbagent_core.bb.results import ApiFailure
from bbagent_core.output import ExitCode
from bbagent_cli.commands.common import (
    get_printer,
    handle_api_error,
    parse_positive_id,
    repo_option,
    require_auth,
    require_repo,
    run_with_client,
)


@click.group("comment")
def comment_group():
    """PR comment operations."""


@comment_group.command("add")
@click.argument("pr_id")
@click.option("--message", "-m", required=True, help="Comment content.")
@click.option("--parent", "-p", default=None, help="Parent comment ID (for replies).")
@repo_option
@click.pass_context
def add_cmd(ctx, pr_id: str, message: str, parent: str | None, repo: str | None):
    """Add a comment or reply to a pull request."""
    printer = get_printer(ctx)
    pr_number = parse_positive_id(ctx, pr_id, "PR ID")
    if not message.strip():
        printer.emit_error("Comment message cannot be empty. Use --message to provide content.", ExitCode.INVALID_INPUT)
    parent_id = parse_positive_id(ctx, parent, "parent comment ID") if parent is not None else None
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    result = run_with_client(ctx, credentials, lambda client: add_comment(client, ref, pr_number, message, parent_id))
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref, pr_id=pr_number)

    comment = result.value
    data = {"id": comment.id, "parent": comment.parent_id, "content": comment.content.raw}
    if data["parent"]:
        text = f"Added reply #{comment.id} to comment #{data['parent']} on PR #{pr_number}"
    else:
        text = f"Added comment #{comment.id} on PR #{pr_number}"
    printer.emit(text, data)


def _set_resolved(ctx: click.Context, pr_id: str, comment_id: str, repo: str | None, resolved: bool) -> None:
    pr_number = parse_positive_id(ctx, pr_id, "PR ID")
    comment_number = parse_positive_id(ctx, comment_id, "comment ID")
    credentials = require_auth(ctx)
    ref = require_repo(ctx, repo)

    result = run_with_client(
        ctx,
        credentials,
        lambda client: set_comment_resolved(client, ref, pr_number, comment_number, resolved),
    )
    if isinstance(result, ApiFailure):
        handle_api_error(ctx, result, ref, pr_id=pr_number, comment_id=comment_number)

    action = "Resolved" if result.value else "Reopened"
    get_printer(ctx).emit(
        f"{action} comment #{comment_number} on PR #{pr_number}",
        {"comment_id": comment_number, "resolved": result.value},
    )


@comment_group.command("resolve")
@click.argument("pr_id")
@click.argument("comment_id")
@repo_option
@click.pass_context
def resolve_cmd(ctx, pr_id: str, comment_id: str, repo: str | None):
    """Resolve a comment thread."""
    _set_resolved(ctx, pr_id, comment_id, repo, resolved=True)


@comment_group.command("unresolve")
@click.argument("pr_id")
@click.argument("comment_id")
@repo_option
@click.pass_context
def unresolve_cmd(ctx, pr_id: str, comment_id: str, repo: str | None):
    """Reopen a resolved comment thread."""
    _set_resolved(ctx, pr_id, comment_id, repo, resolved=False)
