"""api command — raw GET access to the Bitbucket API."""

from __future__ import annotations

import click

from bbagent_core.bb.results import ApiFailure, AuthFailure, Forbidden, NotFound
from bbagent_core.output import ExitCode
from bbagent_cli.commands.common import get_printer, require_auth, run_with_client


@click.command("api")
@click.argument("endpoint")
@click.pass_context
def api_cmd(ctx, endpoint: str):
    """Raw API access (GET request to the Bitbucket API).

    ENDPOINT is a path under https://api.bitbucket.org/2.0, e.g.
    /repositories/myteam/myrepo. The response is always printed as indented
    JSON, whatever the --json setting.
    """
    printer = get_printer(ctx)
    credentials = require_auth(ctx)

    if endpoint.startswith("http"):
        result = run_with_client(ctx, credentials, lambda client: client.get_url(endpoint))
    else:
        path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        result = run_with_client(ctx, credentials, lambda client: client.get(path))

    if isinstance(result, AuthFailure):
        printer.emit_error(f"Authentication failed: {result.message}", ExitCode.AUTH_ERROR)
    if isinstance(result, Forbidden):
        printer.emit_error(f"Access forbidden: {result.message}", ExitCode.AUTH_ERROR)
    if isinstance(result, NotFound):
        printer.emit_error(f"Not found: {result.message}", ExitCode.NOT_FOUND)
    if isinstance(result, ApiFailure):
        printer.emit_error(f"API request failed: {result.describe()}", ExitCode.GENERAL_ERROR)

    printer.pretty(result.value)
