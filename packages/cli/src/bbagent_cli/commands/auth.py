"""auth commands — login, status, logout."""

from __future__ import annotations

import click

from bbagent_core.bb.pull_request import get_current_user
from bbagent_core.bb.results import ApiFailure, AuthFailure
from bbagent_core.output import ExitCode
from bbagent_store.base import CredentialStoreError
from bbagent_store.models import Credentials
from bbagent_store.noop import NoOpCredentialStore
from bbagent_cli.commands.common import get_printer, run_with_client


@click.group("auth")
def auth_group():
    """Manage authentication."""


@auth_group.command("login")
@click.option("--username", "-u", required=True, help="Bitbucket username.")
@click.option("--api-token", "-t", default=None, help="Bitbucket API token (prompted for when omitted).")
@click.option("--app-password", "-p", default=None, hidden=True, help="Legacy alias for --api-token.")
@click.pass_context
def login_cmd(ctx, username: str, api_token: str | None, app_password: str | None):
    """Validate credentials against the API and save them."""
    printer = get_printer(ctx)
    store = ctx.obj.get("store")
    if store is None or isinstance(store, NoOpCredentialStore):
        printer.emit_error(
            "No credential store configured. Set 'store: keychain' or 'store: file' in .bbagent.yml, "
            "or use the BB_USERNAME and BB_API_TOKEN environment variables.",
            ExitCode.INVALID_INPUT,
        )

    token = api_token or app_password or click.prompt("API token", hide_input=True)
    credentials = Credentials(username=username, api_token=token)

    result = run_with_client(ctx, credentials, get_current_user)
    if isinstance(result, AuthFailure):
        printer.emit_error("Invalid credentials: authentication failed", ExitCode.AUTH_ERROR)
    if isinstance(result, ApiFailure):
        printer.emit_error(f"Login failed: {result.describe()}", ExitCode.AUTH_ERROR)

    try:
        store.save(credentials)
    except CredentialStoreError as e:
        printer.emit_error(str(e), ExitCode.GENERAL_ERROR)
    user = result.value.handle
    printer.emit(f"Logged in as {user}", {"success": True, "user": user})


@auth_group.command("status")
@click.pass_context
def status_cmd(ctx):
    """Check authentication status."""
    from bbagent_cli.auth import credential_source, resolve_credentials

    store = ctx.obj.get("store")
    printer = get_printer(ctx)
    source = credential_source(store)
    if source is None:
        printer.emit("Not authenticated", {"authenticated": False})
        return

    credentials = resolve_credentials(store)
    printer.emit(
        f"Authenticated as {credentials.username} (source: {source})",
        {"authenticated": True, "username": credentials.username, "source": source},
    )


@auth_group.command("logout")
@click.pass_context
def logout_cmd(ctx):
    """Remove stored credentials."""
    printer = get_printer(ctx)
    store = ctx.obj.get("store")
    if store is not None:
        try:
            store.clear()
        except CredentialStoreError as e:
            printer.emit_error(str(e), ExitCode.GENERAL_ERROR)
    printer.emit("Logged out successfully", {"success": True})
