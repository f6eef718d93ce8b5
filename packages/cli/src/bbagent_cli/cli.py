"""CLI entry point for bbagent.

Commands:
  auth     — login / status / logout
  pr       — list, view, comments, diff, create, plus comment and task subgroups
  api      — raw GET passthrough to the Bitbucket API

Exit codes:
  0  success
  1  general / unexpected error
  2  authentication required, rejected or forbidden
  3  not found (PR, comment, task, repository)
  4  invalid arguments
"""

from __future__ import annotations

import importlib.metadata
import logging
import sys

import click

from bbagent_core.output import ExitCode, Printer
from bbagent_cli.commands.api import api_cmd
from bbagent_cli.commands.auth import auth_group
from bbagent_cli.commands.pr import pr_group

logger = logging.getLogger(__name__)


def _reject_usage(error: click.UsageError, printer: Printer | None) -> None:
    error.exit_code = ExitCode.INVALID_INPUT
    if printer is not None and printer.json_mode:
        printer.emit_error(error.format_message(), ExitCode.INVALID_INPUT)


class AgentGroup(click.Group):
    """Root group that keeps every failure inside the documented exit codes.

    Click reports usage errors with exit code 2, which this tool reserves for
    authentication problems, so they are re-tagged as invalid input (and, in
    JSON mode, reported as an error record). Any other exception escaping a
    command becomes a single error record with exit 1.
    """

    def make_context(self, info_name, args, parent=None, **extra):
        # Parsing consumes args, and no Printer exists yet if it fails.
        json_requested = "--json" in args
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            _reject_usage(e, Printer(json_mode=json_requested))
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            _reject_usage(e, (ctx.obj or {}).get("printer"))
            raise
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except Exception as e:
            logger.debug("Unhandled error", exc_info=True)
            printer = (ctx.obj or {}).get("printer") or Printer()
            printer.emit_error(str(e) or type(e).__name__, ExitCode.GENERAL_ERROR)


def _build_store(config: dict):
    """Instantiate the credential store selected in .bbagent.yml.

      store: keychain (default) → KeyringCredentialStore (OS keychain)
      store: file               → FileCredentialStore at credentials_path
      store: none               → NoOpCredentialStore (environment variables only)
    """
    store_type = config.get("store", "keychain")

    if store_type in ("none", "noop"):
        from bbagent_store.noop import NoOpCredentialStore

        return NoOpCredentialStore()

    if store_type == "file":
        from bbagent_core.config import default_credentials_path
        from bbagent_store.file import FileCredentialStore

        return FileCredentialStore(config.get("credentials_path") or default_credentials_path())

    if store_type != "keychain":
        logger.warning("Unknown credential store %r; using the keychain.", store_type)

    from bbagent_store.keychain import KeyringCredentialStore

    return KeyringCredentialStore()


@click.group(cls=AgentGroup)
@click.version_option(
    version=importlib.metadata.version("bbagent"),
    prog_name="bbagent",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.option(
    "--config",
    "config_path",
    default=".bbagent.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="BBAGENT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log API requests and lookups to stderr.")
@click.pass_context
def main(ctx: click.Context, json_output: bool, config_path: str, verbose: bool):
    """Bitbucket pull request CLI for coding agents.

    \b
    Environment variables:
      BB_USERNAME    Bitbucket username
      BB_API_TOKEN   Bitbucket API token
    """
    from bbagent_core.config import load_config

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s", stream=sys.stderr)

    ctx.ensure_object(dict)

    config = load_config(config_path, cli_overrides={"json": json_output or None})
    ctx.obj["config"] = config
    ctx.obj["printer"] = Printer(json_mode=bool(config["json"]))

    if "store" not in ctx.obj:
        ctx.obj["store"] = _build_store(config)
    ctx.call_on_close(ctx.obj["store"].close)


main.add_command(auth_group)
main.add_command(pr_group)
main.add_command(api_cmd)
