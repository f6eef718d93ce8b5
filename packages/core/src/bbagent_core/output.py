"""Presentation for a text-first CLI with an optional JSON mode.

A single ``Printer`` is built by the root command from ``--json`` (or the
``json`` config key) and handed to every command through the click context,
so the output mode is decided once and read everywhere without a global.

Success output goes to stdout, errors to stderr. In JSON mode each
invocation writes exactly one compact JSON document.
"""

from __future__ import annotations

import enum
import json
import sys
from typing import Any, NoReturn

import click
from rich.console import Console


class ExitCode(enum.IntEnum):
    OK = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    NOT_FOUND = 3
    INVALID_INPUT = 4


class Printer:
    """Writes command results and errors in the selected output mode.

    Text goes out through ``click.echo`` untouched (tabs, brackets and long
    lines included); rich is only used to indent the ``api`` passthrough.
    """

    def __init__(self, json_mode: bool = False):
        self.json_mode = json_mode
        self._console = Console(markup=False, emoji=False, soft_wrap=True)

    def emit(self, text: str, data: Any) -> None:
        """Write ``text`` in text mode or ``data`` as compact JSON in JSON mode."""
        if self.json_mode:
            click.echo(json.dumps(data, separators=(",", ":")))
        else:
            click.echo(text)

    def emit_error(self, message: str, code: int = ExitCode.GENERAL_ERROR) -> NoReturn:
        """Report a failure on stderr and exit with ``code``."""
        if self.json_mode:
            click.echo(json.dumps({"error": message, "code": int(code)}, separators=(",", ":")), err=True)
        else:
            click.echo(f"Error: {message}", err=True)
        sys.exit(int(code))

    def raw(self, text: str) -> None:
        """Write ``text`` whatever the mode (diffs are never wrapped in JSON)."""
        click.echo(text)

    def pretty(self, data: Any) -> None:
        """Indented JSON regardless of mode, for the raw API passthrough."""
        self._console.print_json(data=data, indent=2, highlight=False)
