"""Configuration loading for bbagent.

Settings are merged in order of precedence:
  1. Built-in defaults
  2. .bbagent.yml in the current directory (or --config / BBAGENT_CONFIG)
  3. CLI argument overrides

Credentials are deliberately not part of the config; see bbagent_cli.auth.
"""

import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "repo": None,  # workspace/repo used when --repo is absent
    "json": False,  # default output mode
    "default_branch": "main",  # pr create destination when the repo's main branch can't be read
    "store": "keychain",  # credential store: "keychain", "file" or "none"
    "credentials_path": None,  # None = $XDG_CONFIG_HOME/bbagent/credentials.yml
    "timeout": None,  # HTTP timeout in seconds; None waits indefinitely
}


def load_config(config_path: str = ".bbagent.yml", cli_overrides: Optional[dict] = None) -> dict:
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config


def default_credentials_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "bbagent" / "credentials.yml"
