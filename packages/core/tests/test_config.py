"""Tests for configuration loading."""

from pathlib import Path

from bbagent_core.config import default_credentials_path, load_config


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["repo"] is None
    assert config["json"] is False
    assert config["default_branch"] == "main"
    assert config["store"] == "keychain"
    assert config["timeout"] is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".bbagent.yml"
    cfg.write_text("repo: team/app\ndefault_branch: develop\njson: true\n")
    config = load_config(config_path=str(cfg))
    assert config["repo"] == "team/app"
    assert config["default_branch"] == "develop"
    assert config["json"] is True


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".bbagent.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["store"] == "keychain"


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".bbagent.yml"
    cfg.write_text("json: false\n")
    config = load_config(config_path=str(cfg), cli_overrides={"json": True})
    assert config["json"] is True


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".bbagent.yml"
    cfg.write_text("json: true\n")
    config = load_config(config_path=str(cfg), cli_overrides={"json": None})
    assert config["json"] is True


def test_defaults_not_mutated(tmp_path):
    cfg = tmp_path / ".bbagent.yml"
    cfg.write_text("repo: team/app\n")
    load_config(config_path=str(cfg))
    assert load_config(config_path=str(tmp_path / "missing.yml"))["repo"] is None


def test_credentials_path_honours_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_credentials_path() == tmp_path / "bbagent" / "credentials.yml"


def test_credentials_path_defaults_to_home_config(monkeypatch):
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    assert default_credentials_path() == Path.home() / ".config" / "bbagent" / "credentials.yml"
