"""End-to-end CLI coverage for the public commands exposed by lib_typed_config.

These tests exercise the documented CLI workflows (option listing, resolution
preview, metadata lookups) against a small settings module written to a
temporary directory. They double as regression tests for the README examples.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import lib_cli_exit_tools
import pytest
from click.testing import CliRunner

from lib_typed_config import ConfigError, cli

MODULE = "cli_demo_settings"
TARGET = f"{MODULE}:Settings"

SETTINGS_SOURCE = '''
from dataclasses import dataclass, field
from datetime import timedelta


@dataclass
class Database:
    host: str = field(default="", metadata={"default": "localhost", "desc": "database host"})
    timeout: timedelta = field(default=timedelta(0), metadata={"default": "5s"})


@dataclass
class Settings:
    config: str = ""
    port: int = field(default=0, metadata={"default": "8080", "short": "p", "desc": "listen port"})
    tags: list[str] = field(default_factory=list)
    db: Database = field(default_factory=Database)
'''


@pytest.fixture()
def settings_module(tmp_path: Path, monkeypatch) -> Path:
    """Write the demo settings module and make it importable."""

    (tmp_path / f"{MODULE}.py").write_text(SETTINGS_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, MODULE, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def test_cli_options_lists_every_leaf(settings_module: Path) -> None:
    """`cli options` should describe flags, env names and defaults for each leaf."""

    result = _runner().invoke(cli.cli, ["options", TARGET, "--env-prefix", "APP_"])
    assert result.exit_code == 0
    rows = {row["id"]: row for row in json.loads(result.output)}
    assert list(rows) == ["config", "port", "tags", "db.host", "db.timeout"]
    assert rows["port"] == {
        "id": "port",
        "type": "int",
        "flag": "--port",
        "short": "-p",
        "env": "APP_PORT",
        "default": "8080",
        "description": "listen port",
    }
    assert rows["tags"]["type"] == "list[string]"
    assert rows["db.timeout"]["env"] == "APP_DB_TIMEOUT"
    assert rows["db.timeout"]["default"] == "5s"


def test_cli_resolve_outputs_json(settings_module: Path) -> None:
    """`cli resolve` should emit the resolved dataclass respecting precedence."""

    (settings_module / "app.yaml").write_text("port: 9000\ndb:\n  host: file-host\n", encoding="utf-8")
    result = _runner().invoke(
        cli.cli,
        ["resolve", TARGET, "--file", "app.yaml", "--env-prefix", "APP_", "--", "--tags", "a,b"],
        env={"APP_PORT": "9001"},
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload == {
        "config": "",
        "port": 9001,
        "tags": ["a", "b"],
        "db": {"host": "file-host", "timeout": "5s"},
    }


def test_cli_resolve_with_provenance(settings_module: Path) -> None:
    """`cli resolve --provenance` should emit both config and provenance payloads."""

    (settings_module / "custom.toml").write_text("[db]\ntimeout = '1m30s'\n", encoding="utf-8")
    result = _runner().invoke(
        cli.cli,
        ["resolve", TARGET, "--config-file-variable", "config", "--provenance", "--", "--config", "custom.toml"],
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["config"]["db"]["timeout"] == "1m30s"
    meta = payload["provenance"]["db.timeout"]
    assert meta["source"] == "file"
    assert meta["path"].endswith("custom.toml")
    assert payload["provenance"]["port"]["source"] == "default"
    assert payload["provenance"]["config"] == {"source": "flag", "path": None, "key": "--config"}


def test_cli_resolve_skip_env(settings_module: Path) -> None:
    result = _runner().invoke(cli.cli, ["resolve", TARGET, "--skip-env"], env={"PORT": "1"})
    assert result.exit_code == 0
    assert json.loads(result.output)["port"] == 8080


def test_cli_resolve_forwards_help(settings_module: Path) -> None:
    """Help requested for the target lists its flags and exits cleanly."""

    result = _runner().invoke(cli.cli, ["resolve", TARGET, "--", "--help"])
    assert result.exit_code == 0
    assert f"Usage of {TARGET}:" in result.output
    assert "--db.host" in result.output


def test_cli_resolve_surfaces_config_errors(settings_module: Path) -> None:
    result = _runner().invoke(cli.cli, ["resolve", TARGET], env={"PORT": "eighty"})
    assert result.exit_code != 0
    assert isinstance(result.exception, ConfigError)


@pytest.mark.parametrize("target", ["no_colon", "missing_module_xyz:Settings", f"{MODULE}:json"])
def test_cli_rejects_bad_targets(settings_module: Path, target: str) -> None:
    result = _runner().invoke(cli.cli, ["options", target])
    assert result.exit_code == 2


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    """`cli info` must degrade gracefully when package metadata is unavailable."""

    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_main_restores_traceback_flag(settings_module: Path) -> None:
    """`cli main` should restore lib_cli_exit_tools tracebacks after execution."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    exit_code = cli.main(["--traceback", "options", TARGET], restore_traceback=True)
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback
