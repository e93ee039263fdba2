"""CLI adapter for ``lib_typed_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect which options a configuration dataclass exposes (flag
names, environment variable names, defaults) and preview how the layered
sources resolve, without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_options` – lists the options of a dataclass as JSON.
* :func:`cli_resolve` – runs :func:`lib_typed_config.core.load` and prints the
  resolved dataclass as JSON (optionally with provenance).
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It invokes the composition root and the
inspector and never reaches into adapter internals beyond naming helpers.
``lib_cli_exit_tools`` centralises the exit code strategy.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
import sys
from datetime import timedelta
from importlib import metadata
from pathlib import Path
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import env_var_name
from .application.inspector import inspect_structure
from .core import load
from .domain.duration import format_duration
from .domain.option import Option
from .domain.settings import LoadSettings

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000


def _resolve_version() -> str:
    """Return the installed package version with sensible fallbacks.

    Returns
    -------
    str
        Distribution version if available, otherwise ``"0.0.0"``.
    """

    try:
        return metadata.version("lib_typed_config")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Typed layered configuration inspector",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_typed_config",
    message="lib_typed_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_typed_config")
    except metadata.PackageNotFoundError:
        click.echo("lib_typed_config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_typed_config')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("options", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("target")
@click.option("--env-prefix", default="", help="Prefix prepended to environment variable names")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
def cli_options(target: str, env_prefix: str, indent: Optional[int]) -> None:
    """List the options of the dataclass TARGET (``module:ClassName``) as JSON."""

    tree = inspect_structure(_instantiate(target))
    rows = [_describe(leaf, env_prefix) for leaf in tree.leaves]
    click.echo(json.dumps(rows, indent=indent, separators=(",", ":")))


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("target")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--file",
    "file_path",
    type=click.Path(path_type=Path, file_okay=True, dir_okay=False),
    default=None,
    help="Config file read when no path is supplied through the config file variable",
)
@click.option("--config-file-variable", default=None, help="Option id that carries the config file path")
@click.option("--env-prefix", default="", help="Prefix prepended to environment variable names")
@click.option("--skip-file", is_flag=True, default=False, help="Do not read a config file")
@click.option("--skip-env", is_flag=True, default=False, help="Ignore environment variables")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the source of each resolved option in the output",
)
def cli_resolve(
    target: str,
    args: Sequence[str],
    file_path: Optional[Path],
    config_file_variable: Optional[str],
    env_prefix: str,
    skip_file: bool,
    skip_env: bool,
    indent: Optional[int],
    provenance: bool,
) -> None:
    """Resolve the dataclass TARGET and print the result as JSON.

    Flags meant for TARGET follow a ``--`` separator, for example
    ``resolve app.settings:Settings -- --port 9090``.
    """

    instance = _instantiate(target)
    settings = LoadSettings(
        config_file_variable=config_file_variable,
        file_disable=skip_file,
        file_default_filename=str(file_path) if file_path is not None else None,
        env_disable=skip_env,
        env_prefix=env_prefix,
    )
    meta = load(instance, settings, argv=list(args), prog_name=target)
    payload: Any = _to_jsonable(dataclasses.asdict(instance))
    if provenance:
        payload = {"config": payload, "provenance": meta}
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":")))


def _instantiate(target: str) -> object:
    """Import ``module:ClassName`` and construct the dataclass without arguments."""

    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise click.BadParameter("expected module:ClassName", param_hint="TARGET")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_name}: {exc}", param_hint="TARGET") from exc
    factory = getattr(module, attribute, None)
    if not (isinstance(factory, type) and dataclasses.is_dataclass(factory)):
        raise click.BadParameter(f"{target} is not a dataclass", param_hint="TARGET")
    return factory()


def _describe(leaf: Option, env_prefix: str) -> dict[str, Any]:
    return {
        "id": leaf.full_id,
        "type": leaf.type_name,
        "flag": f"--{leaf.full_id}",
        "short": f"-{leaf.shorthand}" if leaf.shorthand else None,
        "env": env_var_name(leaf, env_prefix),
        "default": leaf.default_literal,
        "description": leaf.description,
    }


def _to_jsonable(value: Any) -> Any:
    """Convert resolved values into JSON-friendly primitives.

    Examples
    --------
    >>> _to_jsonable({"timeout": timedelta(seconds=90), "paths": (Path("a"),)})
    {'timeout': '1m30s', 'paths': ['a']}
    """

    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, Path):
        return str(value)
    return value


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_typed_config",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
