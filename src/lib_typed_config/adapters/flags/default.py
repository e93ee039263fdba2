"""Command-line flag adapter built on ``click``.

Purpose
-------
Register one flag per leaf option, parse the process arguments once, and
report only the flags the user actually typed. Flags that were left alone
never clobber values resolved from the file or the environment.

Contents
--------
* :data:`CONFIG_FILE_PARAM` – reserved parameter name of the config file flag.
* :data:`HELP_FLAGS` – flags that print the help listing.
* :class:`FlagSource` – the :class:`~lib_typed_config.application.ports.Source`
  implementation.
* :func:`_make_param` – build the ``click.Option`` for one leaf.

System Role
-----------
The composition root consults :meth:`FlagSource.lookup_config_file` while
locating the config file, then applies the source last.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Final, Sequence

import click
from click.core import ParameterSource

from ...application.ports import Lookup
from ...domain.coercion import parse_literal, split_sequence
from ...domain.errors import FlagError, StructureError
from ...domain.option import Option, OptionKind, OptionTree
from ...domain.settings import LoadSettings
from ...observability import log_debug, log_error, log_info

CONFIG_FILE_PARAM: Final[str] = "config_file_path__"
HELP_FLAGS: Final[tuple[str, ...]] = ("-h", "--help")


def _default_prog_name() -> str:
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "app"


class FlagSource:
    """Look option values up in command-line flags.

    Parsing happens lazily on the first lookup and only once, so the config
    file flag can be read before the file is parsed while every other flag is
    applied last.
    """

    name = "flag"
    path = None

    def __init__(
        self,
        tree: OptionTree,
        *,
        settings: LoadSettings,
        argv: Sequence[str] | None = None,
        prog_name: str | None = None,
        config_file_option: Option | None = None,
    ) -> None:
        """Register the flags for every leaf of *tree*.

        Parameters
        ----------
        argv:
            Arguments to parse. Defaults to ``sys.argv[1:]``.
        prog_name:
            Program name shown in the help header. Defaults to the basename of
            ``sys.argv[0]``.
        config_file_option:
            Leaf holding the config file path; registered under
            :data:`CONFIG_FILE_PARAM`.

        Raises
        ------
        StructureError
            When a leaf collides with the help flags.
        """

        self._settings = settings
        self._argv = list(sys.argv[1:] if argv is None else argv)
        self.prog_name = prog_name or _default_prog_name()
        self._config_file_option = config_file_option
        self._param_names: dict[str, str] = {}
        self._switches: dict[str, str] = {}
        self._context: click.Context | None = None
        self._command = self._build_command(tree)

    def key_for(self, option: Option) -> str:
        return f"--{option.full_id}"

    def lookup(self, option: Option) -> Lookup:
        name = self._param_names.get(option.full_id)
        if name is None:
            return Lookup.ABSENT
        return self._lookup_param(name, option)

    def lookup_config_file(self) -> Lookup:
        """Return the config file path flag, if the user supplied one."""

        if self._config_file_option is None:
            return Lookup.ABSENT
        return self._lookup_param(CONFIG_FILE_PARAM, self._config_file_option)

    @property
    def extra_args(self) -> list[str]:
        """Positional arguments left over after flag parsing."""

        return list(self._parsed().args)

    def render_help(self, ctx: click.Context) -> str:
        """Return the help header followed by one entry per flag."""

        header = self._settings.help_message or f"Usage of {self.prog_name}:"
        records = []
        for param in ctx.command.get_params(ctx):
            record = param.get_help_record(ctx)
            if record is not None:
                records.append(record)
        formatter = ctx.make_formatter()
        formatter.write(f"{header}\n")
        if records:
            with formatter.indentation():
                formatter.write_dl(records)
        return formatter.getvalue().rstrip("\n")

    def _lookup_param(self, name: str, option: Option) -> Lookup:
        ctx = self._parsed()
        if ctx.get_parameter_source(name) is not ParameterSource.COMMANDLINE:
            return Lookup.ABSENT
        value: Any = ctx.params[name]
        if option.kind is OptionKind.SEQUENCE:
            value = [part for item in value for part in split_sequence(item)]
        return Lookup.of(value, key=self.key_for(option))

    def _parsed(self) -> click.Context:
        if self._context is None:
            argv = self._expand_switch_values(self._argv)
            try:
                self._context = self._command.make_context(self.prog_name, argv)
            except click.exceptions.Exit as exc:
                log_info("help_requested", source=self.name, path=None)
                raise SystemExit(exc.exit_code) from None
            except click.ClickException as exc:
                log_error("flags_invalid", source=self.name, path=None, error=exc.format_message())
                raise FlagError(exc.format_message()) from exc
            log_debug("flags_parsed", source=self.name, path=None, extra_args=len(self._context.args))
        return self._context

    def _expand_switch_values(self, argv: Sequence[str]) -> list[str]:
        """Rewrite ``--flag=<bool>`` into ``--flag`` or ``--no-flag``.

        Tokens after a ``--`` terminator are left alone.

        Raises
        ------
        FlagError
            When the value is not a boolean literal.
        """

        expanded: list[str] = []
        for position, token in enumerate(argv):
            if token == "--":
                expanded.extend(argv[position:])
                break
            name, separator, literal = token.partition("=")
            full_id = self._switches.get(name) if separator else None
            if full_id is None:
                expanded.append(token)
                continue
            try:
                enabled = parse_literal(bool, literal)
            except ValueError:
                message = f"Invalid value for '{name}': {literal!r} is not a valid boolean."
                log_error("flags_invalid", source=self.name, path=None, error=message)
                raise FlagError(message) from None
            expanded.append(f"--{full_id}" if enabled else f"--no-{full_id}")
        return expanded

    def _build_command(self, tree: OptionTree) -> click.Command:
        params: list[click.Parameter] = []
        for index, leaf in enumerate(tree.leaves):
            name = CONFIG_FILE_PARAM if leaf is self._config_file_option else f"option_{index}"
            self._param_names[leaf.full_id] = name
            if leaf.kind is OptionKind.SCALAR and leaf.value_type is bool:
                self._switches[f"--{leaf.full_id}"] = leaf.full_id
                if leaf.shorthand:
                    self._switches[f"-{leaf.shorthand}"] = leaf.full_id
            params.append(_make_param(leaf, name))
        if not self._settings.help_disable:
            _ensure_help_available(tree)
            params.append(
                click.Option(
                    list(HELP_FLAGS),
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    help=self._settings.help_description,
                    callback=self._print_help,
                )
            )
        return click.Command(
            self.prog_name,
            params=params,
            add_help_option=False,
            context_settings={"allow_extra_args": True},
        )

    def _print_help(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(self.render_help(ctx))
        ctx.exit(0)


def _make_param(option: Option, name: str) -> click.Option:
    """Build the ``click.Option`` for *option*, registered under *name*.

    Booleans become ``--x/--no-x`` switches (``--x=<bool>`` is rewritten to
    one of them before parsing); sequences are repeatable. Values
    are kept as strings so :func:`~lib_typed_config.domain.coercion.coerce`
    performs the conversion for flags exactly as for the other sources.
    """

    long_flag = f"--{option.full_id}"
    short = [f"-{option.shorthand}"] if option.shorthand else []
    if option.kind is OptionKind.SCALAR and option.value_type is bool:
        return click.Option(
            [f"{long_flag}/--no-{option.full_id}", *short, name],
            default=option.default_value if option.has_default else False,
            show_default=option.has_default,
            help=option.description,
        )

    multiple = option.kind is OptionKind.SEQUENCE
    default: Any = None
    if option.has_default:
        default = (option.default_literal,) if multiple else option.default_literal
    return click.Option(
        [long_flag, *short, name],
        type=click.STRING,
        multiple=multiple,
        default=default,
        show_default=option.has_default,
        metavar=option.type_name,
        help=option.description,
    )


def _ensure_help_available(tree: OptionTree) -> None:
    for leaf in tree.leaves:
        if leaf.full_id == "help" or leaf.shorthand == "h":
            raise StructureError("collides with the help flag; set help_disable to use it", path=leaf.full_id)
