"""Composition root for ``lib_typed_config``.

Purpose
-------
Provide the entry points that orchestrate structure inspection, default
application, config file discovery and decoding, environment lookups and
flag parsing, in that fixed order.

Contents
--------
* :class:`FileLoadError` – error raised when a config file cannot be used.
* :func:`load` – discover the config file and apply every enabled source.
* :func:`load_with_raw_file` – same, with the file content supplied directly.
* :func:`load_raw_file` – file content only; environment and flags skipped.
* :func:`_locate_config_file` / :func:`_lookup_config_file_path` /
  :func:`_read_config_file` – file discovery helpers.

System Role
-----------
This module connects the inspector, the merge policy and the source adapters
while emitting structured observability signals. It is the canonical place
for adjusting the precedence order (defaults → file → env → flags).
"""

from __future__ import annotations

import dataclasses
import os
from typing import Mapping, Sequence

from .adapters.env.default import EnvSource
from .adapters.file.default import FileSource
from .adapters.file_loaders.structured import decode, decode_with_fallback, guess_decoder, read_file
from .adapters.flags.default import FlagSource
from .application.inspector import inspect_structure
from .application.merge import apply_defaults, apply_source
from .domain.errors import ConfigError, InvalidFormat, NotFound, StructureError
from .domain.option import OptionKind, OptionTree, SourceInfo
from .domain.settings import FileDecoder, LoadSettings
from .observability import bind_trace_id, log_debug, log_error, log_info, make_event


class FileLoadError(ConfigError):
    """Raised when a config file cannot be read or decoded.

    Why
    ----
    The composition root surfaces adapter failures through the domain error
    taxonomy so callers can catch a single exception family.

    Attributes
    ----------
    path:
        Absolute path of the offending file, ``None`` for raw content.
    """

    def __init__(self, message: str, *, path: str | None) -> None:
        self.path = path
        super().__init__(message)


def load(
    target: object,
    settings: LoadSettings | None = None,
    *,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    prog_name: str | None = None,
) -> dict[str, SourceInfo]:
    """Populate the dataclass *target* from its defaults, file, environment and flags.

    Why
    ----
    Applications want one call that turns a typed configuration dataclass
    into a fully resolved one, with a predictable precedence order.

    What
    ----
    Inspects *target*, assigns declared defaults, locates and decodes the
    config file, then applies environment variables and flags. Each stage only
    overwrites the options it actually supplied.

    Parameters
    ----------
    target:
        Mutable dataclass instance that receives the resolved values.
    settings:
        Engine behaviour; defaults to :class:`LoadSettings()`.
    argv:
        Flag arguments. Defaults to ``sys.argv[1:]``.
    environ:
        Environment mapping. Defaults to :data:`os.environ`.
    prog_name:
        Program name shown in the help header.

    Returns
    -------
    dict[str, SourceInfo]
        Provenance of every option that received a value.

    Raises
    ------
    StructureError
        When *target* is malformed (a bug in the caller).
    ConfigError
        When a source supplied an unusable value or the config file cannot be
        used. *target* must then be considered untrustworthy.
    SystemExit
        With code ``0`` after printing the help listing.

    Side Effects
    ------------
    Clears the trace identifier and emits structured log events.

    Examples
    --------
    >>> from dataclasses import dataclass, field
    >>> @dataclass
    ... class Server:
    ...     port: int = field(default=0, metadata={"default": "8080"})
    >>> server = Server()
    >>> meta = load(server, argv=["--port=9090"], environ={})
    >>> server.port, meta["port"]["source"]
    (9090, 'flag')
    """

    settings = settings or LoadSettings()
    bind_trace_id(None)
    tree, flags, env = _prepare(target, settings, argv, environ, prog_name)

    if not settings.file_disable:
        path, custom = _locate_config_file(tree, settings, flags, env)
        if path is not None:
            data = _read_config_file(path, custom=custom, decoder=settings.file_decoder)
            if data is not None:
                apply_source(tree, FileSource(data, path=path))

    return _finish(tree, env, flags)


def load_with_raw_file(
    target: object,
    content: bytes,
    settings: LoadSettings | None = None,
    *,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    prog_name: str | None = None,
) -> dict[str, SourceInfo]:
    """Populate *target* using *content* as the config file.

    File discovery is bypassed; the environment and flags are still applied
    unless disabled in *settings*. The decoder is ``settings.file_decoder``
    or, without one, each built-in decoder in fallback order.

    Raises
    ------
    StructureError
        When ``settings.file_disable`` is set.
    """

    settings = settings or LoadSettings()
    if settings.file_disable:
        raise StructureError("cannot load raw file content with the file source disabled")
    bind_trace_id(None)
    tree, flags, env = _prepare(target, settings, argv, environ, prog_name)

    try:
        data = _decode(content, settings.file_decoder)
    except InvalidFormat as exc:
        raise FileLoadError(f"Failed to decode config file content: {exc}", path=None) from exc
    apply_source(tree, FileSource(data))

    return _finish(tree, env, flags)


def load_raw_file(
    target: object,
    content: bytes,
    settings: LoadSettings | None = None,
) -> dict[str, SourceInfo]:
    """Populate *target* from defaults and *content* only.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Db:
    ...     host: str = ""
    >>> db = Db()
    >>> _ = load_raw_file(db, b"host: x\\n")
    >>> db.host
    'x'
    """

    settings = dataclasses.replace(settings or LoadSettings(), env_disable=True, flag_disable=True)
    return load_with_raw_file(target, content, settings)


def _prepare(
    target: object,
    settings: LoadSettings,
    argv: Sequence[str] | None,
    environ: Mapping[str, str] | None,
    prog_name: str | None,
) -> tuple[OptionTree, FlagSource | None, EnvSource | None]:
    """Inspect *target*, apply defaults and build the environment and flag sources."""

    tree = inspect_structure(target)
    log_info("resolution_started", root=tree.root_type.__name__, leaves=len(tree.leaves))
    apply_defaults(tree)

    config_file_option = None
    if settings.config_file_variable and not settings.file_disable:
        config_file_option = tree.find(settings.config_file_variable)
        if config_file_option is None:
            raise StructureError(
                f"config file variable {settings.config_file_variable!r} is not declared in "
                f"{tree.root_type.__name__}"
            )
        if config_file_option.kind is not OptionKind.SCALAR:
            raise StructureError("config file variable must be a scalar option", path=config_file_option.full_id)

    env = None if settings.env_disable else EnvSource(prefix=settings.env_prefix, environ=environ)
    flags = None
    if not settings.flag_disable:
        flags = FlagSource(
            tree,
            settings=settings,
            argv=argv,
            prog_name=prog_name,
            config_file_option=config_file_option,
        )
    return tree, flags, env


def _finish(tree: OptionTree, env: EnvSource | None, flags: FlagSource | None) -> dict[str, SourceInfo]:
    """Apply the environment then the flags and report provenance."""

    if env is not None:
        apply_source(tree, env)
    if flags is not None:
        apply_source(tree, flags)
    provenance = tree.provenance()
    log_info("resolution_complete", root=tree.root_type.__name__, resolved=len(provenance))
    return provenance


def _locate_config_file(
    tree: OptionTree,
    settings: LoadSettings,
    flags: FlagSource | None,
    env: EnvSource | None,
) -> tuple[str | None, bool]:
    """Return ``(absolute_path, custom)`` for the config file, or ``(None, False)``.

    A user-supplied path wins over ``settings.file_default_filename``.
    """

    custom_path = _lookup_config_file_path(tree, settings, flags, env)
    if custom_path:
        path = os.path.abspath(custom_path)
        log_debug("config_file_located", **make_event("file", path, {"custom": True}))
        return path, True
    if settings.file_default_filename:
        path = os.path.abspath(settings.file_default_filename)
        log_debug("config_file_located", **make_event("file", path, {"custom": False}))
        return path, False
    return None, False


def _lookup_config_file_path(
    tree: OptionTree,
    settings: LoadSettings,
    flags: FlagSource | None,
    env: EnvSource | None,
) -> str | None:
    """Find a user-supplied config file path.

    This is the one place where flags outrank the environment *before* the
    file is parsed: the path has to be known before any regular option is
    resolved. Regular options still get flags applied last.
    """

    if not settings.config_file_variable:
        return None
    option = tree.find(settings.config_file_variable)
    if option is None:  # pragma: no cover - rejected in _prepare
        return None
    if flags is not None:
        lookup = flags.lookup_config_file()
        if lookup.found and lookup.raw:
            return str(lookup.raw)
    if env is not None:
        lookup = env.lookup(option)
        if lookup.found and lookup.raw:
            return str(lookup.raw)
    return None


def _read_config_file(path: str, *, custom: bool, decoder: FileDecoder | None) -> Mapping[str, object] | None:
    """Read and decode *path*; ``None`` when the default file is simply missing.

    Raises
    ------
    FileLoadError
        When a custom file is missing, or any file cannot be read or decoded.
    """

    try:
        content = read_file(path)
    except NotFound as exc:
        if not custom:
            log_debug("config_file_missing", **make_event("file", path))
            return None
        log_error("config_file_missing", **make_event("file", path))
        raise FileLoadError(f"Config file {path} does not exist", path=path) from exc
    except OSError as exc:
        log_error("config_file_unreadable", **make_event("file", path, {"error": str(exc)}))
        raise FileLoadError(f"Failed to read config file {path}: {exc}", path=path) from exc

    try:
        return _decode(content, decoder or guess_decoder(path))
    except InvalidFormat as exc:
        raise FileLoadError(f"Failed to decode config file {path}: {exc}", path=path) from exc


def _decode(content: bytes, decoder: FileDecoder | None) -> Mapping[str, object]:
    if decoder is None:
        return decode_with_fallback(content)
    return decode(content, decoder)


__all__ = [
    "FileLoadError",
    "load",
    "load_raw_file",
    "load_with_raw_file",
]
