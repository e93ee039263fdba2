"""Structured configuration file decoders.

Purpose
-------
Convert raw file content into Python mappings that the file source walks.
Decoders are small wrappers around ``yaml.safe_load``/``tomllib``/``json`` so
error handling and observability live in one place.

Contents
--------
* :func:`decode_yaml` / :func:`decode_toml` / :func:`decode_json` – the
  built-in decoders (``bytes`` → mapping).
* :data:`DECODERS_BY_SUFFIX` – decoder guessed from a file extension.
* :data:`FALLBACK_DECODERS` – order tried when the format cannot be guessed.
* :func:`guess_decoder` / :func:`decode_with_fallback` – decoder selection.
* :func:`read_file` – read a file's bytes, raising :class:`NotFound`.

System Role
-----------
Invoked by :func:`lib_typed_config.core._read_config_file` and the raw-file
entry points before the decoded mapping is wrapped in a
:class:`~lib_typed_config.adapters.file.default.FileSource`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Final, Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from ...domain.errors import InvalidFormat, NotFound
from ...domain.settings import FileDecoder
from ...observability import log_debug, log_error


def read_file(path: str) -> bytes:
    """Read *path* as bytes, raising :class:`NotFound` when the file is missing.

    The handle is closed as soon as the content is read, before any decoding.

    Raises
    ------
    NotFound
        When *path* does not name an existing file.
    OSError
        When the file exists but cannot be read.

    Examples
    --------
    >>> from tempfile import NamedTemporaryFile
    >>> tmp = NamedTemporaryFile(delete=False)
    >>> _ = tmp.write(b"key = 'value'")
    >>> tmp.close()
    >>> read_file(tmp.name)[:3]
    b'key'
    >>> Path(tmp.name).unlink()
    """

    file_path = Path(path)
    if not file_path.is_file():
        raise NotFound(f"Configuration file not found: {path}")
    with file_path.open("rb") as handle:
        payload = handle.read()
    log_debug("config_file_read", source="file", path=path, size=len(payload))
    return payload


def _ensure_mapping(data: object, *, fmt: str) -> Mapping[str, object]:
    """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

    Examples
    --------
    >>> _ensure_mapping({"key": 1}, fmt="json")
    {'key': 1}
    >>> _ensure_mapping(42, fmt="json")
    Traceback (most recent call last):
    ...
    lib_typed_config.domain.errors.InvalidFormat: json document did not produce a mapping
    """

    if not isinstance(data, Mapping):
        raise InvalidFormat(f"{fmt} document did not produce a mapping")
    return data


def decode_toml(content: bytes) -> Mapping[str, object]:
    """Decode TOML *content*.

    Examples
    --------
    >>> decode_toml(b'[db]\\nport = 5432\\n')
    {'db': {'port': 5432}}
    """

    try:
        data = tomllib.loads(content.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise InvalidFormat(f"Invalid TOML: {exc}") from exc
    return _ensure_mapping(data, fmt="toml")


def decode_json(content: bytes) -> Mapping[str, object]:
    """Decode JSON *content*.

    Examples
    --------
    >>> decode_json(b'{"enabled": true}')
    {'enabled': True}
    """

    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidFormat(f"Invalid JSON: {exc}") from exc
    return _ensure_mapping(data, fmt="json")


def decode_yaml(content: bytes) -> Mapping[str, object]:
    """Decode YAML *content*; an empty document yields an empty mapping.

    Examples
    --------
    >>> decode_yaml(b"db:\\n  host: x\\n")
    {'db': {'host': 'x'}}
    >>> decode_yaml(b"# nothing here\\n")
    {}
    """

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise InvalidFormat(f"Invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    return _ensure_mapping(data, fmt="yaml")


DECODERS_BY_SUFFIX: Final[dict[str, FileDecoder]] = {
    ".yaml": decode_yaml,
    ".yml": decode_yaml,
    ".toml": decode_toml,
    ".json": decode_json,
}

FALLBACK_DECODERS: Final[tuple[tuple[str, FileDecoder], ...]] = (
    ("yaml", decode_yaml),
    ("toml", decode_toml),
    ("json", decode_json),
)


def guess_decoder(path: str) -> FileDecoder | None:
    """Return the decoder matching the extension of *path*, if any.

    Examples
    --------
    >>> guess_decoder("settings.YML") is decode_yaml
    True
    >>> guess_decoder("settings.conf") is None
    True
    """

    return DECODERS_BY_SUFFIX.get(Path(path).suffix.lower())


def decode(content: bytes, decoder: FileDecoder) -> Mapping[str, object]:
    """Run a single *decoder*, normalising ``ValueError`` into ``InvalidFormat``.

    User-supplied decoders may signal bad input with either exception. The
    failure is logged as ``config_file_invalid``.
    """

    fmt = _decoder_name(decoder)
    try:
        return _run_decoder(content, decoder, fmt)
    except InvalidFormat as exc:
        log_error("config_file_invalid", source="file", format=fmt, error=str(exc))
        raise


def _decoder_name(decoder: FileDecoder) -> str:
    return getattr(decoder, "__name__", "custom").removeprefix("decode_")


def _run_decoder(content: bytes, decoder: FileDecoder, fmt: str) -> Mapping[str, object]:
    try:
        return _ensure_mapping(decoder(content), fmt=fmt)
    except InvalidFormat:
        raise
    except ValueError as exc:
        raise InvalidFormat(str(exc)) from exc


def decode_with_fallback(content: bytes) -> Mapping[str, object]:
    """Try every decoder in :data:`FALLBACK_DECODERS` until one succeeds.

    Rejections are logged at debug level; only the final failure is logged
    as ``config_file_invalid``.

    Raises
    ------
    InvalidFormat
        When no decoder accepts *content*; the message carries the last
        decoder's error.

    Examples
    --------
    >>> decode_with_fallback(b'port = 8080')
    {'port': 8080}
    """

    last_error: InvalidFormat | None = None
    for fmt, decoder in FALLBACK_DECODERS:
        try:
            data = _run_decoder(content, decoder, fmt)
        except InvalidFormat as exc:
            log_debug("config_decoder_rejected", source="file", format=fmt, error=str(exc))
            last_error = exc
            continue
        log_debug("config_decoder_selected", source="file", format=fmt)
        return data
    message = f"no decoder accepted the content, last error: {last_error}"
    log_error("config_file_invalid", source="file", format="fallback", error=message)
    raise InvalidFormat(message) from last_error
