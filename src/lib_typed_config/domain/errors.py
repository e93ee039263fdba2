"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the inspector, the source adapters,
the composition root, and consuming applications. The hierarchy lives in the
domain layer so every outer layer may depend on it without creating cycles.

Contents
--------
* :class:`StructureError` – the configuration dataclass itself is malformed.
  This is a programming error and intentionally sits *outside*
  :class:`ConfigError`.
* :class:`ConfigError` – umbrella base class for runtime resolution failures.
* :class:`InvalidFormat` – parsing problems while decoding file content.
* :class:`NotFound` – an expected configuration file is missing.
* :class:`ResolutionError` – a value for a specific option could not be used.
* :class:`CoercionError` – a raw value does not convert to the declared type.
* :class:`FlagError` – command-line arguments could not be parsed.

System Role
-----------
Callers catch :class:`ConfigError` to handle bad runtime input uniformly and
let :class:`StructureError` stop program startup loudly.
"""

from __future__ import annotations


class StructureError(Exception):
    """Raised when the configuration structure cannot be turned into options.

    Why
    ----
    A malformed dataclass (unsupported field type, duplicate ids, unparsable
    default literal, ...) is a bug in the calling program, not bad user input.
    Keeping it outside :class:`ConfigError` means ``except ConfigError`` never
    hides it.

    Attributes
    ----------
    path:
        Dotted field path the problem was found at, or ``None`` when the
        problem concerns the structure as a whole.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class ConfigError(Exception):
    """Base type for all runtime failures emitted by ``lib_typed_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class InvalidFormat(ConfigError):
    """Raised when file content cannot be decoded into a mapping.

    Typical Sources
    ---------------
    The structured decoders (:mod:`yaml`, :mod:`tomllib`, :mod:`json`) and
    user-supplied decoder functions.
    """


class NotFound(ConfigError):
    """Represents a configuration file that does not exist.

    The composition root treats this as non-fatal for the default filename and
    fatal for a path the user asked for explicitly.
    """


class ResolutionError(ConfigError):
    """A value supplied for a specific option could not be applied.

    Attributes
    ----------
    full_id:
        Dotted identifier of the offending option.
    raw:
        The value exactly as the source supplied it.
    """

    def __init__(self, message: str, *, full_id: str, raw: object) -> None:
        self.full_id = full_id
        self.raw = raw
        super().__init__(message)


class CoercionError(ResolutionError):
    """A raw value could not be converted to the option's declared type.

    Examples
    --------
    >>> err = CoercionError("port", "abc", expected="int", source="env", reason="not an integer")
    >>> str(err)
    "invalid value 'abc' for option port (int) from env: not an integer"
    >>> str(CoercionError("ports", "x", expected="list[int]", source="flag", index=1, reason="not an integer"))
    "invalid value 'x' at index 1 for option ports (list[int]) from flag: not an integer"
    """

    def __init__(
        self,
        full_id: str,
        raw: object,
        *,
        expected: str,
        source: str,
        reason: str,
        index: int | None = None,
    ) -> None:
        self.expected = expected
        self.source = source
        self.index = index
        self.reason = reason
        position = f" at index {index}" if index is not None else ""
        message = f"invalid value {raw!r}{position} for option {full_id} ({expected}) from {source}: {reason}"
        super().__init__(message, full_id=full_id, raw=raw)


class FlagError(ConfigError):
    """Command-line arguments could not be parsed (unknown flag, missing value)."""
