"""Conversion of raw source values into an option's declared type.

Purpose
-------
Provide the single routine every source goes through, so a value behaves the
same whether it came from a default literal, a decoded file, an environment
variable or a flag.

Contents
--------
* :data:`SEQUENCE_DELIMITER` – separator for sequence literals.
* :func:`split_sequence` – split a sequence literal into element literals.
* :func:`parse_literal` – parse a string into a scalar type.
* :func:`coerce` – convert a raw value for an :class:`Option`, raising
  :class:`CoercionError` with the option, literal and element index.

System Role
-----------
Used by the inspector for default literals and by
:func:`lib_typed_config.application.merge.apply_source` for every source.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Final, Sequence

from .duration import parse_duration
from .errors import CoercionError
from .option import Option, OptionKind

SEQUENCE_DELIMITER: Final[str] = ","

_TRUE_LITERALS: Final = frozenset({"1", "t", "true"})
_FALSE_LITERALS: Final = frozenset({"0", "f", "false"})


def split_sequence(text: str) -> list[str]:
    """Split a sequence literal on :data:`SEQUENCE_DELIMITER`.

    Examples
    --------
    >>> split_sequence("a, b,c")
    ['a', 'b', 'c']
    >>> split_sequence("")
    []
    """

    if not text.strip():
        return []
    return [part.strip() for part in text.split(SEQUENCE_DELIMITER)]


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE_LITERALS:
        return True
    if lowered in _FALSE_LITERALS:
        return False
    raise ValueError("not a boolean")


def _parse_int(text: str) -> int:
    try:
        return int(text.strip(), 10)
    except ValueError:
        raise ValueError("not an integer") from None


def _parse_float(text: str) -> float:
    try:
        return float(text.strip())
    except ValueError:
        raise ValueError("not a number") from None


_PARSERS: Final[dict[type, Callable[[str], Any]]] = {
    bool: _parse_bool,
    int: _parse_int,
    float: _parse_float,
    str: str,
    timedelta: parse_duration,
    Path: Path,
}


def parse_literal(value_type: type, text: str) -> Any:
    """Parse *text* into *value_type*, raising :class:`ValueError` on failure.

    Examples
    --------
    >>> parse_literal(int, "8080")
    8080
    >>> parse_literal(bool, "TRUE")
    True
    """

    return _PARSERS[value_type](text)


def _convert_scalar(value_type: type, raw: object) -> Any:
    """Convert a scalar from any source; strings are parsed, native values checked."""

    if isinstance(raw, str):
        return parse_literal(value_type, raw)
    if value_type is bool:
        if isinstance(raw, bool):
            return raw
    elif value_type is int:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
    elif value_type is float:
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
    elif value_type is timedelta:
        if isinstance(raw, timedelta):
            return raw
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return timedelta(seconds=raw)
    elif value_type is Path:
        if isinstance(raw, Path):
            return raw
    raise ValueError(f"expected {value_type.__name__}, got {type(raw).__name__}")


def coerce(option: Option, raw: object, *, source: str) -> Any:
    """Convert *raw* into the type declared by *option*.

    Strings are parsed; sequence strings are split on
    :data:`SEQUENCE_DELIMITER` first. Decoded lists are converted element by
    element. The first failing element is reported with its index.

    Raises
    ------
    CoercionError
        When *raw* (or one of its elements) does not convert.
    """

    if option.kind is OptionKind.SCALAR:
        try:
            return _convert_scalar(option.value_type, raw)
        except (ValueError, OverflowError) as exc:
            raise CoercionError(
                option.full_id, raw, expected=option.type_name, source=source, reason=str(exc)
            ) from exc

    elements: Sequence[object]
    if isinstance(raw, str):
        elements = split_sequence(raw)
    elif isinstance(raw, (list, tuple)):
        elements = raw
    else:
        raise CoercionError(
            option.full_id,
            raw,
            expected=option.type_name,
            source=source,
            reason=f"expected a sequence, got {type(raw).__name__}",
        )

    converted = []
    for index, element in enumerate(elements):
        try:
            converted.append(_convert_scalar(option.value_type, element))
        except (ValueError, OverflowError) as exc:
            raise CoercionError(
                option.full_id, element, expected=option.type_name, source=source, reason=str(exc), index=index
            ) from exc
    container = option.container or list
    return container(converted)
