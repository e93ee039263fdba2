"""Duration literals for :class:`datetime.timedelta` options.

Durations are written as a signed sequence of ``<number><unit>`` components,
for example ``1h30m``, ``250ms`` or ``-1.5s``. The bare literal ``0`` is also
accepted. Values are held by :class:`~datetime.timedelta`, so anything finer
than a microsecond is rounded.
"""

from __future__ import annotations

import re
from datetime import timedelta
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Final

# Alternation order matters: two-letter units must be tried before ``s``/``m``.
_COMPONENT: Final = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

_UNIT_MICROSECONDS: Final[dict[str, Decimal]] = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}


def parse_duration(text: str) -> timedelta:
    """Parse a duration literal into a :class:`timedelta`.

    Raises
    ------
    ValueError
        When *text* is not a valid duration literal.

    Examples
    --------
    >>> parse_duration("1h30m")
    datetime.timedelta(seconds=5400)
    >>> parse_duration("250ms")
    datetime.timedelta(microseconds=250000)
    >>> parse_duration("-1.5s")
    datetime.timedelta(days=-1, seconds=86398, microseconds=500000)
    >>> parse_duration("0")
    datetime.timedelta(0)
    """

    literal = text.strip()
    negative = literal.startswith("-")
    if literal[:1] in ("-", "+"):
        literal = literal[1:]
    if literal == "0":
        return timedelta(0)
    if not literal:
        raise ValueError(f"invalid duration {text!r}")

    total = Decimal(0)
    position = 0
    while position < len(literal):
        match = _COMPONENT.match(literal, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        try:
            total += Decimal(number) * _UNIT_MICROSECONDS[unit]
        except InvalidOperation as exc:
            raise ValueError(f"invalid duration {text!r}") from exc
        position = match.end()

    micros = int(total.to_integral_value(rounding=ROUND_HALF_EVEN))
    try:
        return timedelta(microseconds=-micros if negative else micros)
    except OverflowError:
        raise ValueError(f"duration {text!r} out of range") from None


def format_duration(value: timedelta) -> str:
    """Render *value* as a literal accepted by :func:`parse_duration`.

    Examples
    --------
    >>> format_duration(timedelta(hours=1, minutes=30))
    '1h30m0s'
    >>> format_duration(timedelta(milliseconds=1500))
    '1.5s'
    >>> format_duration(timedelta(0))
    '0s'
    >>> format_duration(-timedelta(seconds=2))
    '-2s'
    """

    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    hours, micros = divmod(micros, 3_600_000_000)
    minutes, micros = divmod(micros, 60_000_000)
    seconds, micros = divmod(micros, 1_000_000)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if hours or minutes:
        parts.append(f"{minutes}m")
    fraction = f".{micros:06d}".rstrip("0") if micros else ""
    parts.append(f"{seconds}{fraction}s")
    return sign + "".join(parts)
