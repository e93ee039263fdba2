"""Application-layer ports describing source adapter responsibilities.

Purpose
-------
Define the structural contract every configuration source satisfies so the
merge step can apply file, environment and flag values the same way.

Contents
--------
* :class:`Lookup` – result of asking a source for one option: either absent or
  carrying the raw value. Failures are raised, not returned.
* :class:`Source` – protocol implemented by the file, environment and flag
  adapters.

System Role
-----------
The adapters never import the merge step and the merge step never imports a
concrete adapter; both depend on this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Protocol, runtime_checkable

from ..domain.option import Option


@dataclass(frozen=True, slots=True)
class Lookup:
    """Outcome of looking an option up in a source.

    ``found`` distinguishes "no value supplied" from a supplied value that
    happens to be empty or falsy.

    Examples
    --------
    >>> Lookup.ABSENT.found
    False
    >>> Lookup.of("", key="NAME").raw
    ''
    """

    found: bool
    raw: object = None
    key: str = ""

    ABSENT: ClassVar[Lookup]

    @classmethod
    def of(cls, raw: object, *, key: str) -> Lookup:
        return cls(True, raw, key)


Lookup.ABSENT = Lookup(False)


@runtime_checkable
class Source(Protocol):
    """Supply raw values for options.

    Attributes
    ----------
    name:
        Provenance label (``"file"``, ``"env"``, ``"flag"``).
    path:
        Config file path for file sources, ``None`` otherwise.
    """

    name: str
    path: str | None

    def key_for(self, option: Option) -> str:
        """Return the name *option* is looked up under in this source."""

    def lookup(self, option: Option) -> Lookup:
        """Return the raw value supplied for *option*, or :data:`Lookup.ABSENT`."""
