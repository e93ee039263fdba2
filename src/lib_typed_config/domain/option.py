"""Option model derived from configuration dataclass fields.

Purpose
-------
Represent every configurable field as an :class:`Option` so the source
adapters can compute the names they expect (environment variable, flag, file
key path) and the merge step can write resolved values back into the caller's
dataclass.

Contents
--------
* :class:`OptionKind` – scalar, sequence-of-scalar, or nested group.
* :class:`SourceInfo` – provenance of a resolved value.
* :class:`Option` – one field, with a weak link to its enclosing group.
* :class:`OptionTree` – top-level and flattened views over the same options.
* :data:`UNSET` – sentinel for options no stage has assigned yet.

System Role
-----------
Built by :func:`lib_typed_config.application.inspector.inspect_structure`,
consumed read-only by the adapters and mutated only through
:meth:`Option.assign`.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Final, Iterator, TypedDict

from .errors import StructureError

SCALAR_TYPES: Final[tuple[type, ...]] = (bool, int, float, str, timedelta, Path)

_TYPE_NAMES: Final[dict[type, str]] = {
    bool: "bool",
    int: "int",
    float: "float",
    str: "string",
    timedelta: "duration",
    Path: "path",
}


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()


class OptionKind(str, Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    GROUP = "group"


class SourceInfo(TypedDict):
    """Describe where the current value of an option came from.

    Attributes
    ----------
    source:
        ``"default"``, ``"file"``, ``"env"`` or ``"flag"``.
    path:
        Config file path for file values, ``None`` otherwise.
    key:
        Name the value was found under in that source (``db.host``,
        ``APP_DB_HOST``, ``--db.host``).
    """

    source: str
    path: str | None
    key: str


@dataclass(eq=False)
class Option:
    """One configurable field.

    ``owner`` is the dataclass instance that holds the field; assigning a value
    writes straight into it. Group options own their ``children`` while the
    children only keep a weak reference back to the group.
    """

    id: str
    field_name: str
    kind: OptionKind
    value_type: type
    owner: Any = field(repr=False)
    container: type | None = None
    shorthand: str | None = None
    description: str = ""
    default_literal: str | None = None
    default_value: Any = field(default=UNSET, repr=False)
    children: list[Option] = field(default_factory=list, repr=False)
    current_value: Any = field(default=UNSET, repr=False)
    origin: SourceInfo | None = field(default=None, repr=False)
    _parent: weakref.ref[Option] | None = field(default=None, repr=False)

    @property
    def parent(self) -> Option | None:
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, group: Option | None) -> None:
        self._parent = weakref.ref(group) if group is not None else None

    @property
    def path(self) -> tuple[str, ...]:
        """Ids from the root down to this option."""

        parent = self.parent
        return (*parent.path, self.id) if parent is not None else (self.id,)

    @property
    def full_id(self) -> str:
        """Dotted path from the root.

        Examples
        --------
        >>> db = Option("db", "db", OptionKind.GROUP, object, owner=None)
        >>> host = Option("host", "host", OptionKind.SCALAR, str, owner=None)
        >>> host.parent = db
        >>> host.full_id
        'db.host'
        """

        return ".".join(self.path)

    @property
    def is_leaf(self) -> bool:
        return self.kind is not OptionKind.GROUP

    @property
    def has_default(self) -> bool:
        return self.default_literal is not None

    @property
    def type_name(self) -> str:
        """Human readable type used in help output and error messages.

        Examples
        --------
        >>> Option("ports", "ports", OptionKind.SEQUENCE, int, owner=None, container=list).type_name
        'list[int]'
        >>> Option("timeout", "timeout", OptionKind.SCALAR, timedelta, owner=None).type_name
        'duration'
        """

        if self.kind is OptionKind.GROUP:
            return "group"
        base = _TYPE_NAMES[self.value_type]
        if self.kind is OptionKind.SEQUENCE:
            container = self.container or list
            return f"{container.__name__}[{base}]"
        return base

    def assign(self, value: Any, origin: SourceInfo) -> None:
        """Write *value* into the owning dataclass and remember where it came from."""

        if self.kind is OptionKind.GROUP:
            raise StructureError("group options have no assignable value", path=self.full_id)
        setattr(self.owner, self.field_name, value)
        self.current_value = value
        self.origin = origin

    def walk(self) -> Iterator[Option]:
        """Yield this option followed by all of its descendants, depth first."""

        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(eq=False)
class OptionTree:
    """The options of one configuration structure.

    ``options`` are the direct children of the root; ``leaves`` lists every
    assignable option transitively, in declaration order.
    """

    root_type: type
    options: list[Option]
    leaves: list[Option] = field(init=False)
    _index: dict[str, Option] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        every = [option for top in self.options for option in top.walk()]
        self.leaves = [option for option in every if option.is_leaf]
        self._index = {option.full_id: option for option in every}

    def find(self, full_id: str) -> Option | None:
        return self._index.get(full_id)

    def provenance(self) -> dict[str, SourceInfo]:
        """Return the origin of every leaf that received a value."""

        return {leaf.full_id: leaf.origin for leaf in self.leaves if leaf.origin is not None}
