"""Turn a configuration dataclass into an :class:`OptionTree`.

Purpose
-------
Enumerate the public fields of a (possibly nested) dataclass instance, derive
each option's id, type, default, shorthand and description, and reject
anything the engine cannot resolve before a single source is consulted.

Contents
--------
* :data:`METADATA_KEYS` – recognised ``dataclasses.field(metadata=...)`` keys.
* :func:`inspect_structure` – public entry point.
* :func:`_inspect_record` / :func:`_build_option` / :func:`_classify` – the
  recursive walk and the annotation classifier.

System Role
-----------
First step of every :mod:`lib_typed_config.core` entry point. Everything it
raises is a :class:`StructureError`: a bug in the calling program.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import re
import types
from typing import Any, Final, Union, get_args, get_origin, get_type_hints

from ..domain.coercion import coerce
from ..domain.errors import CoercionError, StructureError
from ..domain.option import SCALAR_TYPES, Option, OptionKind, OptionTree
from ..observability import log_debug

METADATA_KEYS: Final[tuple[str, ...]] = ("id", "default", "short", "desc")

_VALID_ID: Final = re.compile(r"[A-Za-z0-9_-]+")
_SEQUENCE_ORIGINS: Final = (list, tuple, collections.abc.Sequence)


def inspect_structure(target: object) -> OptionTree:
    """Build the option tree for the dataclass instance *target*.

    Why
    ----
    Sources need names to look values up under, and the merge step needs a
    place to write them to. Deriving both once, up front, keeps every later
    stage free of type introspection.

    Parameters
    ----------
    target:
        Mutable dataclass instance. Nested dataclass fields must already hold
        an instance of their declared type.

    Returns
    -------
    OptionTree
        Top-level options plus the flattened list of leaves.

    Raises
    ------
    StructureError
        For unsupported field types, duplicate ids or shorthands, bad
        metadata and unparsable default literals.

    Side Effects
    ------------
    Emits a ``structure_inspected`` debug event. *target* is not modified.

    Examples
    --------
    >>> from dataclasses import dataclass, field
    >>> @dataclass
    ... class Demo:
    ...     port: int = field(default=0, metadata={"default": "8080", "short": "p"})
    >>> tree = inspect_structure(Demo())
    >>> [(leaf.full_id, leaf.default_value, leaf.shorthand) for leaf in tree.leaves]
    [('port', 8080, 'p')]
    """

    options = _inspect_record(target, None)
    tree = OptionTree(type(target), options)
    _ensure_unique_shorthands(tree)
    log_debug(
        "structure_inspected",
        root=type(target).__name__,
        options=len(tree.options),
        leaves=len(tree.leaves),
    )
    return tree


def _inspect_record(record: object, parent: Option | None) -> list[Option]:
    """Build the options for the fields of *record*, recursing into groups."""

    where = parent.full_id if parent is not None else None
    if isinstance(record, type) or not dataclasses.is_dataclass(record):
        raise StructureError(
            f"expected a dataclass instance, got {type(record).__name__}",
            path=where,
        )
    record_type = type(record)
    if record_type.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        raise StructureError(f"dataclass {record_type.__name__} is frozen and cannot be populated", path=where)
    try:
        hints = get_type_hints(record_type)
    except (NameError, TypeError) as exc:
        raise StructureError(f"cannot resolve annotations of {record_type.__name__}: {exc}", path=where) from exc

    options: list[Option] = []
    seen: dict[str, str] = {}
    for field in dataclasses.fields(record_type):
        if field.name.startswith("_"):
            continue
        option = _build_option(record, field, hints[field.name], parent)
        if option.id in seen:
            raise StructureError(
                f"duplicate id {option.id!r} (fields {seen[option.id]!r} and {field.name!r})",
                path=where,
            )
        seen[option.id] = field.name
        options.append(option)
    return options


def _build_option(
    record: object,
    field: dataclasses.Field[Any],
    annotation: Any,
    parent: Option | None,
) -> Option:
    """Create the option for one dataclass *field* of *record*."""

    metadata = field.metadata
    option_id = metadata.get("id", field.name.lower())
    where = f"{parent.full_id}.{option_id}" if parent is not None else str(option_id)
    unknown = sorted(str(key) for key in metadata if key not in METADATA_KEYS)
    if unknown:
        raise StructureError(
            f"unknown metadata key(s) {', '.join(unknown)} for field {field.name!r}; "
            f"expected one of {', '.join(METADATA_KEYS)}",
            path=where,
        )
    if not isinstance(option_id, str) or not _VALID_ID.fullmatch(option_id):
        raise StructureError(f"invalid id {option_id!r} for field {field.name!r}", path=where)

    kind, value_type, container = _classify(annotation, where)
    shorthand = metadata.get("short")
    if shorthand is not None and (not isinstance(shorthand, str) or len(shorthand) != 1 or not shorthand.isalnum()):
        raise StructureError(f"shorthand must be a single letter or digit, got {shorthand!r}", path=where)
    default_literal = metadata.get("default")
    if default_literal is not None and not isinstance(default_literal, str):
        raise StructureError(f"default must be given as a string literal, got {default_literal!r}", path=where)

    option = Option(
        id=option_id,
        field_name=field.name,
        kind=kind,
        value_type=value_type,
        owner=record,
        container=container,
        shorthand=shorthand,
        description=str(metadata.get("desc", "")),
        default_literal=default_literal,
    )
    option.parent = parent

    if kind is OptionKind.GROUP:
        if default_literal is not None or shorthand is not None:
            raise StructureError("group options cannot declare a default or a shorthand", path=where)
        nested = getattr(record, field.name)
        if not isinstance(nested, value_type):
            raise StructureError(
                f"expected an instance of {value_type.__name__}, got {type(nested).__name__}",
                path=where,
            )
        option.children = _inspect_record(nested, option)
    elif default_literal is not None:
        try:
            option.default_value = coerce(option, default_literal, source="default")
        except CoercionError as exc:
            raise StructureError(
                f"default {default_literal!r} is not a valid {option.type_name}: {exc.reason}",
                path=where,
            ) from exc
    return option


def _classify(annotation: Any, where: str) -> tuple[OptionKind, type, type | None]:
    """Return ``(kind, value_type, container)`` for a field annotation.

    Examples
    --------
    >>> _classify(list[int], "ports")
    (<OptionKind.SEQUENCE: 'sequence'>, <class 'int'>, <class 'list'>)
    >>> _classify(str | None, "name")
    (<OptionKind.SCALAR: 'scalar'>, <class 'str'>, None)
    """

    annotation = _unwrap_optional(annotation, where)
    if annotation in SCALAR_TYPES:
        return OptionKind.SCALAR, annotation, None

    origin = get_origin(annotation)
    if origin in _SEQUENCE_ORIGINS:
        args = get_args(annotation)
        if origin is tuple:
            element = args[0] if len(args) == 2 and args[1] is Ellipsis else None
        else:
            element = args[0] if len(args) == 1 else None
        if element in SCALAR_TYPES:
            return OptionKind.SEQUENCE, element, tuple if origin is tuple else list
        raise StructureError(f"unsupported sequence type {annotation!r}", path=where)

    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        return OptionKind.GROUP, annotation, None
    raise StructureError(f"unsupported field type {annotation!r}", path=where)


def _unwrap_optional(annotation: Any, where: str) -> Any:
    """Strip ``None`` out of ``Optional[T]`` / ``T | None``."""

    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation
    members = [arg for arg in get_args(annotation) if arg is not type(None)]
    if len(members) != 1:
        raise StructureError(f"unsupported union type {annotation!r}", path=where)
    return members[0]


def _ensure_unique_shorthands(tree: OptionTree) -> None:
    owners: dict[str, str] = {}
    for leaf in tree.leaves:
        if leaf.shorthand is None:
            continue
        if leaf.shorthand in owners:
            raise StructureError(
                f"shorthand -{leaf.shorthand} already used by {owners[leaf.shorthand]}",
                path=leaf.full_id,
            )
        owners[leaf.shorthand] = leaf.full_id


__all__ = ["METADATA_KEYS", "inspect_structure"]
