"""Application-layer merge policy.

Purpose
-------
Write values into the caller's dataclass in priority order: declared defaults
first, then each source in the order the composition root applies them. A
later stage only overwrites an option when it actually supplied a value.

Contents
    - ``apply_defaults``: assigns every parsed default literal.
    - ``apply_source``: looks every leaf up in one source, coerces all found
      values, then assigns them together.
    - ``_resolve``: per-leaf lookup plus coercion.

System Role
-----------
Called by :mod:`lib_typed_config.core` once per stage. Free of I/O so it can be
reused by alternative composition roots.
"""

from __future__ import annotations

from typing import Any

from ..domain.coercion import coerce
from ..domain.option import Option, OptionTree, SourceInfo
from ..observability import log_debug, make_event
from .ports import Source


def apply_defaults(tree: OptionTree) -> int:
    """Assign the declared default of every leaf that has one.

    Returns
    -------
    int
        Number of options that received a default.

    Examples
    --------
    >>> from dataclasses import dataclass, field
    >>> from lib_typed_config.application.inspector import inspect_structure
    >>> @dataclass
    ... class Demo:
    ...     retries: int = field(default=0, metadata={"default": "3"})
    >>> demo = Demo()
    >>> apply_defaults(inspect_structure(demo))
    1
    >>> demo.retries
    3
    """

    applied = 0
    for leaf in tree.leaves:
        if not leaf.has_default:
            continue
        leaf.assign(leaf.default_value, {"source": "default", "path": None, "key": leaf.full_id})
        applied += 1
    log_debug("source_applied", **make_event("default", None, {"applied": applied}))
    return applied


def apply_source(tree: OptionTree, source: Source) -> int:
    """Apply the values *source* supplies, overwriting earlier stages.

    Why
    ----
    Keeps "absent" and "present" distinct per option and guarantees a source
    either contributes all of its values or none of them.

    What
    ----
    Looks up and coerces every leaf first. Only when every found value
    converted successfully are the values assigned.

    Returns
    -------
    int
        Number of options the source supplied.

    Raises
    ------
    CoercionError
        When a supplied value does not convert; nothing from *source* is
        assigned in that case.
    """

    resolved: list[tuple[Option, Any, SourceInfo]] = []
    for leaf in tree.leaves:
        entry = _resolve(leaf, source)
        if entry is not None:
            resolved.append(entry)

    for leaf, value, origin in resolved:
        leaf.assign(value, origin)
    log_debug("source_applied", **make_event(source.name, source.path, {"applied": len(resolved)}))
    return len(resolved)


def _resolve(leaf: Option, source: Source) -> tuple[Option, Any, SourceInfo] | None:
    """Return ``(leaf, value, origin)`` when *source* supplies *leaf*, else ``None``."""

    lookup = source.lookup(leaf)
    if not lookup.found:
        return None
    value = coerce(leaf, lookup.raw, source=source.name)
    return leaf, value, {"source": source.name, "path": source.path, "key": lookup.key}
