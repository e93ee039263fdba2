"""Logging for resolution runs: one logger, one trace id, one event shape.

Purpose
    Every step of a load call (inspecting the dataclass, reading and decoding
    the config file, applying defaults, file, env and flag values) reports what
    it did through the helpers here, so a single handler on the
    ``lib_typed_config`` logger sees the whole run in order.

Contents
    - ``TRACE_ID``: trace identifier of the load call in progress.
    - ``get_logger``: the package logger; silent until the host adds a handler.
    - ``bind_trace_id``: ties subsequent events to a caller-supplied trace id.
    - ``log_debug`` / ``log_info`` / ``log_error``: emit an event name plus its
      fields in the record's ``context`` extra.
    - ``make_event``: ``source``/``path`` fields shared by per-source events.

System Integration
    The inspector logs ``structure_inspected``; the file decoders log
    ``config_file_read``, ``config_decoder_rejected`` and ``config_file_invalid``;
    the flag source logs ``flags_invalid``; :mod:`lib_typed_config.core` brackets
    the run with ``resolution_started``/``resolution_complete`` and
    :mod:`lib_typed_config.application.merge` logs ``source_applied`` for each
    source. Domain modules (coercion, durations, errors) never log.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_typed_config_trace_id", default=None)
"""Trace id copied into the ``context`` of every event; cleared by each load entry point."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_typed_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the ``lib_typed_config`` logger.

    Why
        A library that resolves configuration runs before the host has set up
        logging, so it must stay quiet until a handler is attached here.
    """

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Set the trace id stamped on resolution events; ``None`` clears it.

    Examples
    --------
    >>> bind_trace_id('load-42')
    >>> TRACE_ID.get()
    'load-42'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Per-step detail such as decoder choices and sources applied."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Run milestones: resolution start and end, help requests."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Failures about to surface as an exception to the caller."""

    _emit(logging.ERROR, message, fields)


def make_event(
    source: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Fields for an event about one configuration source.

    Inputs
        source: ``"default"``, ``"file"``, ``"env"`` or ``"flag"``.
        path: Config file in play for the run, or ``None``.
        payload: Extra fields such as the number of options applied.

    Examples
    --------
    >>> make_event('env', None, {'applied': 3})
    {'source': 'env', 'path': None, 'applied': 3}
    """

    event: dict[str, Any] = {"source": source, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
