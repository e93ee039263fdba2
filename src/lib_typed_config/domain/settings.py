"""Behavioural switches accepted by the resolution engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

FileDecoder = Callable[[bytes], Mapping[str, object]]
"""Turn raw file content into a generic nested mapping.

Decoders raise :class:`~lib_typed_config.domain.errors.InvalidFormat` (or
:class:`ValueError`) when the content is not valid for their format.
"""


@dataclass(frozen=True, slots=True)
class LoadSettings:
    """Describe how :func:`lib_typed_config.core.load` looks for values.

    Attributes
    ----------
    config_file_variable:
        ``full_id`` of the option that carries the config file path. The
        flags and environment are consulted for it before the file is read;
        its declared default is never used as a path.
    file_disable / env_disable / flag_disable:
        Skip that source entirely.
    file_default_filename:
        Path tried when no config file path was supplied. A missing default
        file is not an error.
    file_decoder:
        Decoder used instead of guessing from the file extension.
    env_prefix:
        Prepended verbatim to every environment variable name (no separator
        is inserted).
    help_disable:
        Do not register the ``-h/--help`` flag.
    help_message:
        Header printed above the flag list. Defaults to ``Usage of <prog>:``.
    help_description:
        Description shown for the help flag itself.

    Examples
    --------
    >>> LoadSettings(env_prefix="APP_").env_prefix
    'APP_'
    """

    config_file_variable: str | None = None
    file_disable: bool = False
    file_default_filename: str | None = None
    file_decoder: FileDecoder | None = None
    flag_disable: bool = False
    env_disable: bool = False
    env_prefix: str = ""
    help_disable: bool = False
    help_message: str | None = None
    help_description: str = "show this help menu"
