"""Environment variable adapter.

Purpose
-------
Answer option lookups from the process environment. It implements the
:class:`lib_typed_config.application.ports.Source` port and is applied after
the config file and before command-line flags.

Key behaviours
--------------
* Variable names are ``prefix + FULL_ID`` with dots replaced by underscores
  (``db.host`` → ``APP_DB_HOST`` for prefix ``APP_``). No separator is added
  after the prefix.
* Unset and empty variables count as "not supplied" and never overwrite a
  value resolved earlier.
* Values are handed over as raw strings; typing is left to
  :func:`lib_typed_config.domain.coercion.coerce`.
"""

from __future__ import annotations

import os
from typing import Mapping

from ...application.ports import Lookup
from ...domain.option import Option
from ...observability import log_debug


def env_var_name(option: Option, prefix: str = "") -> str:
    """Return the environment variable name for *option*.

    Examples
    --------
    >>> from lib_typed_config.domain.option import OptionKind
    >>> port = Option("port", "port", OptionKind.SCALAR, int, owner=None)
    >>> env_var_name(port, "APP_")
    'APP_PORT'
    """

    return prefix + option.full_id.upper().replace(".", "_")


class EnvSource:
    """Look option values up in environment variables."""

    name = "env"
    path = None

    def __init__(self, *, prefix: str = "", environ: Mapping[str, str] | None = None) -> None:
        """Initialise the source with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        prefix:
            Prepended verbatim to every variable name.
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self.prefix = prefix
        self._environ = os.environ if environ is None else environ

    def key_for(self, option: Option) -> str:
        return env_var_name(option, self.prefix)

    def lookup(self, option: Option) -> Lookup:
        """Return the variable's value when it is set and non-empty.

        Examples
        --------
        >>> from lib_typed_config.domain.option import OptionKind
        >>> port = Option("port", "port", OptionKind.SCALAR, int, owner=None)
        >>> EnvSource(environ={"PORT": "9091"}).lookup(port).raw
        '9091'
        >>> EnvSource(environ={"PORT": ""}).lookup(port).found
        False
        """

        key = self.key_for(option)
        value = self._environ.get(key)
        if not value:
            return Lookup.ABSENT
        log_debug("env_variable_found", source=self.name, option=option.full_id, key=key)
        return Lookup.of(value, key=key)
