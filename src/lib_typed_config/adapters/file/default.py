"""Config file source adapter.

Answers option lookups by walking a decoded file mapping along each option's
id path (``db.host`` → ``data["db"]["host"]``). Keys are matched
case-sensitively; keys without a matching option are ignored, and so are
``null`` values.
"""

from __future__ import annotations

from typing import Mapping

from ...application.ports import Lookup
from ...domain.option import Option


class FileSource:
    """Look option values up in decoded config file content."""

    name = "file"

    def __init__(self, data: Mapping[str, object], *, path: str | None = None) -> None:
        self._data = data
        self.path = path

    def key_for(self, option: Option) -> str:
        return option.full_id

    def lookup(self, option: Option) -> Lookup:
        """Return the value stored under the option's id path.

        Examples
        --------
        >>> from lib_typed_config.domain.option import OptionKind
        >>> db = Option("db", "db", OptionKind.GROUP, object, owner=None)
        >>> host = Option("host", "host", OptionKind.SCALAR, str, owner=None)
        >>> host.parent = db
        >>> FileSource({"db": {"host": "x", "extra": 1}}).lookup(host).raw
        'x'
        >>> FileSource({"db": "not a table"}).lookup(host).found
        False
        """

        node: object = self._data
        for part in option.path:
            if not isinstance(node, Mapping) or part not in node:
                return Lookup.ABSENT
            node = node[part]
        if node is None:
            return Lookup.ABSENT
        return Lookup.of(node, key=self.key_for(option))
