"""Structure inspection: option ids, nesting, metadata and structural errors."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

import pytest

from lib_typed_config.application.inspector import inspect_structure
from lib_typed_config.domain.errors import ConfigError, StructureError
from lib_typed_config.domain.option import UNSET, OptionKind


@dataclass
class Leafy:
    Verbose: bool = False
    level: Optional[int] = None
    _private: str = "hidden"


@dataclass
class Inner:
    value: str = field(default="", metadata={"id": "val", "default": "x"})


@dataclass
class Outer:
    inner: Inner = field(default_factory=Inner)
    names: list[str] = field(default_factory=list, metadata={"default": "a,b"})


@dataclass
class DuplicateIds:
    first: int = field(default=0, metadata={"id": "same"})
    second: int = field(default=0, metadata={"id": "same"})


@dataclass
class WithMapping:
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class WithCallable:
    hook: Callable[[], None] = print


@dataclass
class WithUnion:
    value: int | str = 0


@dataclass
class BadDefault:
    port: int = field(default=0, metadata={"default": "eighty"})


@dataclass
class BadSequenceDefault:
    ports: list[int] = field(default_factory=list, metadata={"default": "1,two"})


@dataclass
class NonStringDefault:
    port: int = field(default=0, metadata={"default": 8080})


@dataclass
class LongShorthand:
    port: int = field(default=0, metadata={"short": "pp"})


@dataclass
class SharedShorthand:
    port: int = field(default=0, metadata={"short": "p"})
    path: str = field(default="", metadata={"short": "p"})


@dataclass
class DottedId:
    port: int = field(default=0, metadata={"id": "a.b"})


@dataclass
class MissingGroup:
    inner: Optional[Inner] = None


@dataclass
class GroupWithDefault:
    inner: Inner = field(default_factory=Inner, metadata={"default": "x"})


@dataclass
class MisspelledMetadata:
    port: int = field(default=0, metadata={"defualt": "8080"})


@dataclass(frozen=True)
class Frozen:
    port: int = 0


def test_ids_are_lowercased_field_names_and_private_fields_skipped() -> None:
    tree = inspect_structure(Leafy())
    assert [option.id for option in tree.options] == ["verbose", "level"]
    level = tree.find("level")
    assert level is not None and level.value_type is int and level.kind is OptionKind.SCALAR


def test_nested_groups_prefix_full_ids(app_config) -> None:
    tree = inspect_structure(app_config)
    ids = [leaf.full_id for leaf in tree.leaves]
    assert ids == [
        "config",
        "port",
        "debug",
        "name",
        "ratio",
        "tags",
        "weights",
        "db.host",
        "db.port",
        "db.timeout",
    ]
    assert [option.id for option in tree.options][-1] == "db"
    group = tree.find("db")
    assert group is not None and group.kind is OptionKind.GROUP and not group.is_leaf


def test_children_keep_weak_reference_to_group() -> None:
    tree = inspect_structure(Outer())
    leaf = tree.find("inner.val")
    assert leaf is not None
    assert leaf.parent is tree.find("inner")
    assert tree.find("names").parent is None


def test_metadata_is_parsed(app_config) -> None:
    tree = inspect_structure(app_config)
    port = tree.find("port")
    assert (port.shorthand, port.description, port.default_literal, port.default_value) == (
        "p",
        "listen port",
        "8080",
        8080,
    )
    weights = tree.find("weights")
    assert weights.kind is OptionKind.SEQUENCE
    assert weights.container is tuple
    assert weights.default_value == (1, 2, 3)
    assert tree.find("db.timeout").default_value == timedelta(seconds=5)
    assert tree.find("name").has_default is False
    assert tree.find("name").current_value is UNSET


def test_inspection_does_not_touch_the_target(app_config) -> None:
    before = copy.deepcopy(app_config)
    inspect_structure(app_config)
    assert app_config == before


@pytest.mark.parametrize(
    "target",
    [
        DuplicateIds(),
        WithMapping(),
        WithCallable(),
        WithUnion(),
        BadDefault(),
        BadSequenceDefault(),
        NonStringDefault(),
        LongShorthand(),
        SharedShorthand(),
        DottedId(),
        MissingGroup(),
        GroupWithDefault(),
        Frozen(),
        MisspelledMetadata(),
    ],
    ids=lambda target: type(target).__name__,
)
def test_malformed_structures_raise_structure_error(target: object) -> None:
    with pytest.raises(StructureError):
        inspect_structure(target)


def test_structure_errors_are_not_config_errors() -> None:
    assert not issubclass(StructureError, ConfigError)


def test_bad_default_reports_path_type_and_literal() -> None:
    with pytest.raises(StructureError) as excinfo:
        inspect_structure(BadDefault())
    message = str(excinfo.value)
    assert excinfo.value.path == "port"
    assert "'eighty'" in message and "int" in message


def test_non_dataclass_targets_are_rejected() -> None:
    with pytest.raises(StructureError):
        inspect_structure({"port": 1})
    with pytest.raises(StructureError):
        inspect_structure(Leafy)


def test_unknown_metadata_key_is_named() -> None:
    with pytest.raises(StructureError) as excinfo:
        inspect_structure(MisspelledMetadata())
    assert excinfo.value.path == "port"
    assert "defualt" in str(excinfo.value)
