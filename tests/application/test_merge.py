from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_typed_config.application.inspector import inspect_structure
from lib_typed_config.application.merge import apply_defaults, apply_source
from lib_typed_config.application.ports import Lookup
from lib_typed_config.domain.errors import CoercionError
from lib_typed_config.domain.option import Option


class DictSource:
    """Minimal source answering lookups from a ``full_id -> raw`` mapping."""

    def __init__(self, values: dict[str, object], name: str = "stub", path: str | None = None) -> None:
        self.values = values
        self.name = name
        self.path = path

    def key_for(self, option: Option) -> str:
        return option.full_id

    def lookup(self, option: Option) -> Lookup:
        if option.full_id not in self.values:
            return Lookup.ABSENT
        return Lookup.of(self.values[option.full_id], key=self.key_for(option))


@dataclass
class Service:
    port: int = field(default=0, metadata={"default": "80"})


def test_defaults_fill_declared_options_only(app_config) -> None:
    tree = inspect_structure(app_config)
    assert apply_defaults(tree) == 5
    assert app_config.port == 8080
    assert app_config.weights == (1, 2, 3)
    assert app_config.db.host == "localhost"
    assert app_config.db.timeout == timedelta(seconds=5)
    assert app_config.name == "app"
    assert tree.find("name").origin is None
    assert tree.find("port").origin == {"source": "default", "path": None, "key": "port"}


def test_later_source_overwrites_only_supplied_options(app_config) -> None:
    tree = inspect_structure(app_config)
    apply_defaults(tree)
    applied = apply_source(tree, DictSource({"port": "9090", "db.host": "db.internal"}, name="env"))
    assert applied == 2
    assert app_config.port == 9090
    assert app_config.db.host == "db.internal"
    assert app_config.db.port == 5432
    assert tree.find("db.host").origin == {"source": "env", "path": None, "key": "db.host"}


def test_supplied_falsy_values_still_overwrite(app_config) -> None:
    tree = inspect_structure(app_config)
    apply_defaults(tree)
    apply_source(tree, DictSource({"port": 0, "weights": []}, name="file", path="/etc/app.yaml"))
    assert app_config.port == 0
    assert app_config.weights == ()
    assert tree.find("weights").origin["path"] == "/etc/app.yaml"


def test_failing_source_applies_nothing(app_config) -> None:
    tree = inspect_structure(app_config)
    apply_defaults(tree)
    source = DictSource({"port": "9090", "name": "svc", "db.port": "not-a-port"}, name="env")
    with pytest.raises(CoercionError) as excinfo:
        apply_source(tree, source)
    assert excinfo.value.full_id == "db.port"
    assert excinfo.value.source == "env"
    assert app_config.port == 8080
    assert app_config.name == "app"
    assert tree.find("port").origin["source"] == "default"


def test_applying_same_sources_twice_is_idempotent(app_config) -> None:
    source = DictSource({"port": "9091", "tags": "a,b"})
    tree = inspect_structure(app_config)
    apply_defaults(tree)
    apply_source(tree, source)
    first = tree.provenance()
    apply_defaults(tree)
    apply_source(tree, source)
    assert tree.provenance() == first
    assert app_config.tags == ["a", "b"]


@given(st.lists(st.integers(min_value=0, max_value=65535), min_size=1, max_size=4))
def test_last_source_wins(ports: list[int]) -> None:
    target = Service()
    tree = inspect_structure(target)
    apply_defaults(tree)
    for index, port in enumerate(ports):
        apply_source(tree, DictSource({"port": str(port)}, name=f"stage{index}"))
    assert target.port == ports[-1]
    assert tree.find("port").origin["source"] == f"stage{len(ports) - 1}"
