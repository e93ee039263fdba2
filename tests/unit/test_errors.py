from __future__ import annotations

from lib_typed_config import FileLoadError
from lib_typed_config.domain.errors import (
    CoercionError,
    ConfigError,
    FlagError,
    InvalidFormat,
    NotFound,
    ResolutionError,
    StructureError,
)


def test_error_hierarchy() -> None:
    assert issubclass(InvalidFormat, ConfigError)
    assert issubclass(NotFound, ConfigError)
    assert issubclass(FlagError, ConfigError)
    assert issubclass(CoercionError, ResolutionError)
    assert issubclass(ResolutionError, ConfigError)
    assert issubclass(FileLoadError, ConfigError)
    for exception in (InvalidFormat(""), NotFound(""), FlagError(""), FileLoadError("", path=None)):
        assert isinstance(exception, ConfigError)


def test_structure_error_stays_outside_config_errors() -> None:
    err = StructureError("unsupported field type", path="db.host")
    assert not isinstance(err, ConfigError)
    assert err.path == "db.host"
    assert str(err) == "db.host: unsupported field type"
    assert str(StructureError("frozen")) == "frozen"


def test_coercion_error_carries_details() -> None:
    err = CoercionError("ports", "x", expected="list[int]", source="flag", reason="not an integer", index=2)
    assert (err.full_id, err.raw, err.expected, err.source, err.index) == ("ports", "x", "list[int]", "flag", 2)
    assert "at index 2" in str(err)
