"""Public package surface for ``lib_typed_config``.

Populate a typed configuration dataclass from defaults, a config file,
environment variables and command-line flags::

    from dataclasses import dataclass, field
    from lib_typed_config import LoadSettings, load

    @dataclass
    class Settings:
        port: int = field(default=0, metadata={"default": "8080", "short": "p", "desc": "listen port"})

    settings = Settings()
    load(settings, LoadSettings(env_prefix="APP_"))
"""

from __future__ import annotations

from .adapters.file_loaders.structured import decode_json, decode_toml, decode_yaml
from .application.inspector import inspect_structure
from .core import FileLoadError, load, load_raw_file, load_with_raw_file
from .domain.duration import format_duration, parse_duration
from .domain.errors import (
    CoercionError,
    ConfigError,
    FlagError,
    InvalidFormat,
    NotFound,
    ResolutionError,
    StructureError,
)
from .domain.option import SourceInfo
from .domain.settings import FileDecoder, LoadSettings
from .observability import bind_trace_id, get_logger

__all__ = [
    "CoercionError",
    "ConfigError",
    "FileDecoder",
    "FileLoadError",
    "FlagError",
    "InvalidFormat",
    "LoadSettings",
    "NotFound",
    "ResolutionError",
    "SourceInfo",
    "StructureError",
    "bind_trace_id",
    "decode_json",
    "decode_toml",
    "decode_yaml",
    "format_duration",
    "get_logger",
    "inspect_structure",
    "load",
    "load_raw_file",
    "load_with_raw_file",
    "parse_duration",
]
