"""Shared configuration dataclasses used across the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import pytest


@dataclass
class Database:
    host: str = field(default="", metadata={"default": "localhost", "desc": "database host"})
    port: int = field(default=0, metadata={"default": "5432"})
    timeout: timedelta = field(default=timedelta(0), metadata={"default": "5s"})


@dataclass
class AppConfig:
    config: str = field(default="", metadata={"desc": "config file path"})
    port: int = field(default=0, metadata={"default": "8080", "short": "p", "desc": "listen port"})
    debug: bool = field(default=False, metadata={"short": "d"})
    name: str = "app"
    ratio: float = 0.0
    tags: list[str] = field(default_factory=list)
    weights: tuple[int, ...] = field(default=(), metadata={"default": "1,2,3"})
    db: Database = field(default_factory=Database)


@pytest.fixture()
def app_config() -> AppConfig:
    """Provide a fresh, unresolved configuration structure per test."""

    return AppConfig()
