"""Shared test fixtures."""

from __future__ import annotations

from typing import Iterator

import pytest

import pgcontext.db.session as session_module
from pgcontext.db.config_source import MappingConfig
from pgcontext.db.session import ContextRegistry

BASE_CONNECTION_STRING = "Host=192.168.1.1;Port=5430;Database=test;Username=u;Password=p"

FULL_CONNECTION_STRING = (
    "Host=192.168.122.195;Port=5430;Database=test_db;Username=test_user;Password=12345;"
    "Pooling=True;CommandTimeout=300;Application Name=PgContext.Tests;"
)


@pytest.fixture()
def base_config() -> MappingConfig:
    """Configuration holding only the default ``db`` connection string."""
    return MappingConfig(connection_strings={"db": BASE_CONNECTION_STRING})


@pytest.fixture()
def full_config() -> MappingConfig:
    return MappingConfig(connection_strings={"db": FULL_CONNECTION_STRING})


@pytest.fixture(autouse=True)
def fresh_registry(monkeypatch: pytest.MonkeyPatch) -> Iterator[ContextRegistry]:
    """Isolate the process-wide context registry per test."""
    registry = ContextRegistry()
    monkeypatch.setattr(session_module, "_registry", registry)
    yield registry
    registry.dispose()
