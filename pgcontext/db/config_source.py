"""Configuration sources consulted while resolving database settings."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Final, Mapping, Optional, Protocol, Union, runtime_checkable

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

CONNECTION_STRINGS_SECTION: Final[str] = "ConnectionStrings"
SECTION_SEPARATOR: Final[str] = "__"


@runtime_checkable
class ConfigLookup(Protocol):
    """Read-only key lookup plus a separate namespace for connection strings."""

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or ``None``."""

    def get_connection_string(self, name: str) -> Optional[str]:
        """Return the connection string registered as ``name`` or ``None``."""


class MappingConfig:
    """In-memory configuration backed by plain dictionaries."""

    def __init__(
        self,
        values: Optional[Mapping[str, Optional[str]]] = None,
        connection_strings: Optional[Mapping[str, Optional[str]]] = None,
    ) -> None:
        self._values = dict(values or {})
        self._connection_strings = dict(connection_strings or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def get_connection_string(self, name: str) -> Optional[str]:
        return self._connection_strings.get(name)

    def with_values(self, **values: Optional[str]) -> "MappingConfig":
        """Return a copy with extra plain values."""
        merged = dict(self._values)
        merged.update(values)
        return MappingConfig(merged, self._connection_strings)

    def __repr__(self) -> str:
        return f"MappingConfig(keys={sorted(self._values)}, connection_strings={sorted(self._connection_strings)})"


class EnvironmentConfig:
    """Configuration read from process environment variables.

    Connection strings are stored as ``ConnectionStrings__<name>`` variables.
    When ``env_file`` is given, values from that file are used for keys the
    environment does not define.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        *,
        env_file: Optional[Union[str, Path]] = None,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._file_values: Dict[str, Optional[str]] = {}
        if env_file is not None:
            path = Path(env_file)
            if path.is_file():
                self._file_values = dict(dotenv_values(path))
            else:
                logger.debug("Env file %s not found; using environment only", path)

    def get(self, key: str) -> Optional[str]:
        value = self._environ.get(key)
        if value is None:
            value = self._file_values.get(key)
        return value

    def get_connection_string(self, name: str) -> Optional[str]:
        return self.get(f"{CONNECTION_STRINGS_SECTION}{SECTION_SEPARATOR}{name}")


__all__ = [
    "CONNECTION_STRINGS_SECTION",
    "ConfigLookup",
    "EnvironmentConfig",
    "MappingConfig",
    "SECTION_SEPARATOR",
]
