"""Exceptions raised while resolving database configuration and reading data."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class ArgumentError(ValueError):
    """A required argument was not supplied."""

    def __init__(self, param_name: str, message: Optional[str] = None) -> None:
        self.param_name = param_name
        super().__init__(message or f"'{param_name}' is required")


class ConfigurationError(Exception):
    """Configuration values are missing or malformed."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key


class MissingConnectionStringError(ConfigurationError):
    """The named connection string is absent or blank."""

    DEFAULT_SECTION_NAME = "ConnectionStrings"
    DEFAULT_KEY_NAME = "DefaultConnection"

    def __init__(self, name: Optional[str] = None, *, message: Optional[str] = None) -> None:
        if message is None:
            message = (
                "Missing default connection string"
                if name is None
                else f"Missing connection string with name: '{name}'"
            )
        super().__init__(message, key=name or self.DEFAULT_KEY_NAME)
        self.section = self.DEFAULT_SECTION_NAME


class DataModelError(Exception):
    """Error of the data access layer."""


class ObjectNotFoundError(DataModelError):
    """An object could not be found in a table or set."""

    def __init__(
        self,
        set_name: Optional[str],
        id: Any = None,
        *,
        search_properties: Optional[Mapping[str, Any]] = None,
        message: Optional[str] = None,
    ) -> None:
        if message is None:
            if search_properties is not None:
                message = _search_message(set_name, search_properties)
            else:
                message = f"Object with id '{id}' hasn't found in '{set_name}' set."
        super().__init__(message)
        self.set_name = set_name
        self.id = id
        self.search_properties = dict(search_properties) if search_properties is not None else None


def _search_message(set_name: Optional[str], search_properties: Mapping[str, Any]) -> str:
    prefix = f"Can't find object in '{set_name or ''}', by properties:"
    if not search_properties:
        return f"{prefix} collection of properties is empty"
    pairs = ", ".join(f"'{name}'='{value}'" for name, value in search_properties.items())
    return f"{prefix} {pairs}"


__all__ = [
    "ArgumentError",
    "ConfigurationError",
    "DataModelError",
    "MissingConnectionStringError",
    "ObjectNotFoundError",
]
