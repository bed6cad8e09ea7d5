"""Resolve PostgreSQL connection settings from layered configuration."""

from .db import (
    ConfigLookup,
    ContextRegistry,
    EnvironmentConfig,
    MappingConfig,
    OverrideVariableNames,
    ResolutionResult,
    resolve,
)
from .errors import ArgumentError, ConfigurationError, MissingConnectionStringError

__all__ = [
    "ArgumentError",
    "ConfigLookup",
    "ConfigurationError",
    "ContextRegistry",
    "EnvironmentConfig",
    "MappingConfig",
    "MissingConnectionStringError",
    "OverrideVariableNames",
    "ResolutionResult",
    "resolve",
]
