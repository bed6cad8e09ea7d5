"""Database configuration, context registration and column types."""

from .config_source import ConfigLookup, EnvironmentConfig, MappingConfig
from .session import ContextRegistry, DatabaseContext, MigrationOptions, get_registry, get_session
from .settings import OverrideVariableNames, ResolutionResult, get_database_url, resolve

__all__ = [
    "ConfigLookup",
    "ContextRegistry",
    "DatabaseContext",
    "EnvironmentConfig",
    "MappingConfig",
    "MigrationOptions",
    "OverrideVariableNames",
    "ResolutionResult",
    "get_database_url",
    "get_registry",
    "get_session",
    "resolve",
]
