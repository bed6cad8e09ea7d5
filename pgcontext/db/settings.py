"""Helpers for configuring database connectivity.

The connection string is taken from the ``ConnectionStrings`` namespace and
individual fields may then be replaced by values stored under override keys
(usually environment variables such as ``DB_HOST`` or ``DB_PWD``).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Final, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from sqlalchemy.engine import URL

from ..errors import ArgumentError, ConfigurationError, MissingConnectionStringError
from .config_source import ConfigLookup, EnvironmentConfig
from .connection_string import ConnectionParameters

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_STRING_NAME: Final[str] = "db"
DEFAULT_CONNECTION_STRING_VAR_NAME: Final[str] = "DB"
DEFAULT_DB_HOST_VAR_NAME: Final[str] = "DB_HOST"
DEFAULT_DB_PORT_VAR_NAME: Final[str] = "DB_PORT"
DEFAULT_DB_NAME_VAR_NAME: Final[str] = "DB_NAME"
DEFAULT_DB_USER_VAR_NAME: Final[str] = "DB_USER"
DEFAULT_DB_PASSWORD_VAR_NAME: Final[str] = "DB_PWD"
DEFAULT_HISTORY_TABLE_VAR_NAME: Final[str] = "DB_HISTORY_TABLE"
DEFAULT_HISTORY_SCHEMA_VAR_NAME: Final[str] = "DB_HISTORY_SCHEMA"

DEFAULT_HISTORY_SCHEMA: Final[str] = "public"

_PORT_RE: Final = re.compile(r"[+-]?[0-9]+")


class OverrideVariableNames(BaseModel):
    """Names of the configuration keys that hold each overridable value.

    A ``None`` or blank name means the value is not taken from configuration.
    """

    model_config = ConfigDict(frozen=True)

    connection_var_name: Optional[str] = None
    host_var_name: Optional[str] = None
    port_var_name: Optional[str] = None
    database_var_name: Optional[str] = None
    user_var_name: Optional[str] = None
    password_var_name: Optional[str] = None
    migration_history_table_var_name: Optional[str] = None
    migration_history_schema_var_name: Optional[str] = None

    @classmethod
    def defaults(cls) -> "OverrideVariableNames":
        return cls(
            connection_var_name=DEFAULT_CONNECTION_STRING_VAR_NAME,
            host_var_name=DEFAULT_DB_HOST_VAR_NAME,
            port_var_name=DEFAULT_DB_PORT_VAR_NAME,
            database_var_name=DEFAULT_DB_NAME_VAR_NAME,
            user_var_name=DEFAULT_DB_USER_VAR_NAME,
            password_var_name=DEFAULT_DB_PASSWORD_VAR_NAME,
            migration_history_table_var_name=DEFAULT_HISTORY_TABLE_VAR_NAME,
            migration_history_schema_var_name=DEFAULT_HISTORY_SCHEMA_VAR_NAME,
        )

    def with_overrides(self, **names: Optional[str]) -> "OverrideVariableNames":
        """Return a copy with the given key names replaced."""
        unknown = set(names) - set(type(self).model_fields)
        if unknown:
            raise TypeError(f"Unknown override variable(s): {', '.join(sorted(unknown))}")
        return self.model_copy(update=names)


DEFAULT_OVERRIDE_NAMES: Final[OverrideVariableNames] = OverrideVariableNames.defaults()


@dataclass(frozen=True)
class ResolutionResult:
    """Final connection string plus migration history table and schema."""

    connection_string: str
    history_table: Optional[str] = None
    history_schema: Optional[str] = None

    def parameters(self) -> ConnectionParameters:
        return ConnectionParameters.parse(self.connection_string)

    def url(self) -> URL:
        """SQLAlchemy URL equivalent of :attr:`connection_string`."""
        return self.parameters().to_url()

    def __iter__(self):
        return iter((self.connection_string, self.history_table, self.history_schema))


@dataclass(frozen=True)
class FieldPolicy:
    """How a single override key is read.

    ``when_unset`` is returned when no key name is configured. A blank value
    under a customised key name either resolves to ``blank_fallback`` or,
    when ``required`` is set, aborts resolution.
    """

    label: str
    option: str
    default_key: str
    required: bool = True
    when_unset: Optional[str] = None
    blank_fallback: Optional[str] = None
    secret: bool = False


HOST_POLICY: Final = FieldPolicy("db host", "host_var_name", DEFAULT_DB_HOST_VAR_NAME)
PORT_POLICY: Final = FieldPolicy("db port", "port_var_name", DEFAULT_DB_PORT_VAR_NAME)
DATABASE_POLICY: Final = FieldPolicy("db name", "database_var_name", DEFAULT_DB_NAME_VAR_NAME)
USER_POLICY: Final = FieldPolicy("db user name", "user_var_name", DEFAULT_DB_USER_VAR_NAME, when_unset="")
PASSWORD_POLICY: Final = FieldPolicy(
    "db password", "password_var_name", DEFAULT_DB_PASSWORD_VAR_NAME, when_unset="", secret=True
)
HISTORY_TABLE_POLICY: Final = FieldPolicy(
    "migration history table",
    "migration_history_table_var_name",
    DEFAULT_HISTORY_TABLE_VAR_NAME,
    required=False,
)
HISTORY_SCHEMA_POLICY: Final = FieldPolicy(
    "migration history schema",
    "migration_history_schema_var_name",
    DEFAULT_HISTORY_SCHEMA_VAR_NAME,
    required=False,
    blank_fallback=DEFAULT_HISTORY_SCHEMA,
)

# Connection fields overwritten on the parsed connection string, in order.
CONNECTION_FIELDS: Final[Tuple[Tuple[str, FieldPolicy], ...]] = (
    ("host", HOST_POLICY),
    ("port", PORT_POLICY),
    ("database", DATABASE_POLICY),
    ("user", USER_POLICY),
    ("password", PASSWORD_POLICY),
)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def read_field(config: ConfigLookup, policy: FieldPolicy, names: OverrideVariableNames) -> Optional[str]:
    """Read the value configured for ``policy`` applying its fallback rules."""
    key = getattr(names, policy.option)
    if _is_blank(key):
        return policy.when_unset
    value = config.get(key)
    if _is_blank(value) and key != policy.default_key:
        if policy.blank_fallback is not None:
            return policy.blank_fallback
        if policy.required:
            raise ConfigurationError(f"There is no {policy.label} in the environment variable '{key}'", key=key)
    return value


def parse_port(value: str, key: str) -> int:
    try:
        if not _PORT_RE.fullmatch(value.strip()):
            raise ValueError(f"invalid port literal: {value!r}")
        port = int(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"There is wrong value in the environment variable '{key}'. Must be a positive integer", key=key
        ) from exc
    if port <= 0:
        raise ConfigurationError(
            f"There is wrong value in the environment variable '{key}'. Must be a positive integer", key=key
        )
    return port


def get_connection_string(config: ConfigLookup, connection_var_name: Optional[str]) -> str:
    """Return the base connection string selected by ``connection_var_name``."""
    name: Optional[str] = DEFAULT_CONNECTION_STRING_NAME
    if not _is_blank(connection_var_name):
        name = config.get(connection_var_name)
    if _is_blank(name):
        if connection_var_name != DEFAULT_CONNECTION_STRING_VAR_NAME:
            raise ConfigurationError(
                f"There is no connection string name in the environment variable {connection_var_name}",
                key=connection_var_name,
            )
        name = DEFAULT_CONNECTION_STRING_NAME
    value = config.get_connection_string(name)
    if _is_blank(value):
        raise MissingConnectionStringError(name)
    logger.debug("Using connection string '%s'", name)
    return value


def resolve(config: ConfigLookup, override_names: Optional[OverrideVariableNames] = None) -> ResolutionResult:
    """Build the final connection string and migration history settings.

    Raises :class:`ArgumentError` when ``config`` is missing and
    :class:`ConfigurationError` (or :class:`MissingConnectionStringError`)
    when a configured value is absent or malformed.
    """
    if config is None:
        raise ArgumentError("config")
    names = override_names if override_names is not None else DEFAULT_OVERRIDE_NAMES

    params = ConnectionParameters.parse(get_connection_string(config, names.connection_var_name))
    for attribute, policy in CONNECTION_FIELDS:
        value = read_field(config, policy, names)
        if _is_blank(value):
            continue
        key = getattr(names, policy.option)
        if policy is PORT_POLICY:
            setattr(params, attribute, parse_port(value, key))
        else:
            setattr(params, attribute, value)
        if policy.secret:
            logger.debug("Overriding %s from '%s'", policy.label, key)
        else:
            logger.debug("Overriding %s from '%s' with '%s'", policy.label, key, value)

    return ResolutionResult(
        connection_string=params.render(),
        history_table=read_field(config, HISTORY_TABLE_POLICY, names),
        history_schema=read_field(config, HISTORY_SCHEMA_POLICY, names),
    )


def get_database_url(
    config: Optional[ConfigLookup] = None,
    override_names: Optional[OverrideVariableNames] = None,
) -> str:
    """Return the database URL used by SQLAlchemy and Alembic."""
    if config is None:
        config = EnvironmentConfig()
    return resolve(config, override_names).url().render_as_string(hide_password=False)


__all__ = [
    "CONNECTION_FIELDS",
    "DEFAULT_CONNECTION_STRING_NAME",
    "DEFAULT_CONNECTION_STRING_VAR_NAME",
    "DEFAULT_DB_HOST_VAR_NAME",
    "DEFAULT_DB_NAME_VAR_NAME",
    "DEFAULT_DB_PASSWORD_VAR_NAME",
    "DEFAULT_DB_PORT_VAR_NAME",
    "DEFAULT_DB_USER_VAR_NAME",
    "DEFAULT_HISTORY_SCHEMA",
    "DEFAULT_HISTORY_SCHEMA_VAR_NAME",
    "DEFAULT_HISTORY_TABLE_VAR_NAME",
    "DEFAULT_OVERRIDE_NAMES",
    "FieldPolicy",
    "OverrideVariableNames",
    "ResolutionResult",
    "get_connection_string",
    "get_database_url",
    "parse_port",
    "read_field",
    "resolve",
]
