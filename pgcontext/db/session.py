"""Session and engine factories for registered database contexts."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Final, Hashable, Optional, Union

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session, sessionmaker

from ..errors import ArgumentError
from .config_source import ConfigLookup, EnvironmentConfig
from .settings import OverrideVariableNames, ResolutionResult, resolve

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT: Final[str] = "default"


@dataclass(frozen=True)
class MigrationOptions:
    """Where migrations live and which table records applied revisions."""

    package: str
    version_table: Optional[str] = None
    version_table_schema: Optional[str] = None

    @classmethod
    def from_result(cls, package: Optional[str], result: ResolutionResult) -> Optional["MigrationOptions"]:
        """Options for ``package``; the history table is used only when it is set."""
        if not package or not package.strip():
            return None
        table = result.history_table
        if not table or not table.strip():
            return cls(package)
        schema = result.history_schema if result.history_schema and result.history_schema.strip() else None
        return cls(package, table, schema)

    def alembic_kwargs(self) -> Dict[str, str]:
        """Keyword arguments for ``alembic.context.configure``."""
        kwargs: Dict[str, str] = {}
        if self.version_table:
            kwargs["version_table"] = self.version_table
            if self.version_table_schema:
                kwargs["version_table_schema"] = self.version_table_schema
        return kwargs


@dataclass
class DatabaseContext:
    """Engine and session factory built from a resolved configuration."""

    key: Hashable
    result: ResolutionResult
    engine: Engine
    session_factory: sessionmaker[Session]
    migrations: Optional[MigrationOptions] = None

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def build_context(
    config: ConfigLookup,
    *,
    key: Hashable = DEFAULT_CONTEXT,
    migrations_package: Optional[str] = None,
    override_names: Optional[OverrideVariableNames] = None,
    echo: bool = False,
    **engine_options: Any,
) -> DatabaseContext:
    """Resolve ``config`` and create the engine for it (no connection is opened)."""
    result = resolve(config, override_names)
    url = result.url()
    logger.debug("Creating engine for context %r: %s", key, url)
    engine = create_engine(url, echo=echo, future=True, **engine_options)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    return DatabaseContext(
        key=key,
        result=result,
        engine=engine,
        session_factory=factory,
        migrations=MigrationOptions.from_result(migrations_package, result),
    )


@dataclass
class _Registration:
    factory: Callable[[], DatabaseContext]
    context: Optional[DatabaseContext] = field(default=None)


class ContextRegistry:
    """Named database contexts, each built on first use.

    Configuration errors surface from :meth:`get`, when the context is
    first requested, not from registration.
    """

    def __init__(self) -> None:
        self._registrations: Dict[Hashable, _Registration] = {}
        self._lock = threading.Lock()

    def add_npgsql_context(
        self,
        key: Hashable,
        config: ConfigLookup,
        migrations_package: Optional[str] = None,
        override_names: Optional[OverrideVariableNames] = None,
        *,
        replace: bool = True,
        **engine_options: Any,
    ) -> "ContextRegistry":
        """Register a PostgreSQL context built from ``config``.

        With ``replace=False`` an existing registration under ``key`` is kept.
        """
        if config is None:
            raise ArgumentError("config")

        def factory() -> DatabaseContext:
            return build_context(
                config,
                key=key,
                migrations_package=migrations_package,
                override_names=override_names,
                **engine_options,
            )

        with self._lock:
            existing = self._registrations.get(key)
            if existing is not None:
                if not replace:
                    return self
                if existing.context is not None:
                    existing.context.dispose()
            self._registrations[key] = _Registration(factory)
        logger.info("Registered database context %r", key)
        return self

    def get(self, key: Hashable = DEFAULT_CONTEXT) -> DatabaseContext:
        with self._lock:
            registration = self._registrations.get(key)
            if registration is None:
                raise KeyError(f"No database context registered as {key!r}")
            if registration.context is None:
                registration.context = registration.factory()
            return registration.context

    def dispose(self) -> None:
        """Dispose every built engine and forget all registrations."""
        with self._lock:
            for registration in self._registrations.values():
                if registration.context is not None:
                    registration.context.dispose()
            self._registrations.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)


_registry = ContextRegistry()


def get_registry() -> ContextRegistry:
    """Return the process-wide registry."""
    return _registry


def get_context(key: Hashable = DEFAULT_CONTEXT) -> DatabaseContext:
    """Return a registered context; the default one reads the environment."""
    if key == DEFAULT_CONTEXT:
        _registry.add_npgsql_context(DEFAULT_CONTEXT, EnvironmentConfig(), replace=False)
    return _registry.get(key)


def get_engine(key: Hashable = DEFAULT_CONTEXT) -> Engine:
    """Create (or reuse) the engine of a registered context."""
    return get_context(key).engine


def get_session_factory(key: Hashable = DEFAULT_CONTEXT) -> sessionmaker[Session]:
    """Return the sessionmaker bound to a registered context's engine."""
    return get_context(key).session_factory


def get_session(key: Hashable = DEFAULT_CONTEXT) -> Session:
    """Convenience helper for acquiring a new session."""
    return get_session_factory(key)()


def is_in_memory(bind: Union[DatabaseContext, Engine, Connection, Session, None]) -> bool:
    """Return True when ``bind`` is backed by an in-memory SQLite database."""
    if bind is None:
        return False
    if isinstance(bind, DatabaseContext):
        bind = bind.engine
    elif isinstance(bind, Session):
        bind = bind.get_bind()
    url = bind.engine.url
    if url.get_backend_name() != "sqlite":
        return False
    database = url.database or ""
    return database in ("", ":memory:") or url.query.get("mode") == "memory" or "mode=memory" in database


__all__ = [
    "ContextRegistry",
    "DEFAULT_CONTEXT",
    "DatabaseContext",
    "MigrationOptions",
    "build_context",
    "get_context",
    "get_engine",
    "get_registry",
    "get_session",
    "get_session_factory",
    "is_in_memory",
]
