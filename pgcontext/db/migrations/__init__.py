"""Alembic helpers that honour the configured migration history table."""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from sqlalchemy import engine_from_config, pool

from ..config_source import ConfigLookup, EnvironmentConfig
from ..session import MigrationOptions
from ..settings import OverrideVariableNames, ResolutionResult, resolve

logger = logging.getLogger("alembic.env")


def resolve_for_alembic(
    package: str,
    config: Optional[ConfigLookup] = None,
    override_names: Optional[OverrideVariableNames] = None,
) -> Tuple[ResolutionResult, MigrationOptions]:
    """Resolve the connection and migration options for ``package``."""
    result = resolve(config if config is not None else EnvironmentConfig(), override_names)
    options = MigrationOptions.from_result(package, result)
    if options is None:
        raise ValueError("A migrations package name is required")
    if options.version_table:
        logger.info(
            "Recording revisions in %s",
            f"{options.version_table_schema}.{options.version_table}"
            if options.version_table_schema
            else options.version_table,
        )
    return result, options


def run_migrations_offline(
    context: Any,
    result: ResolutionResult,
    options: MigrationOptions,
    target_metadata: Any = None,
) -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=result.url().render_as_string(hide_password=False),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **options.alembic_kwargs(),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(
    context: Any,
    result: ResolutionResult,
    options: MigrationOptions,
    target_metadata: Any = None,
) -> None:
    """Run migrations in 'online' mode."""
    config = context.config
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = result.url().render_as_string(hide_password=False)

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, **options.alembic_kwargs())

        with context.begin_transaction():
            context.run_migrations()


def run_migrations(
    context: Any,
    package: str,
    config: Optional[ConfigLookup] = None,
    override_names: Optional[OverrideVariableNames] = None,
    target_metadata: Any = None,
) -> None:
    """Entry point for an ``env.py``: pick offline or online mode."""
    result, options = resolve_for_alembic(package, config, override_names)
    if context.is_offline_mode():
        run_migrations_offline(context, result, options, target_metadata)
    else:
        run_migrations_online(context, result, options, target_metadata)


__all__ = [
    "resolve_for_alembic",
    "run_migrations",
    "run_migrations_offline",
    "run_migrations_online",
]
