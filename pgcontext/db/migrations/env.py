"""Alembic environment configuration."""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context

from pgcontext.db.config_source import EnvironmentConfig
from pgcontext.db.migrations import run_migrations

config = context.config

if config.config_file_name:
    fileConfig(config.config_file_name)

# Applications may hand their MetaData over via ``Config.attributes``.
target_metadata = config.attributes.get("target_metadata")

run_migrations(
    context,
    package=config.get_main_option("migrations_package") or "pgcontext.db.migrations",
    config=EnvironmentConfig(env_file=config.get_main_option("env_file") or ".env"),
    override_names=config.attributes.get("override_names"),
    target_metadata=target_metadata,
)
