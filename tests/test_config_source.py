"""Tests for configuration sources."""

from __future__ import annotations

from pgcontext.db.config_source import ConfigLookup, EnvironmentConfig, MappingConfig


def test_mapping_config_lookups() -> None:
    config = MappingConfig({"DB_HOST": "localhost"}, {"db": "Host=a"})

    assert config.get("DB_HOST") == "localhost"
    assert config.get("DB_PORT") is None
    assert config.get_connection_string("db") == "Host=a"
    assert config.get_connection_string("other") is None


def test_mapping_config_with_values_copies() -> None:
    config = MappingConfig({"DB_HOST": "a"})

    updated = config.with_values(DB_HOST="b", DB_PORT="1")

    assert config.get("DB_HOST") == "a"
    assert updated.get("DB_HOST") == "b"
    assert updated.get("DB_PORT") == "1"


def test_sources_satisfy_protocol() -> None:
    assert isinstance(MappingConfig(), ConfigLookup)
    assert isinstance(EnvironmentConfig({}), ConfigLookup)


def test_environment_connection_strings_section() -> None:
    config = EnvironmentConfig({"ConnectionStrings__db": "Host=a", "DB": "db"})

    assert config.get("DB") == "db"
    assert config.get_connection_string("db") == "Host=a"
    assert config.get_connection_string("missing") is None


def test_environment_falls_back_to_env_file(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text('DB_HOST=filehost\nDB_PORT=6000\nConnectionStrings__db="Host=x;Port=1"\n')

    config = EnvironmentConfig({"DB_PORT": "7000"}, env_file=env_file)

    assert config.get("DB_HOST") == "filehost"
    assert config.get("DB_PORT") == "7000"
    assert config.get_connection_string("db") == "Host=x;Port=1"


def test_missing_env_file_is_ignored(tmp_path) -> None:
    config = EnvironmentConfig({"DB_HOST": "a"}, env_file=tmp_path / "nope.env")

    assert config.get("DB_HOST") == "a"
    assert config.get("DB_PORT") is None
