"""Tests for settings, database config and service wiring."""

from pathlib import Path

import pytest

from tableforge.api import TableServices
from tableforge.config import DEV_SECRET_KEY, Settings
from tableforge.core.types import NamingConvention
from tableforge.persistence import DatabaseConfig, create_repository

USERS_YAML = """
table:
  name: users
  columns:
    - {key: name, sortable: true}
  exports:
    - {name: csv}
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DATABASE_URL",
        "TABLEFORGE_DB_PATH",
        "TABLEFORGE_SECRET_KEY",
        "TABLEFORGE_TOKEN_SALT",
        "TABLEFORGE_TOKEN_MAX_AGE",
        "TABLEFORGE_NAMING",
        "TABLEFORGE_TABLES_PATH",
        "TABLEFORGE_DISABLE_AUTH",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDatabaseConfig:
    """Tests for DatabaseConfig.from_env."""

    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/app")
        monkeypatch.setenv("TABLEFORGE_DB_PATH", "/tmp/ignored.db")
        config = DatabaseConfig.from_env()
        assert config.is_postgresql
        assert config.sqlalchemy_url == "postgresql+psycopg://u:p@db/app"

    def test_db_path(self, monkeypatch):
        monkeypatch.setenv("TABLEFORGE_DB_PATH", "/tmp/tables.db")
        config = DatabaseConfig.from_env()
        assert config.url == "sqlite:////tmp/tables.db"
        assert config.sqlite_path == Path("/tmp/tables.db")

    def test_default_under_base_path(self, tmp_path):
        config = DatabaseConfig.from_env(tmp_path)
        assert config.url == f"sqlite:///{tmp_path / 'data' / 'tableforge.db'}"

    def test_memory_has_no_path(self):
        assert DatabaseConfig("sqlite:///:memory:").sqlite_path is None

    def test_create_repository_makes_directory(self, tmp_path):
        config = DatabaseConfig(f"sqlite:///{tmp_path / 'nested' / 'app.db'}")
        create_repository(config)
        assert (tmp_path / "nested").is_dir()

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="Unsupported database URL scheme"):
            create_repository(DatabaseConfig("mysql://localhost/app"))


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self, tmp_path):
        settings = Settings.from_env(tmp_path)
        assert settings.secret_key == DEV_SECRET_KEY
        assert settings.token_salt == "tableforge_action_v1"
        assert settings.token_max_age == 86400
        assert settings.naming == NamingConvention.CAMEL
        assert settings.tables_path == tmp_path / "tables"
        assert settings.disable_auth is False

    def test_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TABLEFORGE_SECRET_KEY", "s3cret")
        monkeypatch.setenv("TABLEFORGE_TOKEN_SALT", "salt")
        monkeypatch.setenv("TABLEFORGE_TOKEN_MAX_AGE", "60")
        monkeypatch.setenv("TABLEFORGE_NAMING", "SNAKE")
        monkeypatch.setenv("TABLEFORGE_TABLES_PATH", str(tmp_path))
        monkeypatch.setenv("TABLEFORGE_DISABLE_AUTH", "true")

        settings = Settings.from_env()
        assert settings.secret_key == "s3cret"
        assert settings.token_salt == "salt"
        assert settings.token_max_age == 60
        assert settings.naming == NamingConvention.SNAKE
        assert settings.tables_path == tmp_path
        assert settings.disable_auth is True

    def test_invalid_max_age(self, monkeypatch):
        monkeypatch.setenv("TABLEFORGE_TOKEN_MAX_AGE", "forever")
        with pytest.raises(ValueError, match="TABLEFORGE_TOKEN_MAX_AGE"):
            Settings.from_env()

    def test_invalid_naming(self, monkeypatch):
        monkeypatch.setenv("TABLEFORGE_NAMING", "kebab")
        with pytest.raises(ValueError):
            Settings.from_env()


class TestTableServices:
    """Tests for wiring services from settings."""

    def test_from_settings(self, tmp_path):
        tables = tmp_path / "tables"
        tables.mkdir()
        (tables / "users.yaml").write_text(USERS_YAML)
        settings = Settings(
            tables_path=tables,
            database=DatabaseConfig(f"sqlite:///{tmp_path / 'app.db'}"),
        )

        services = TableServices.from_settings(settings)
        assert services.registry.list_tables() == ["users"]
        assert services.views_service is not None
        assert services.registry.get("users").repository is not None
        token = services.token_service.sign("users")
        assert services.token_service.verify(token).table == "users"

    def test_missing_tables_directory(self, tmp_path):
        settings = Settings(
            tables_path=tmp_path / "missing",
            database=DatabaseConfig(f"sqlite:///{tmp_path / 'app.db'}"),
        )
        assert len(TableServices.from_settings(settings).registry) == 0

    def test_token_settings_applied(self, registry):
        settings = Settings(secret_key="abc", token_salt="salt", token_max_age=5)
        services = TableServices.create(registry, settings)
        assert services.token_service.salt == "salt"
        assert services.token_service.max_age == 5
        assert services.views_service is None
