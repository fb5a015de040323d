"""Where table rows and saved views live, and the repository over it."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from tableforge.persistence.sql_repository import SQLAlchemyRepository

DEFAULT_DB_FILE = "tableforge.db"


@dataclass
class DatabaseConfig:
    """A database URL, either ``sqlite:///<path>`` or ``postgresql://...``."""

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Resolve the database from the environment.

        ``DATABASE_URL`` is used as-is. Otherwise ``TABLEFORGE_DB_PATH``
        names a SQLite file, falling back to ``data/tableforge.db`` under
        base_path (or the working directory).
        """
        if os.environ.get("DATABASE_URL"):
            return cls(url=os.environ["DATABASE_URL"])

        db_path = os.environ.get("TABLEFORGE_DB_PATH")
        if not db_path:
            db_path = str(base_path / "data" / DEFAULT_DB_FILE) if base_path else DEFAULT_DB_FILE
        return cls(url=f"sqlite:///{db_path}")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def sqlite_path(self) -> Path | None:
        """File of a SQLite database; None for in-memory or non-SQLite URLs."""
        if not self.is_sqlite:
            return None
        path = self.url.removeprefix("sqlite:///")
        if path in ("", ":memory:"):
            return None
        return Path(path)

    @property
    def sqlalchemy_url(self) -> str:
        """The URL with the psycopg (v3) driver named for PostgreSQL."""
        if self.url.startswith("postgresql://"):
            return "postgresql+psycopg://" + self.url.removeprefix("postgresql://")
        return self.url


def create_repository(config: DatabaseConfig) -> SQLAlchemyRepository:
    """Open a repository on the configured database.

    The directory of a SQLite file is created if missing.

    Raises:
        ValueError: For URL schemes other than sqlite and postgresql
    """
    if not (config.is_sqlite or config.is_postgresql):
        raise ValueError(f"Unsupported database URL scheme: {config.url}")

    if config.sqlite_path is not None:
        config.sqlite_path.parent.mkdir(parents=True, exist_ok=True)

    return SQLAlchemyRepository(config.sqlalchemy_url)
