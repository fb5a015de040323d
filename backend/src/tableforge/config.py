"""Application settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from tableforge.core.types import NamingConvention
from tableforge.persistence.config import DatabaseConfig
from tableforge.tokens.service import TokenService

DEV_SECRET_KEY = "dev-secret-key-change-in-production"


def _flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


@dataclass
class Settings:
    """Runtime configuration of the table API.

    Attributes:
        secret_key: Signs table tokens and bearer JWTs
        token_salt: Domain-separation salt for table tokens
        token_max_age: Table token lifetime in seconds
        naming: Key convention of every serialized payload
        tables_path: Directory of YAML table definitions
        disable_auth: Skip bearer JWT processing entirely
        database: Database the views store (and YAML tables) use
    """

    secret_key: str = DEV_SECRET_KEY
    token_salt: str = TokenService.DEFAULT_SALT
    token_max_age: int = TokenService.DEFAULT_MAX_AGE
    naming: NamingConvention = NamingConvention.CAMEL
    tables_path: Path | None = None
    disable_auth: bool = False
    database: DatabaseConfig = field(
        default_factory=lambda: DatabaseConfig("sqlite:///tableforge.db")
    )

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> Settings:
        """Create settings from environment variables.

        TABLEFORGE_SECRET_KEY, TABLEFORGE_TOKEN_SALT, TABLEFORGE_TOKEN_MAX_AGE,
        TABLEFORGE_NAMING (camel|snake), TABLEFORGE_TABLES_PATH (default:
        {base_path}/tables), TABLEFORGE_DISABLE_AUTH, plus the database
        variables read by DatabaseConfig.from_env.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        tables_path = os.environ.get("TABLEFORGE_TABLES_PATH")
        if tables_path:
            resolved_tables = Path(tables_path)
        elif base_path is not None:
            resolved_tables = base_path / "tables"
        else:
            resolved_tables = None

        max_age = os.environ.get("TABLEFORGE_TOKEN_MAX_AGE")
        try:
            token_max_age = int(max_age) if max_age else TokenService.DEFAULT_MAX_AGE
        except ValueError:
            raise ValueError(f"TABLEFORGE_TOKEN_MAX_AGE must be an integer, got '{max_age}'")

        return cls(
            secret_key=os.environ.get("TABLEFORGE_SECRET_KEY", DEV_SECRET_KEY),
            token_salt=os.environ.get("TABLEFORGE_TOKEN_SALT", TokenService.DEFAULT_SALT),
            token_max_age=token_max_age,
            naming=NamingConvention(os.environ.get("TABLEFORGE_NAMING", "camel").lower()),
            tables_path=resolved_tables,
            disable_auth=_flag("TABLEFORGE_DISABLE_AUTH"),
            database=DatabaseConfig.from_env(base_path),
        )
