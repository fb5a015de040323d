"""Persistence layer - repository protocol and SQLAlchemy implementation."""

from tableforge.persistence.repository import Criteria, Repository
from tableforge.persistence.sql_repository import SQLAlchemyRepository, quote_identifier
from tableforge.persistence.config import DatabaseConfig, create_repository

__all__ = [
    "Criteria",
    "DatabaseConfig",
    "Repository",
    "SQLAlchemyRepository",
    "create_repository",
    "quote_identifier",
]
