"""Shared fixtures: a seeded users database and a users table over it."""

import pytest
from sqlalchemy import text

from tableforge.persistence import SQLAlchemyRepository
from tableforge.table import TableBuilder, TableRegistry
from tableforge.tokens import TokenService

SECRET = "test-secret-key-for-testing-only"

USERS = [
    (1, "Alice", "alice@example.com", "active", 34, True, "2024-01-05"),
    (2, "Bob", "bob@example.com", "inactive", 27, False, "2024-02-10"),
    (3, "Carol", "carol@example.com", "active", 45, False, "2024-03-15"),
    (4, "Dave", "dave@example.com", "pending", 19, False, "2024-04-20"),
    (5, "Eve", "eve@example.com", "active", 52, True, "2024-05-25"),
]


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def repository(database_url):
    """Repository over a fresh database holding five users."""
    repo = SQLAlchemyRepository(database_url)
    with repo.engine.begin() as conn:
        conn.execute(text("""
            CREATE TABLE users (
                id          INTEGER PRIMARY KEY,
                name        TEXT NOT NULL,
                email       TEXT,
                status      TEXT,
                age         INTEGER,
                is_admin    BOOLEAN NOT NULL DEFAULT FALSE,
                created_at  TEXT
            )
        """))
        conn.execute(
            text("""
                INSERT INTO users (id, name, email, status, age, is_admin, created_at)
                VALUES (:id, :name, :email, :status, :age, :is_admin, :created_at)
            """),
            [
                dict(zip(
                    ("id", "name", "email", "status", "age", "is_admin", "created_at"),
                    user,
                ))
                for user in USERS
            ],
        )
    return repo


@pytest.fixture
def users_builder(repository):
    """Users table with columns, filters and config but no actions yet."""
    return (
        TableBuilder("users")
        .resource("users", repository)
        .config(default_sort=("name", "asc"), default_per_page=2, searchable=["name", "email"])
        .text_column("name", sortable=True)
        .text_column("email")
        .badge_column("status", colors={"active": "green", "inactive": "gray"})
        .numeric_column("age", sortable=True)
        .boolean_column("is_admin", label="Admin")
        .date_column("created_at", sortable=True, visible=False)
        .action_column()
        .text_filter("name")
        .set_filter("status", options=["active", "inactive", "pending"])
        .numeric_filter("age")
        .boolean_filter("is_admin")
    )


@pytest.fixture
def users_table(users_builder):
    return (
        users_builder
        .action("edit", url="/users/{id}/edit")
        .action(
            "delete",
            handle=lambda row: f"Deleted {row['name']}",
            disabled=lambda row: row["is_admin"],
            confirmation=True,
        )
        .bulk_action("activate", handle=lambda rows: None, chunk_size=2)
        .export("csv")
        .build()
    )


@pytest.fixture
def registry(users_table):
    return TableRegistry([users_table])


@pytest.fixture
def secret():
    return SECRET


@pytest.fixture
def token_service(registry, secret):
    return TokenService(secret, registry=registry)
