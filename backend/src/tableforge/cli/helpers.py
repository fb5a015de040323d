"""Shared helpers for CLI commands."""

from pathlib import Path

import click

from tableforge.config import Settings
from tableforge.errors import DefinitionError
from tableforge.table.loader import TableLoader
from tableforge.table.registry import TableRegistry


def resolve_base_path() -> Path:
    """Repository root, also when run from /backend."""
    cwd = Path.cwd()
    return cwd.parent if cwd.name == "backend" else cwd


def load_settings(tables_path: Path | None = None) -> Settings:
    settings = Settings.from_env(resolve_base_path())
    if tables_path is not None:
        settings.tables_path = tables_path
    return settings


def load_registry(settings: Settings, repository=None) -> TableRegistry:
    """Load the YAML tables named by settings, exiting on definition errors."""
    if settings.tables_path is None or not settings.tables_path.is_dir():
        click.echo(f"Error: Tables directory not found at {settings.tables_path}", err=True)
        raise SystemExit(1)

    loader = TableLoader(settings.tables_path, repository)
    try:
        loader.load_all()
    except DefinitionError as e:
        click.echo(click.style(f"Invalid table definition: {e}", fg="red"), err=True)
        raise SystemExit(1)
    return TableRegistry(loader.list_tables())
