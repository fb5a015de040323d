"""Table definition CLI commands: list and show."""

import json
from pathlib import Path

import click

from tableforge.cli.helpers import load_registry, load_settings
from tableforge.resource.serializers import serialize_definition

tables_path_option = click.option(
    "--path",
    "tables_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory of table YAML files (default: TABLEFORGE_TABLES_PATH or ./tables).",
)


@click.group()
def tables():
    """Table definition commands."""
    pass


@tables.command("list")
@tables_path_option
def list_cmd(tables_path: Path | None):
    """List table definitions."""
    registry = load_registry(load_settings(tables_path))
    names = registry.list_tables()
    if not names:
        click.echo("No tables defined.")
        return

    for name in sorted(names):
        table = registry.get(name)
        click.echo(
            f"  {name} ({len(table.columns)} columns, {len(table.filters)} filters, "
            f"{len(table.actions)} actions, {len(table.bulk_actions)} bulk actions, "
            f"{len(table.exports)} exports)"
        )


@tables.command("show")
@click.argument("name")
@tables_path_option
def show_cmd(name: str, tables_path: Path | None):
    """Print the serialized definition of one table."""
    settings = load_settings(tables_path)
    table = load_registry(settings).get(name)
    if table is None:
        click.echo(f"Error: Table '{name}' not found", err=True)
        raise SystemExit(1)

    data = {"name": table.name, "resource": table.resource}
    data.update(serialize_definition(table, settings.naming))
    click.echo(json.dumps(data, indent=2, default=str))
