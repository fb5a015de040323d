"""Export CLI command."""

import json
from pathlib import Path

import click

from tableforge.api.services import TableServices
from tableforge.cli.helpers import load_settings
from tableforge.errors import TableError


@click.command()
@click.argument("name")
@click.option("--export", "export_name", default="csv", show_default=True, help="Export name.")
@click.option("--filters", default=None, help="Filters as JSON (list or mapping).")
@click.option("--search", default=None, help="Free-text search term.")
@click.option(
    "--output",
    "-o",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: the export's filename).",
)
@click.option(
    "--path",
    "tables_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory of table YAML files.",
)
def export(
    name: str,
    export_name: str,
    filters: str | None,
    search: str | None,
    output: Path | None,
    tables_path: Path | None,
):
    """Export a table's filtered rows to a file."""
    try:
        parsed_filters = json.loads(filters) if filters else None
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--filters")

    services = TableServices.from_settings(load_settings(tables_path))
    if services.registry.get(name) is None:
        click.echo(f"Error: Table '{name}' not found", err=True)
        raise SystemExit(1)

    token = services.token_service.sign(name)
    try:
        export_file = services.export_service.prepare(token, export_name, parsed_filters, search)
    except TableError as e:
        _fail(e)

    target = output or Path(export_file.filename)
    # Rows stream from the database; only a complete file replaces target
    partial = target.with_name(f".{target.name}.part")
    written = False
    try:
        with open(partial, "w", newline="", encoding="utf-8") as f:
            for chunk in export_file.chunks:
                f.write(chunk)
        partial.replace(target)
        written = True
    except TableError as e:
        _fail(e)
    finally:
        if not written:
            partial.unlink(missing_ok=True)

    click.echo(f"Wrote {target}")


def _fail(error: TableError):
    click.echo(click.style(f"Export failed: {error.message}", fg="red"), err=True)
    raise SystemExit(1)
