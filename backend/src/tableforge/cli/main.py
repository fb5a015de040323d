"""TableForge CLI entry point."""

import click


@click.group()
def cli():
    """TableForge: table resource definitions, exports and tokens."""
    pass


# Register subcommand groups
from tableforge.cli.export_cmd import export  # noqa: E402
from tableforge.cli.tables_cmd import tables  # noqa: E402
from tableforge.cli.token_cmd import token  # noqa: E402

cli.add_command(tables)
cli.add_command(export)
cli.add_command(token)
