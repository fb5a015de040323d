"""Table token CLI commands: sign and verify."""

import json
from pathlib import Path

import click

from tableforge.cli.helpers import load_registry, load_settings
from tableforge.errors import TableError
from tableforge.tokens.service import TokenService

tables_path_option = click.option(
    "--path",
    "tables_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory of table YAML files.",
)


def _token_service(tables_path: Path | None) -> TokenService:
    settings = load_settings(tables_path)
    return TokenService(
        settings.secret_key,
        registry=load_registry(settings),
        salt=settings.token_salt,
        max_age=settings.token_max_age,
    )


@click.group()
def token():
    """Table token commands."""
    pass


@token.command("sign")
@click.argument("name")
@click.option("--context", "context_json", default=None, help="Token context as a JSON object.")
@tables_path_option
def sign_cmd(name: str, context_json: str | None, tables_path: Path | None):
    """Mint a token for a table."""
    service = _token_service(tables_path)
    if service.registry.get(name) is None:
        click.echo(f"Error: Table '{name}' not found", err=True)
        raise SystemExit(1)

    context = None
    if context_json:
        try:
            context = json.loads(context_json)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not valid JSON: {e}", param_hint="--context")
        if not isinstance(context, dict):
            raise click.BadParameter("must be a JSON object", param_hint="--context")

    click.echo(service.sign(name, context))


@token.command("verify")
@click.argument("value")
@tables_path_option
def verify_cmd(value: str, tables_path: Path | None):
    """Verify a token and print its table and context."""
    service = _token_service(tables_path)
    try:
        verified = service.verify(value)
    except TableError as e:
        click.echo(click.style(f"Invalid token: {e.message}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(json.dumps({
        "table": verified.table,
        "context": verified.context,
        "issuedAt": verified.issued_at,
    }, indent=2))
