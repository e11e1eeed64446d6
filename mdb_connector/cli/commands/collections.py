"""
Collections command for CLI.

Lists the collections visible through a credential record.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import asyncio
import sys
from pathlib import Path

import click

from ...config import ConnectorSettings
from ...core.runner import StaticCredentialSource
from ...database.discovery import list_collection_options
from ...exceptions import ConfigurationError
from ..utils import format_output, load_json_object


@click.command()
@click.argument("credentials_file", type=click.Path(exists=True, path_type=Path))
@click.option("--timeout", type=int, default=None, help="Connection timeout in milliseconds")
@click.option(
    "--format",
    "format_type",
    type=click.Choice(["names", "json"]),
    default="names",
    show_default=True,
    help="Output format",
)
def collections(credentials_file: Path, timeout: int | None, format_type: str) -> None:
    """
    List collections in the credential record's database.

    CREDENTIALS_FILE: Path to a JSON credential record

    Examples:
        mdb-connector collections credentials.json
        mdb-connector collections credentials.json --format json
    """
    record = load_json_object(credentials_file, "Credentials")
    try:
        settings = ConnectorSettings(connection_timeout_ms=timeout)
        settings.validate()
    except ConfigurationError as e:
        raise click.ClickException(e.message) from e

    options = asyncio.run(
        list_collection_options(StaticCredentialSource.for_record(record), settings)
    )

    if format_type == "json":
        click.echo(format_output(options, "json"))
    else:
        for option in options:
            if option["value"]:
                click.echo(option["name"])
            else:
                click.echo(click.style(f"{option['name']}: {option['description']}", fg="red"))

    # Error entries carry an empty value
    if any(not option["value"] for option in options):
        sys.exit(1)
