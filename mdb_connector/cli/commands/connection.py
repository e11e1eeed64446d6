"""
Test-connection command for CLI.

Checks that a credential record can reach its server.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import asyncio
import sys
from pathlib import Path

import click

from ...constants import DEFAULT_CONNECTION_TIMEOUT_MS
from ...database.connectivity import test_connection
from ..utils import load_json_object


@click.command(name="test-connection")
@click.argument("credentials_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=DEFAULT_CONNECTION_TIMEOUT_MS,
    show_default=True,
    help="Connection timeout in milliseconds",
)
def test_connection_command(credentials_file: Path, timeout: int) -> None:
    """
    Test a MongoDB credential record.

    CREDENTIALS_FILE: Path to a JSON credential record

    Examples:
        mdb-connector test-connection credentials.json
        mdb-connector test-connection credentials.json --timeout 2000
    """
    record = load_json_object(credentials_file, "Credentials")
    result = asyncio.run(test_connection(record, connection_timeout_ms=timeout))

    if result["success"]:
        click.echo(click.style(f"✅ {result['message']}", fg="green"))
        sys.exit(0)
    click.echo(click.style(f"❌ {result['message']}", fg="red"))
    sys.exit(1)
