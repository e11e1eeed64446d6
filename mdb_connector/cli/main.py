"""
Entry point for the ``mdb-connector`` command.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging

import click

from .. import __version__
from .commands.collections import collections
from .commands.connection import test_connection_command
from .commands.run import run


@click.group()
@click.version_option(__version__, prog_name="mdb-connector")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """
    MongoDB connector: run operations, list collections, test credentials.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(test_connection_command)
cli.add_command(collections)
cli.add_command(run)


if __name__ == "__main__":
    cli()
