"""
Run command for CLI.

Runs one operation over a batch of items and prints the output items as JSON.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import asyncio
from pathlib import Path
from typing import Any

import click

from ...config import ConnectorSettings
from ...constants import READ_PREFERENCES
from ...core.runner import (ITEM_FAILURES, BatchRunner, StaticCredentialSource,
                            StaticParameterSource)
from ...observability.events import LoggingEventSink
from ...observability.metrics import MetricsCollector
from ..utils import error_exception, format_output, load_json_file, load_json_object

# Keys of an operation file that are not operation parameters
SETTINGS_KEY = "settings"
ITEM_PARAMETERS_KEY = "itemParameters"


def _load_items(input_file: Path | None) -> list[Any]:
    if input_file is None:
        return []
    items = load_json_file(input_file, "Input")
    if isinstance(items, dict):
        return [items]
    if not isinstance(items, list):
        raise click.ClickException(f"Input file must contain a JSON array or object: {input_file}")
    return items


def _build_settings(
    operation: dict[str, Any],
    timeout: int | None,
    read_preference: str | None,
    continue_on_fail: bool | None,
) -> ConnectorSettings:
    settings = dict(operation.get(SETTINGS_KEY) or {})
    if timeout is not None:
        settings["connectionTimeout"] = timeout
    if read_preference is not None:
        settings["readPreference"] = read_preference
    if continue_on_fail is not None:
        settings["continueOnFail"] = continue_on_fail
    return ConnectorSettings.from_mapping(settings)


@click.command()
@click.argument("credentials_file", type=click.Path(exists=True, path_type=Path))
@click.argument("operation_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--input",
    "-i",
    "input_file",
    type=click.Path(exists=True, path_type=Path),
    help="JSON array of input items",
)
@click.option(
    "--continue-on-fail/--fail-fast",
    default=None,
    help="Record item failures on the item instead of aborting",
)
@click.option("--timeout", type=int, default=None, help="Connection timeout in milliseconds")
@click.option(
    "--read-preference",
    type=click.Choice(READ_PREFERENCES),
    default=None,
    help="Read preference mode",
)
@click.option("--show-metrics", is_flag=True, help="Print operation metrics to stderr")
@click.option(
    "--format",
    "format_type",
    type=click.Choice(["json", "compact"]),
    default="json",
    show_default=True,
    help="Output format",
)
def run(
    credentials_file: Path,
    operation_file: Path,
    input_file: Path | None,
    continue_on_fail: bool | None,
    timeout: int | None,
    read_preference: str | None,
    show_metrics: bool,
    format_type: str,
) -> None:
    """
    Run an operation over a batch of items.

    CREDENTIALS_FILE: Path to a JSON credential record

    OPERATION_FILE: Path to a JSON object of operation parameters
    (operation, collection, query, ...). Optional "settings" holds
    connectionTimeout/readPreference/continueOnFail and optional
    "itemParameters" holds per-item parameter overrides.

    Examples:
        mdb-connector run credentials.json find.json
        mdb-connector run credentials.json insert.json --input items.json --continue-on-fail
    """
    record = load_json_object(credentials_file, "Credentials")
    operation = load_json_object(operation_file, "Operation")
    items = _load_items(input_file)

    item_parameters = operation.get(ITEM_PARAMETERS_KEY) or []
    if not isinstance(item_parameters, list):
        raise click.ClickException(f'"{ITEM_PARAMETERS_KEY}" must be a JSON array')
    parameters = {
        key: value
        for key, value in operation.items()
        if key not in (SETTINGS_KEY, ITEM_PARAMETERS_KEY)
    }

    metrics = MetricsCollector()
    try:
        settings = _build_settings(operation, timeout, read_preference, continue_on_fail)
        runner = BatchRunner(
            parameters=StaticParameterSource(parameters, item_parameters),
            credentials=StaticCredentialSource.for_record(record),
            settings=settings,
            events=LoggingEventSink(metrics=metrics),
        )
        results = asyncio.run(runner.run(items))
    except ITEM_FAILURES as e:
        raise error_exception(e) from e
    finally:
        if show_metrics:
            click.echo(format_output(metrics.get_summary(), "json"), err=True)

    click.echo(format_output([item.to_dict() for item in results], format_type))
