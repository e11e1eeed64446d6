"""
Utility functions for CLI commands.

This module provides shared utilities for CLI operations.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import json
from pathlib import Path
from typing import Any

import click

from ..core.errors import ErrorCause, classify_error


def load_json_file(file_path: Path, label: str = "JSON") -> Any:
    """
    Load a JSON file.

    Args:
        file_path: Path to the file
        label: What the file holds, used in error messages

    Returns:
        Decoded JSON value

    Raises:
        click.ClickException: If file doesn't exist or is invalid JSON
    """
    if not file_path.exists():
        raise click.ClickException(f"{label} file not found: {file_path}")

    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {label.lower()} file: {e}") from e


def load_json_object(file_path: Path, label: str) -> dict[str, Any]:
    """Load a JSON file that must hold an object."""
    data = load_json_file(file_path, label)
    if not isinstance(data, dict):
        raise click.ClickException(f"{label} file must contain a JSON object: {file_path}")
    return data


def format_output(data: Any, format_type: str) -> str:
    """
    Format a result for output.

    Args:
        data: JSON-compatible value
        format_type: Output format ('json', 'compact')

    Returns:
        Formatted string representation
    """
    if format_type == "compact":
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def error_exception(error: BaseException) -> click.ClickException:
    """ClickException carrying the classified, user-facing message of ``error``."""
    classified = classify_error(error)
    if classified.cause is ErrorCause.UNKNOWN:
        return click.ClickException(classified.message)
    return click.ClickException(f"[{classified.cause.value}] {classified.message}")
