"""
Configuration management for MDB_CONNECTOR.

Connector settings come from three places, in order of precedence: explicit
constructor arguments, the host's settings object (``from_mapping``), and
environment variables.
"""

import os
from collections.abc import Mapping
from typing import Any

from .constants import (
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_CONTINUE_ON_FAIL,
    DEFAULT_READ_PREFERENCE,
    MIN_CONNECTION_TIMEOUT_MS,
    READ_PREFERENCES,
)
from .exceptions import ConfigurationError

ENV_CONNECTION_TIMEOUT_MS = "MDB_CONNECTOR_CONNECTION_TIMEOUT_MS"
ENV_READ_PREFERENCE = "MDB_CONNECTOR_READ_PREFERENCE"
ENV_CONTINUE_ON_FAIL = "MDB_CONNECTOR_CONTINUE_ON_FAIL"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return _parse_bool(value)


class ConnectorSettings:
    """
    Settings for a batch run.

    Example:
        # Using environment variables
        settings = ConnectorSettings()

        # From the host's settings object
        settings = ConnectorSettings.from_mapping(
            {"connectionTimeout": 10000, "continueOnFail": True}
        )

        # Or using direct parameters
        settings = ConnectorSettings(connection_timeout_ms=2000)
    """

    def __init__(
        self,
        connection_timeout_ms: int | None = None,
        read_preference: str | None = None,
        continue_on_fail: bool | None = None,
    ):
        """
        Initialize settings.

        Args:
            connection_timeout_ms: Server selection and connect timeout in ms
                (defaults to MDB_CONNECTOR_CONNECTION_TIMEOUT_MS or 5000)
            read_preference: Read preference mode
                (defaults to MDB_CONNECTOR_READ_PREFERENCE or "primary")
            continue_on_fail: Record per-item failures instead of aborting
                (defaults to MDB_CONNECTOR_CONTINUE_ON_FAIL or false)
        """
        if connection_timeout_ms is None:
            connection_timeout_ms = os.getenv(
                ENV_CONNECTION_TIMEOUT_MS, str(DEFAULT_CONNECTION_TIMEOUT_MS)
            )
        try:
            self.connection_timeout_ms = int(connection_timeout_ms)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"connectionTimeout must be a number, got {connection_timeout_ms!r}",
                config_key="connectionTimeout",
            ) from e

        self.read_preference = read_preference or os.getenv(
            ENV_READ_PREFERENCE, DEFAULT_READ_PREFERENCE
        )
        self.continue_on_fail = (
            _env_bool(ENV_CONTINUE_ON_FAIL, DEFAULT_CONTINUE_ON_FAIL)
            if continue_on_fail is None
            else _parse_bool(continue_on_fail)
        )

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any] | None) -> "ConnectorSettings":
        """
        Build settings from the host's settings object.

        Recognized keys: ``connectionTimeout``, ``readPreference``,
        ``continueOnFail``. Missing keys fall back to the environment.
        """
        settings = settings or {}
        return cls(
            connection_timeout_ms=settings.get("connectionTimeout"),
            read_preference=settings.get("readPreference"),
            continue_on_fail=settings.get("continueOnFail"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If a value is out of range
        """
        if self.connection_timeout_ms < MIN_CONNECTION_TIMEOUT_MS:
            raise ConfigurationError(
                f"connectionTimeout must be >= {MIN_CONNECTION_TIMEOUT_MS}, "
                f"got {self.connection_timeout_ms}",
                config_key="connectionTimeout",
                config_value=self.connection_timeout_ms,
            )

        if self.read_preference not in READ_PREFERENCES:
            raise ConfigurationError(
                f"readPreference must be one of {', '.join(READ_PREFERENCES)}, "
                f"got {self.read_preference!r}",
                config_key="readPreference",
                config_value=self.read_preference,
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "connectionTimeout": self.connection_timeout_ms,
            "readPreference": self.read_preference,
            "continueOnFail": self.continue_on_fail,
        }

    def __repr__(self) -> str:
        return f"ConnectorSettings({self.to_dict()!r})"
