"""
MDB_CONNECTOR - MongoDB Connector

Workflow-node style MongoDB connector: runs find, insert, update, delete and
aggregate over a batch of items on a single connection, with collection
discovery and credential connectivity tests.
"""

from .config import ConnectorSettings
# Core
from .core import (BatchItem, BatchRunner, ConnectionManager, ConnectionSpec,
                   ErrorCause, OperationExecutor, OperationKind,
                   StaticCredentialSource, StaticParameterSource,
                   classify_error, parse_command, resolve_connection_spec)
# Database helpers
from .database import list_collection_options, test_connection
from .exceptions import (CommandError, CommandParseError,
                         CommandValidationError, ConfigurationError,
                         MalformedConnectionStringError, MongoDBConnectorError,
                         TransportError)

__version__ = "0.1.0"

__all__ = [
    # Core
    "BatchRunner",
    "BatchItem",
    "StaticParameterSource",
    "StaticCredentialSource",
    "ConnectionManager",
    "ConnectionSpec",
    "resolve_connection_spec",
    "OperationKind",
    "OperationExecutor",
    "parse_command",
    "ErrorCause",
    "classify_error",
    "ConnectorSettings",
    # Database helpers
    "list_collection_options",
    "test_connection",
    # Exceptions
    "MongoDBConnectorError",
    "ConfigurationError",
    "MalformedConnectionStringError",
    "CommandError",
    "CommandParseError",
    "CommandValidationError",
    "TransportError",
]
