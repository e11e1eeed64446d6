"""
Core connector components.

Connection resolution, command parsing, operation execution, error
classification and the batch runner.
"""

from .commands import (FIELD_DEFAULTS, DeleteMode, InsertMode, OperationKind,
                       UpdateMode, fields_for, parse_command)
from .connection import ConnectionManager
from .connection_spec import (ConnectionProtocol, ConnectionSpec,
                              ConnectionStringConfig, IndividualParamsConfig,
                              connection_config_from_record,
                              resolve_connection_spec, resolve_from_record)
from .errors import ClassifiedError, ErrorCause, classify_error
from .executor import OperationExecutor
from .runner import (BatchItem, BatchRunner, CredentialSource, ItemError,
                     ParameterSource, StaticCredentialSource,
                     StaticParameterSource, resolve_credentials)

__all__ = [
    # Connection
    "ConnectionProtocol",
    "ConnectionSpec",
    "ConnectionStringConfig",
    "IndividualParamsConfig",
    "connection_config_from_record",
    "resolve_connection_spec",
    "resolve_from_record",
    "ConnectionManager",
    # Commands
    "OperationKind",
    "InsertMode",
    "UpdateMode",
    "DeleteMode",
    "FIELD_DEFAULTS",
    "fields_for",
    "parse_command",
    "OperationExecutor",
    # Errors
    "ErrorCause",
    "ClassifiedError",
    "classify_error",
    # Runner
    "BatchItem",
    "BatchRunner",
    "ItemError",
    "ParameterSource",
    "CredentialSource",
    "StaticParameterSource",
    "StaticCredentialSource",
    "resolve_credentials",
]
