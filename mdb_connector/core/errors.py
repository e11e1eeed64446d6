"""
Error classification for the MongoDB connector.

Maps driver and connector failures onto a small, stable set of causes with
user-facing messages. Structured information (exception type, server error
code) is used first; message substrings are the fallback, checked in a fixed
priority order.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from pymongo.errors import InvalidURI, OperationFailure

from ..exceptions import (
    CommandError,
    MalformedConnectionStringError,
    MongoDBConnectorError,
    TransportError,
)

logger = logging.getLogger(__name__)

# Server error codes (src/mongo/base/error_codes.yml)
AUTHENTICATION_FAILED_CODE = 18
UNAUTHORIZED_CODE = 13


class ErrorCause(str, Enum):
    """Classified cause of a connect or execute failure."""

    CONNECTION_REFUSED = "connection_refused"
    HOST_UNRESOLVED = "host_unresolved"
    TIMEOUT = "timeout"
    AUTHENTICATION_FAILED = "authentication_failed"
    AUTHORIZATION_FAILED = "authorization_failed"
    SERVER_SELECTION_FAILED = "server_selection_failed"
    MALFORMED_CONNECTION_STRING = "malformed_connection_string"
    PARSE_ERROR = "parse_error"
    UNKNOWN = "unknown"


MESSAGE_TEMPLATES: dict[ErrorCause, str] = {
    ErrorCause.CONNECTION_REFUSED: (
        "Cannot connect to MongoDB server. Connection refused. "
        "Please check if MongoDB is running."
    ),
    ErrorCause.HOST_UNRESOLVED: "Cannot resolve host. Please check the hostname.",
    ErrorCause.TIMEOUT: "Connection timeout. Please check firewall and network settings.",
    ErrorCause.AUTHENTICATION_FAILED: "Authentication failed. Invalid username or password.",
    ErrorCause.AUTHORIZATION_FAILED: (
        "Authorization failed. User does not have access to this database."
    ),
    ErrorCause.SERVER_SELECTION_FAILED: (
        "Unable to connect to MongoDB server. Please check connection settings."
    ),
    ErrorCause.MALFORMED_CONNECTION_STRING: (
        "Invalid connection string format. Please check your connection string."
    ),
    # Passed through verbatim
    ErrorCause.PARSE_ERROR: "{detail}",
    ErrorCause.UNKNOWN: "{detail}",
}

# Checked in order; the first cause with a matching marker wins.
MESSAGE_MARKERS: tuple[tuple[ErrorCause, tuple[str, ...]], ...] = (
    (ErrorCause.CONNECTION_REFUSED, ("ECONNREFUSED", "Connection refused")),
    (
        ErrorCause.HOST_UNRESOLVED,
        (
            "ENOTFOUND",
            "Name or service not known",
            "nodename nor servname provided",
            "getaddrinfo failed",
            "Temporary failure in name resolution",
            "DNS query name does not exist",
            "No address associated with hostname",
        ),
    ),
    (ErrorCause.TIMEOUT, ("ETIMEDOUT", "timed out")),
    (ErrorCause.AUTHENTICATION_FAILED, ("Authentication failed",)),
    (ErrorCause.AUTHORIZATION_FAILED, ("not authorized",)),
    (
        ErrorCause.SERVER_SELECTION_FAILED,
        ("MongoServerSelectionError", "ServerSelectionTimeoutError", "No servers found"),
    ),
    (ErrorCause.MALFORMED_CONNECTION_STRING, ("MongoParseError", "InvalidURI", "Invalid URI")),
)


@dataclass(frozen=True)
class ClassifiedError:
    """Classification result for a failure."""

    cause: ErrorCause
    message: str
    original_message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "cause": self.cause.value,
            "message": self.message,
            "originalMessage": self.original_message,
        }


def describe_error(error: BaseException) -> str:
    """Description used for substring matching: type name plus message."""
    text = str(error) or repr(error)
    return f"{type(error).__name__}: {text}"


def _cause_from_structure(error: BaseException) -> ErrorCause | None:
    if isinstance(error, TransportError):
        return error.cause
    if isinstance(error, MalformedConnectionStringError):
        return error.cause
    if isinstance(error, CommandError):
        return ErrorCause.PARSE_ERROR
    if isinstance(error, InvalidURI):
        return ErrorCause.MALFORMED_CONNECTION_STRING
    if isinstance(error, OperationFailure):
        if error.code == AUTHENTICATION_FAILED_CODE:
            return ErrorCause.AUTHENTICATION_FAILED
        if error.code == UNAUTHORIZED_CODE:
            return ErrorCause.AUTHORIZATION_FAILED
    return None


def _cause_from_message(description: str) -> ErrorCause:
    for cause, markers in MESSAGE_MARKERS:
        if any(marker in description for marker in markers):
            return cause
    return ErrorCause.UNKNOWN


def classify_error(error: BaseException) -> ClassifiedError:
    """
    Classify a failure into an ErrorCause with a user-facing message.

    Args:
        error: Exception raised while connecting or executing

    Returns:
        ClassifiedError with the cause, the message template rendered for that
        cause, and the original message
    """
    if isinstance(error, TransportError) and error.original_message:
        original = error.original_message
    elif isinstance(error, MongoDBConnectorError):
        original = error.message
    else:
        original = str(error) or repr(error)

    cause = _cause_from_structure(error)
    if cause is None:
        cause = _cause_from_message(describe_error(error))

    message = MESSAGE_TEMPLATES[cause].format(detail=original or "Unknown error")
    logger.debug(f"Classified {type(error).__name__} as {cause.value}")
    return ClassifiedError(cause=cause, message=message, original_message=original)


def to_transport_error(error: BaseException, stage: str) -> TransportError:
    """Wrap a driver error into a TransportError carrying its classification."""
    classified = classify_error(error)
    return TransportError(
        classified.message,
        cause=classified.cause,
        stage=stage,
        original_message=classified.original_message,
        context={"error_type": type(error).__name__},
    )
