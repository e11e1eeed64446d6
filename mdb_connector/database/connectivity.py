"""
Connectivity test for a credential record.

Opens a short-lived, single-connection client, reads the server version and
host, and reports the outcome as ``{success, message}``. Configuration and
driver failures are reported in the result, never raised.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging
from typing import Any

from pymongo.errors import PyMongoError

from ..constants import CONNECTIVITY_TEST_POOL_SIZE, DEFAULT_CONNECTION_TIMEOUT_MS
from ..core.connection import ConnectionManager
from ..core.connection_spec import resolve_from_record
from ..core.errors import ErrorCause, classify_error
from ..core.types import ConnectivityResult, CredentialRecord
from ..exceptions import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "MongoDB Server"


def _failure(message: str) -> ConnectivityResult:
    return {"success": False, "message": message}


def _failure_message(error: BaseException) -> str:
    classified = classify_error(error)
    if classified.cause is ErrorCause.UNKNOWN:
        return f"Connection failed: {classified.original_message or 'Unknown error'}"
    return classified.message


async def _describe_server(manager: ConnectionManager) -> tuple[str, str]:
    admin = manager.client.admin
    build_info: dict[str, Any] = await admin.command("buildInfo")
    hello: dict[str, Any] = await admin.command("hello")
    version = build_info.get("version", "unknown version")
    host = hello.get("me") or manager.spec.host or DEFAULT_SERVER_NAME
    return version, host


async def test_connection(
    record: CredentialRecord | None,
    connection_timeout_ms: int = DEFAULT_CONNECTION_TIMEOUT_MS,
) -> ConnectivityResult:
    """
    Check that a credential record can reach its server.

    Args:
        record: Credential record (``configurationType`` plus connection fields)
        connection_timeout_ms: Server selection and connect timeout

    Returns:
        ``{"success": True, "message": "Connected successfully to MongoDB <version>
        at <host>"}`` or ``{"success": False, "message": <classified message>}``
    """
    if not record:
        return _failure("MongoDB credentials are required")

    try:
        spec = resolve_from_record(record)
    except ConfigurationError as e:
        return _failure(e.message)

    manager = ConnectionManager(
        spec,
        connection_timeout_ms=connection_timeout_ms,
        max_pool_size=CONNECTIVITY_TEST_POOL_SIZE,
    )
    try:
        await manager.connect()
        version, host = await _describe_server(manager)
    except (TransportError, PyMongoError) as e:
        logger.warning(f"MongoDB connectivity test failed for {spec.redacted_uri}: {e}")
        return _failure(_failure_message(e))
    finally:
        await manager.close()

    logger.info(f"MongoDB connectivity test succeeded: {version} at {host}")
    return {"success": True, "message": f"Connected successfully to MongoDB {version} at {host}"}

