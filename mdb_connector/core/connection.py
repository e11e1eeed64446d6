"""
Connection management for the MongoDB connector.

A ConnectionManager owns exactly one motor client for the duration of a batch
run (or a discovery/connectivity call): it opens the client, verifies the
connection, hands out the database, and closes the client on every exit path.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging
import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from ..constants import (
    CLIENT_APP_NAME,
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_DATABASE_NAME,
    DEFAULT_READ_PREFERENCE,
)
from ..observability.events import EventSink, NullEventSink
from .connection_spec import ConnectionSpec
from .errors import to_transport_error

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages one MongoDB client lifecycle.

    Usable as an async context manager:

        async with ConnectionManager(spec) as db:
            await db["users"].find_one()
    """

    def __init__(
        self,
        spec: ConnectionSpec,
        connection_timeout_ms: int = DEFAULT_CONNECTION_TIMEOUT_MS,
        read_preference: str = DEFAULT_READ_PREFERENCE,
        max_pool_size: int | None = None,
        events: EventSink | None = None,
    ) -> None:
        """
        Initialize the connection manager.

        Args:
            spec: Resolved connection target
            connection_timeout_ms: Used for both server selection and connect timeouts
            read_preference: Read preference mode for the client
            max_pool_size: Optional connection pool cap
            events: Sink for connection events
        """
        self.spec = spec
        self.connection_timeout_ms = connection_timeout_ms
        self.read_preference = read_preference
        self.max_pool_size = max_pool_size
        self._events = events or NullEventSink()

        self._client: AsyncIOMotorClient | None = None
        self._db: AsyncIOMotorDatabase | None = None

    def _client_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "serverSelectionTimeoutMS": self.connection_timeout_ms,
            "connectTimeoutMS": self.connection_timeout_ms,
            "readPreference": self.read_preference,
            "appname": CLIENT_APP_NAME,
        }
        if self.max_pool_size is not None:
            options["maxPoolSize"] = self.max_pool_size
        return options

    async def connect(self) -> AsyncIOMotorDatabase:
        """
        Open the client and verify the connection.

        Returns:
            Database named by the connection spec (``test`` when none is named)

        Raises:
            TransportError: If the client cannot be created or the server
                cannot be reached; the cause is classified
        """
        if self._db is not None:
            return self._db

        logger.debug(f"Opening MongoDB client for {self.spec.redacted_uri}")
        start_time = time.time()
        try:
            self._client = AsyncIOMotorClient(self.spec.uri, **self._client_options())
            # Motor connects lazily; ping forces server selection and auth.
            await self._client.admin.command("ping")
            self._db = self._client.get_default_database(default=DEFAULT_DATABASE_NAME)
        except (PyMongoError, OSError, ValueError, TypeError) as e:
            duration_ms = (time.time() - start_time) * 1000
            self._close_client()
            error = to_transport_error(e, stage="connect")
            self._events.emit(
                "connection.failed",
                host=self.spec.host,
                error_type=type(e).__name__,
                error=str(e),
                cause=error.cause.value,
                duration_ms=duration_ms,
            )
            raise error from e

        self._events.emit(
            "connection.opened",
            host=self.spec.host,
            database=self._db.name,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return self._db

    def _close_client(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            finally:
                self._client = None
                self._db = None

    async def close(self) -> None:
        """
        Close the client. Idempotent.
        """
        if self._client is None:
            return
        start_time = time.time()
        self._close_client()
        self._events.emit(
            "connection.closed",
            host=self.spec.host,
            duration_ms=(time.time() - start_time) * 1000,
        )

    async def __aenter__(self) -> AsyncIOMotorDatabase:
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def client(self) -> AsyncIOMotorClient:
        """
        The open client.

        Raises:
            RuntimeError: If the connection is not open
        """
        if self._client is None:
            raise RuntimeError("ConnectionManager not connected. Call connect() first.")
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            raise RuntimeError("ConnectionManager not connected. Call connect() first.")
        return self._db

    @property
    def is_open(self) -> bool:
        return self._client is not None
