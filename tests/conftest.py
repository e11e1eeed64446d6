"""
Pytest configuration and shared fixtures for MDB_CONNECTOR tests.

This module provides:
- Mock MongoDB client, database and collection fixtures
- Credential record factories
- Testcontainers fixtures for integration tests
"""

import os
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from mdb_connector.observability.metrics import MetricsCollector


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: requires a MongoDB container")


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def _make_cursor(documents: List[Dict[str, Any]] | None = None) -> MagicMock:
    """
    Create a mock motor cursor.

    ``sort``/``skip``/``limit`` chain back to the cursor; ``to_list`` is async.
    """
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(documents or []))
    return cursor


@pytest.fixture
def make_cursor():
    """Factory for mock motor cursors over a list of documents."""
    return _make_cursor


@pytest.fixture
def mock_mongo_collection() -> MagicMock:
    """Create a mock MongoDB collection."""
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.name = "test_collection"
    # find and aggregate return cursors synchronously
    collection.find = MagicMock(return_value=_make_cursor())
    collection.aggregate = MagicMock(return_value=_make_cursor())
    collection.insert_one = AsyncMock(
        return_value=MagicMock(inserted_id="test_id", acknowledged=True)
    )
    collection.insert_many = AsyncMock(
        return_value=MagicMock(inserted_ids=["id1", "id2"], acknowledged=True)
    )
    collection.update_one = AsyncMock(
        return_value=MagicMock(
            matched_count=1, modified_count=1, upserted_id=None, acknowledged=True
        )
    )
    collection.update_many = AsyncMock(
        return_value=MagicMock(
            matched_count=2, modified_count=2, upserted_id=None, acknowledged=True
        )
    )
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1, acknowledged=True))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2, acknowledged=True))
    return collection


@pytest.fixture
def mock_mongo_database(mock_mongo_collection: MagicMock) -> MagicMock:
    """Create a mock MongoDB database whose collections are all ``mock_mongo_collection``."""
    db = MagicMock()
    db.name = "test_db"
    db.__getitem__.return_value = mock_mongo_collection
    db.list_collection_names = AsyncMock(return_value=["users", "orders"])
    return db


@pytest.fixture
def mock_mongo_client(mock_mongo_database: MagicMock) -> MagicMock:
    """Create a mock MongoDB client."""
    client = MagicMock(spec=AsyncIOMotorClient)
    client.admin = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.get_default_database = MagicMock(return_value=mock_mongo_database)
    client.close = MagicMock()
    return client


@pytest.fixture
def patched_motor_client(mock_mongo_client: MagicMock):
    """
    Patch AsyncIOMotorClient where the connection manager uses it.

    Yields the patched class; ``patched_motor_client.return_value`` is the client.
    """
    with patch(
        "mdb_connector.core.connection.AsyncIOMotorClient", return_value=mock_mongo_client
    ) as client_class:
        yield client_class


@pytest.fixture
def metrics_collector() -> MetricsCollector:
    """Provide an isolated metrics collector."""
    return MetricsCollector()


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def individual_record() -> Dict[str, Any]:
    """Provide an individual-parameters credential record."""
    return {
        "configurationType": "individual",
        "host": "db.example.com",
        "port": 27018,
        "database": "app",
        "user": "alice",
        "password": "s3cret",
        "ssl": False,
    }


@pytest.fixture
def connection_string_record() -> Dict[str, Any]:
    """Provide a connection-string credential record."""
    return {
        "configurationType": "connectionString",
        "connectionString": "mongodb://localhost:27017/app",
    }


# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Reset environment variables before each test."""
    env_vars_to_clear = [
        "MDB_CONNECTOR_CONNECTION_TIMEOUT_MS",
        "MDB_CONNECTOR_READ_PREFERENCE",
        "MDB_CONNECTOR_CONTINUE_ON_FAIL",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start MongoDB Atlas Local container for integration tests.

    Session-scoped: container starts once and is reused for all integration tests.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    try:
        container = MongoDbContainer(image="mongodb/mongodb-atlas-local:latest")
        container.start()
    except Exception as e:  # Docker unavailable
        pytest.skip(f"MongoDB container could not be started: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture
def mongodb_connection_string(mongodb_container):
    """
    Get the MongoDB connection string for the test container.

    Uses localhost with the exposed port and a per-process database, which is
    required for MongoDB Atlas Local containers.
    """
    exposed_port = mongodb_container.get_exposed_port(27017)
    return f"mongodb://localhost:{exposed_port}/itest_{os.getpid()}?directConnection=true"


@pytest.fixture
def mongodb_record(mongodb_connection_string) -> Dict[str, Any]:
    """Credential record pointing at the test container."""
    return {
        "configurationType": "connectionString",
        "connectionString": mongodb_connection_string,
    }
