"""
Type definitions for MDB_CONNECTOR records.

TypedDicts describing the host-facing shapes: credential records, operation
results merged into item payloads, and discovery/connectivity responses.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

from typing import Any, Dict, List, Literal, Optional, TypedDict

# ============================================================================
# Credential record
# ============================================================================


class CredentialRecord(TypedDict, total=False):
    """Credential record as stored by the host."""

    configurationType: Literal["connectionString", "individual"]
    connectionString: str
    host: str
    port: Optional[int]
    database: str
    user: Optional[str]
    password: Optional[str]
    ssl: bool


# ============================================================================
# Operation results (merged into item payloads)
# ============================================================================


class DocumentsResult(TypedDict):
    """Result of find and aggregate."""

    documents: List[Dict[str, Any]]
    count: int


class InsertOneResult(TypedDict):
    insertedId: str
    acknowledged: bool


class InsertManyResult(TypedDict):
    insertedIds: List[str]
    insertedCount: int
    acknowledged: bool


class UpdateResult(TypedDict):
    # Counts and ids are None for unacknowledged (w=0) writes
    matchedCount: Optional[int]
    modifiedCount: Optional[int]
    upsertedId: Optional[str]
    upsertedCount: Optional[int]
    acknowledged: bool


class DeleteResult(TypedDict):
    deletedCount: Optional[int]
    acknowledged: bool


# ============================================================================
# Discovery and connectivity
# ============================================================================


class CollectionOption(TypedDict):
    """Dropdown entry for a collection (or a synthetic error entry)."""

    name: str
    value: str
    description: str


class ConnectivityResult(TypedDict):
    """Outcome of a connectivity test."""

    success: bool
    message: str
