"""
Collection discovery for autocomplete.

Lists the collections of the database named by the credential record, as
``{name, value, description}`` dropdown entries. Failures are reported as a
single entry with an empty value instead of being raised.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging

from pymongo.errors import PyMongoError

from ..config import ConnectorSettings
from ..constants import CREDENTIAL_TYPE
from ..core.connection import ConnectionManager
from ..core.connection_spec import resolve_from_record
from ..core.runner import CredentialSource
from ..core.types import CollectionOption
from ..exceptions import ConfigurationError, TransportError

logger = logging.getLogger(__name__)


def _entry(name: str, description: str, value: str = "") -> CollectionOption:
    return {"name": name, "value": value, "description": description}


async def list_collection_options(
    credentials: CredentialSource,
    settings: ConnectorSettings | None = None,
) -> list[CollectionOption]:
    """
    List collections for the selected credentials.

    Args:
        credentials: Source of the credential record
        settings: Connection timeout and read preference

    Returns:
        One entry per collection, or a single error entry when credentials are
        missing or invalid, or when the server cannot be listed
    """
    settings = settings or ConnectorSettings()

    record = await credentials.get_credentials(CREDENTIAL_TYPE)
    if not record:
        return [_entry("No credentials selected", "Please select MongoDB credentials first")]

    try:
        spec = resolve_from_record(record)
    except ConfigurationError as e:
        return [_entry("Error: Credentials required", e.message)]

    manager = ConnectionManager(
        spec,
        connection_timeout_ms=settings.connection_timeout_ms,
        read_preference=settings.read_preference,
    )
    try:
        db = await manager.connect()
        names = await db.list_collection_names()
    except (TransportError, PyMongoError) as e:
        logger.error(f"Failed to load collections from {spec.redacted_uri}: {e}")
        message = (e.original_message or e.message) if isinstance(e, TransportError) else str(e)
        return [_entry("Error loading collections - check credentials", message)]
    finally:
        await manager.close()

    return [_entry(name, f"Collection: {name}", value=name) for name in names]
