"""
Batch execution of one operation over a list of items.

The runner resolves the connection target once, opens a single connection,
runs parse -> execute -> merge for each item in order, and closes the
connection on every exit path. With continue-on-fail, item failures are
recorded on the item; otherwise the first failure aborts the run and is
re-raised unchanged.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from ..config import ConnectorSettings
from ..constants import (
    CREDENTIAL_TYPE,
    ERROR_CAUSE_KEY,
    ERROR_DETAILS_KEY,
    ERROR_FLAG_KEY,
    ERROR_MESSAGE_KEY,
    PARAM_COLLECTION,
    PARAM_OPERATION,
)
from ..exceptions import ConfigurationError, MongoDBConnectorError
from ..observability.events import EventSink, LoggingEventSink
from ..observability.logging import run_context
from .commands import MODE_FIELDS, OperationKind, fields_for, parse_command
from .connection import ConnectionManager
from .connection_spec import ConnectionSpec, resolve_from_record
from .errors import ErrorCause, classify_error
from .executor import OperationExecutor

logger = logging.getLogger(__name__)

# Failures recorded per item under continue-on-fail
ITEM_FAILURES = (
    MongoDBConnectorError,
    PyMongoError,
    BSONError,
    TypeError,
    ValueError,
    OverflowError,
)


# ============================================================================
# BATCH ITEMS
# ============================================================================


@dataclass(frozen=True)
class ItemError:
    """Failure recorded on an item under continue-on-fail."""

    message: str
    details: str
    cause: ErrorCause

    @classmethod
    def from_exception(cls, error: BaseException) -> "ItemError":
        classified = classify_error(error)
        return cls(
            message=classified.original_message,
            details=f"{type(error).__name__}: {classified.original_message}",
            cause=classified.cause,
        )


@dataclass
class BatchItem:
    """
    One unit of work in a batch.

    Attributes:
        payload: Arbitrary key/value data carried through the run
        error: Failure recorded on this item, if any
    """

    payload: dict[str, Any] = field(default_factory=dict)
    error: ItemError | None = None

    @classmethod
    def from_value(cls, value: Any) -> "BatchItem":
        """
        Accept a BatchItem, a ``{"json": {...}}`` host item, or a plain payload dict.
        """
        if isinstance(value, BatchItem):
            return value
        if isinstance(value, Mapping):
            if set(value.keys()) == {"json"} and isinstance(value["json"], Mapping):
                return cls(payload=dict(value["json"]))
            return cls(payload=dict(value))
        raise TypeError(f"Batch items must be mappings, got {type(value).__name__}")

    def merged(self, result: Mapping[str, Any]) -> "BatchItem":
        """New item whose payload is this payload updated with ``result``."""
        return BatchItem(payload={**self.payload, **result})

    def failed(self, error: BaseException) -> "BatchItem":
        """New item annotated with ``error``."""
        item_error = ItemError.from_exception(error)
        return BatchItem(
            payload={
                **self.payload,
                ERROR_FLAG_KEY: True,
                ERROR_MESSAGE_KEY: item_error.message,
                ERROR_DETAILS_KEY: item_error.details,
                ERROR_CAUSE_KEY: item_error.cause.value,
            },
            error=item_error,
        )

    def to_dict(self) -> dict[str, Any]:
        """Host representation: ``{"json": payload}``."""
        return {"json": self.payload}


# ============================================================================
# HOST CAPABILITIES
# ============================================================================


@runtime_checkable
class ParameterSource(Protocol):
    """Provides operation parameters for the item being processed."""

    async def get_parameter(self, name: str, item_index: int) -> Any:
        ...


@runtime_checkable
class CredentialSource(Protocol):
    """Provides credential records by credential type name."""

    async def get_credentials(self, name: str) -> Mapping[str, Any] | None:
        ...


class StaticParameterSource:
    """
    ParameterSource over fixed mappings.

    ``item_parameters[i]`` overrides ``parameters`` for item ``i``.
    """

    def __init__(
        self,
        parameters: Mapping[str, Any],
        item_parameters: Sequence[Mapping[str, Any]] | None = None,
    ) -> None:
        self._parameters = dict(parameters)
        self._item_parameters = list(item_parameters or [])

    async def get_parameter(self, name: str, item_index: int) -> Any:
        if item_index < len(self._item_parameters):
            overrides = self._item_parameters[item_index]
            if name in overrides:
                return overrides[name]
        return self._parameters.get(name)


class StaticCredentialSource:
    """CredentialSource holding records keyed by credential type name."""

    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._records = dict(records or {})

    @classmethod
    def for_record(cls, record: Mapping[str, Any] | None) -> "StaticCredentialSource":
        return cls({CREDENTIAL_TYPE: record} if record else {})

    async def get_credentials(self, name: str) -> Mapping[str, Any] | None:
        return self._records.get(name)


# ============================================================================
# RUNNER
# ============================================================================

ConnectionFactory = Callable[..., ConnectionManager]


async def resolve_credentials(credentials: CredentialSource) -> ConnectionSpec:
    """
    Fetch the credential record and resolve it into a ConnectionSpec.

    Raises:
        ConfigurationError: If no record is available or it is incomplete
    """
    record = await credentials.get_credentials(CREDENTIAL_TYPE)
    if not record:
        raise ConfigurationError(
            "MongoDB credentials are required. "
            "Please select credentials in the Authentication field.",
            config_key=CREDENTIAL_TYPE,
        )
    return resolve_from_record(record)


class BatchRunner:
    """
    Runs one operation over a batch of items on a single connection.

    Example:
        runner = BatchRunner(
            parameters=StaticParameterSource({"operation": "find", "collection": "users"}),
            credentials=StaticCredentialSource.for_record(record),
        )
        items = await runner.run()
    """

    def __init__(
        self,
        parameters: ParameterSource,
        credentials: CredentialSource,
        settings: ConnectorSettings | None = None,
        events: EventSink | None = None,
        executor: OperationExecutor | None = None,
        connection_factory: ConnectionFactory = ConnectionManager,
    ) -> None:
        """
        Initialize the runner.

        Args:
            parameters: Source of operation parameters
            credentials: Source of the credential record
            settings: Connection timeout, read preference and continue-on-fail
            events: Sink for run events (defaults to LoggingEventSink)
            executor: Command executor (defaults to OperationExecutor)
            connection_factory: Builds the ConnectionManager for a run
        """
        self.parameters = parameters
        self.credentials = credentials
        self.settings = settings or ConnectorSettings()
        self.events = events or LoggingEventSink()
        self.executor = executor or OperationExecutor(events=self.events)
        self.connection_factory = connection_factory

    async def run(self, items: Sequence[Any] | None = None) -> list[BatchItem]:
        """
        Run the configured operation once per item.

        Args:
            items: Input items (BatchItem, ``{"json": ...}`` or payload dicts);
                when empty, a single item with an empty payload is used

        Returns:
            Output items in input order

        Raises:
            ConfigurationError: Before connecting, for missing credentials,
                invalid settings, an unknown operation or a missing collection
            TransportError: If the connection cannot be opened
            Exception: The first item failure, unchanged, when continue-on-fail
                is disabled
        """
        batch = [BatchItem.from_value(item) for item in items] if items else [BatchItem()]

        self.settings.validate()
        spec = await resolve_credentials(self.credentials)
        kind = OperationKind.parse(await self.parameters.get_parameter(PARAM_OPERATION, 0))
        collection_name = await self.parameters.get_parameter(PARAM_COLLECTION, 0)
        if not collection_name or not str(collection_name).strip():
            raise ConfigurationError("collection is required", config_key=PARAM_COLLECTION)
        collection_name = str(collection_name).strip()

        with run_context(operation=kind.value, collection=collection_name) as run:
            results = await self._run_batch(spec, kind, collection_name, batch)

        logger.debug(f"Batch {run.correlation_id} returned {len(results)} item(s)")
        return results

    async def _run_batch(
        self,
        spec: ConnectionSpec,
        kind: OperationKind,
        collection_name: str,
        batch: list[BatchItem],
    ) -> list[BatchItem]:
        self.events.emit(
            "batch.started",
            item_count=len(batch),
            host=spec.host,
            continue_on_fail=self.settings.continue_on_fail,
            read_preference=self.settings.read_preference,
        )

        connection = self.connection_factory(
            spec,
            connection_timeout_ms=self.settings.connection_timeout_ms,
            read_preference=self.settings.read_preference,
            events=self.events,
        )
        results: list[BatchItem] = []
        start_time = time.time()
        completed = False
        try:
            db = await connection.connect()
            collection = db[collection_name]
            for index, item in enumerate(batch):
                results.append(await self._run_item(collection, kind, index, item))
            completed = True
        finally:
            await connection.close()
            self.events.emit(
                "batch.completed" if completed else "batch.aborted",
                item_count=len(batch),
                processed=len(results),
                failed=sum(1 for result in results if result.error is not None),
                duration_ms=(time.time() - start_time) * 1000,
            )
        return results

    async def _fetch_parameters(self, kind: OperationKind, index: int) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in MODE_FIELDS.get(kind, ()):
            values[name] = await self.parameters.get_parameter(name, index)
        for name in fields_for(kind, values):
            if name not in values:
                values[name] = await self.parameters.get_parameter(name, index)
        return values

    async def _run_item(
        self,
        collection: AsyncIOMotorCollection,
        kind: OperationKind,
        index: int,
        item: BatchItem,
    ) -> BatchItem:
        try:
            params = await self._fetch_parameters(kind, index)
            args = parse_command(kind, params)
            result = await self.executor.execute(collection, args)
        except ITEM_FAILURES as e:
            self.events.emit(
                "item.failed",
                item_index=index,
                error_type=type(e).__name__,
                error=str(e),
                recorded=self.settings.continue_on_fail,
            )
            if not self.settings.continue_on_fail:
                raise
            return item.failed(e)

        self.events.emit("item.succeeded", item_index=index)
        return item.merged(result)
