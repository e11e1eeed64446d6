"""
Operation execution against a MongoDB collection.

Issues exactly one database call pattern per command: a cursor fetch for find
and aggregate, a single write for insert, update and delete. Results are
returned as plain dicts with camelCase keys, ready to be merged into a batch
item's payload.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging
import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection

from ..observability.events import EventSink, NullEventSink
from ..utils.mongo import render_documents, render_id
from .commands import (
    AggregateArgs,
    CommandArgs,
    DeleteArgs,
    DeleteMode,
    FindArgs,
    InsertManyArgs,
    InsertOneArgs,
    UpdateArgs,
    UpdateMode,
)
from .types import (
    DeleteResult,
    DocumentsResult,
    InsertManyResult,
    InsertOneResult,
    UpdateResult,
)

logger = logging.getLogger(__name__)


class OperationExecutor:
    """
    Executes parsed commands on a collection.

    The executor never catches driver errors; they propagate to the caller
    (the batch runner), which decides between recording and aborting.
    """

    def __init__(self, events: EventSink | None = None) -> None:
        self._events = events or NullEventSink()
        self._handlers = {
            FindArgs: self.find,
            InsertOneArgs: self.insert_one,
            InsertManyArgs: self.insert_many,
            UpdateArgs: self.update,
            DeleteArgs: self.delete,
            AggregateArgs: self.aggregate,
        }

    async def execute(
        self, collection: AsyncIOMotorCollection, args: CommandArgs
    ) -> dict[str, Any]:
        """
        Run one command and return its result fields.

        Args:
            collection: Target collection
            args: Parsed command arguments

        Returns:
            Result dict (documents/count, insertedId(s), counts, acknowledged)
        """
        handler = self._handlers.get(type(args))
        if handler is None:
            raise TypeError(f"Unsupported command arguments: {type(args).__name__}")

        start_time = time.time()
        success = False
        try:
            result = await handler(collection, args)
            success = True
            return result
        finally:
            duration_ms = (time.time() - start_time) * 1000
            self._events.emit(
                "operation.completed",
                operation=args.kind.value,
                collection=collection.name,
                success=success,
                duration_ms=duration_ms,
            )

    async def find(self, collection: AsyncIOMotorCollection, args: FindArgs) -> DocumentsResult:
        cursor = collection.find(args.filter, args.projection)
        if args.sort:
            cursor = cursor.sort(list(args.sort.items()))
        if args.skip > 0:
            cursor = cursor.skip(args.skip)
        if args.limit > 0:
            cursor = cursor.limit(args.limit)
        documents = await cursor.to_list(length=None)
        return {"documents": render_documents(documents), "count": len(documents)}

    async def insert_one(
        self, collection: AsyncIOMotorCollection, args: InsertOneArgs
    ) -> InsertOneResult:
        # insert_one adds _id to the document it is given; keep args untouched.
        result = await collection.insert_one(dict(args.document))
        return {
            "insertedId": render_id(result.inserted_id),
            "acknowledged": result.acknowledged,
        }

    async def insert_many(
        self, collection: AsyncIOMotorCollection, args: InsertManyArgs
    ) -> InsertManyResult:
        result = await collection.insert_many([dict(doc) for doc in args.documents])
        inserted_ids = [render_id(inserted_id) for inserted_id in result.inserted_ids]
        return {
            "insertedIds": inserted_ids,
            "insertedCount": len(inserted_ids),
            "acknowledged": result.acknowledged,
        }

    async def update(self, collection: AsyncIOMotorCollection, args: UpdateArgs) -> UpdateResult:
        if args.mode is UpdateMode.UPDATE_ONE:
            result = await collection.update_one(args.filter, args.update, upsert=args.upsert)
        else:
            result = await collection.update_many(args.filter, args.update, upsert=args.upsert)
        if not result.acknowledged:
            # The driver raises InvalidOperation on counts of a w=0 write
            return {
                "matchedCount": None,
                "modifiedCount": None,
                "upsertedId": None,
                "upsertedCount": None,
                "acknowledged": False,
            }
        upserted_id = render_id(result.upserted_id)
        return {
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
            "upsertedId": upserted_id,
            "upsertedCount": 1 if upserted_id is not None else 0,
            "acknowledged": result.acknowledged,
        }

    async def delete(self, collection: AsyncIOMotorCollection, args: DeleteArgs) -> DeleteResult:
        if args.mode is DeleteMode.DELETE_ONE:
            result = await collection.delete_one(args.filter)
        else:
            result = await collection.delete_many(args.filter)
        if not result.acknowledged:
            return {"deletedCount": None, "acknowledged": False}
        return {"deletedCount": result.deleted_count, "acknowledged": True}

    async def aggregate(
        self, collection: AsyncIOMotorCollection, args: AggregateArgs
    ) -> DocumentsResult:
        cursor = collection.aggregate(args.pipeline)
        documents = await cursor.to_list(length=None)
        return {"documents": render_documents(documents), "count": len(documents)}
