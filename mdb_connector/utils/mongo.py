"""
MongoDB utility functions for MDB Connector.

This module provides helpers for moving values between JSON text and BSON:
decoding operation parameters, rendering result documents for output, and
turning identifier strings in filters back into ObjectIds.
"""

import base64
import uuid
from datetime import datetime
from typing import Any

from bson import Binary, Decimal128, ObjectId, json_util

ID_FIELD = "_id"

# Operators whose operand is compared against _id values.
_ID_SCALAR_OPERATORS = ("$eq", "$ne")
_ID_LIST_OPERATORS = ("$in", "$nin")


def loads_json(text: str) -> Any:
    """
    Decode JSON text, accepting MongoDB Extended JSON.

    ``{"$oid": "..."}`` becomes an ObjectId and ``{"$date": ...}`` a datetime;
    plain JSON decodes as usual.

    Raises:
        ValueError: If the text is not valid JSON (json.JSONDecodeError)
    """
    return json_util.loads(text)


def render_value(value: Any) -> Any:
    """
    Convert a BSON value to a JSON-serializable value.

    - ObjectId -> str
    - datetime -> ISO format string
    - Decimal128, UUID -> str
    - Binary/bytes -> base64 string
    - dict and list are processed recursively
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (Decimal128, uuid.UUID)):
        return str(value)
    if isinstance(value, (Binary, bytes)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, dict):
        return {key: render_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [render_value(item) for item in value]
    return value


def render_document(doc: dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Convert a MongoDB document to JSON-serializable format.

    Example:
        ```python
        render_document({"_id": ObjectId("507f1f77bcf86cd799439011"), "n": 1})
        # {"_id": "507f1f77bcf86cd799439011", "n": 1}
        ```
    """
    if doc is None:
        return None
    return render_value(doc)


def render_documents(docs: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Apply render_document to each document in a list."""
    return [render_document(doc) for doc in docs]


def render_id(value: Any) -> str | None:
    """Canonical string form of a store-generated identifier."""
    if value is None:
        return None
    return str(value)


def _as_object_id(value: Any) -> Any:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def coerce_id_filter(filter_doc: dict[str, Any]) -> dict[str, Any]:
    """
    Turn 24-hex ``_id`` strings in a filter into ObjectIds.

    Only the top-level ``_id`` condition is touched: a direct value, or the
    operands of ``$eq``, ``$ne``, ``$in`` and ``$nin``. Returns a new dict.
    """
    if ID_FIELD not in filter_doc:
        return filter_doc

    condition = filter_doc[ID_FIELD]
    if isinstance(condition, dict):
        coerced: dict[str, Any] = {}
        for operator, operand in condition.items():
            if operator in _ID_SCALAR_OPERATORS:
                operand = _as_object_id(operand)
            elif operator in _ID_LIST_OPERATORS and isinstance(operand, list):
                operand = [_as_object_id(item) for item in operand]
            coerced[operator] = operand
        condition = coerced
    else:
        condition = _as_object_id(condition)

    return {**filter_doc, ID_FIELD: condition}
