"""
Operation descriptors and command parsing.

Raw operation parameters (JSON text fields, mode flags, numbers) are validated
and converted once, here, into typed command arguments. The executor only ever
sees these typed variants.

Parameter defaults live in FIELD_DEFAULTS; ``None`` and empty strings mean
"use the default" for every field.

This module is part of MDB_CONNECTOR - MongoDB Connector.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Union

from bson.errors import BSONError

from ..constants import DEFAULT_FIND_LIMIT, UNBOUNDED_LIMIT
from ..exceptions import CommandParseError, CommandValidationError, ConfigurationError
from ..utils.mongo import coerce_id_filter, loads_json

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    """Database command kinds."""

    FIND = "find"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    AGGREGATE = "aggregate"

    @classmethod
    def parse(cls, value: Any) -> "OperationKind":
        """
        Parse an operation name.

        Raises:
            ConfigurationError: If the operation is unknown
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown operation: {value}", config_key="operation", config_value=value
            ) from e


class InsertMode(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


class UpdateMode(str, Enum):
    UPDATE_ONE = "updateOne"
    UPDATE_MANY = "updateMany"


class DeleteMode(str, Enum):
    DELETE_ONE = "deleteOne"
    DELETE_MANY = "deleteMany"


# ============================================================================
# PARAMETER TABLE
# ============================================================================

REQUIRED: Final = object()
"""Marker for parameters without a default."""

FIELD_DEFAULTS: Final[dict[str, Any]] = {
    "query": "{}",
    "projection": None,
    "returnAll": True,
    "limit": DEFAULT_FIND_LIMIT,
    "skip": 0,
    "sort": None,
    "insertMode": InsertMode.SINGLE.value,
    "document": REQUIRED,
    "documents": REQUIRED,
    "updateMode": UpdateMode.UPDATE_MANY.value,
    "filter": REQUIRED,
    "update": REQUIRED,
    "upsert": False,
    "deleteMode": DeleteMode.DELETE_MANY.value,
    "deleteFilter": REQUIRED,
    "pipeline": REQUIRED,
}

OPERATION_FIELDS: Final[dict[OperationKind, tuple[str, ...]]] = {
    OperationKind.FIND: ("query", "projection", "returnAll", "limit", "skip", "sort"),
    OperationKind.INSERT: ("insertMode", "document", "documents"),
    OperationKind.UPDATE: ("updateMode", "filter", "update", "upsert"),
    OperationKind.DELETE: ("deleteMode", "deleteFilter"),
    OperationKind.AGGREGATE: ("pipeline",),
}

MODE_FIELDS: Final[dict[OperationKind, tuple[str, ...]]] = {
    OperationKind.FIND: ("returnAll",),
    OperationKind.INSERT: ("insertMode",),
}
"""Parameters that decide which other parameters an operation needs."""


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def fields_for(kind: OperationKind, values: Mapping[str, Any] | None = None) -> tuple[str, ...]:
    """
    Parameters needed by an operation, given the mode values fetched so far.

    Mode-dependent parameters are dropped when their mode is not selected,
    e.g. ``limit`` when ``returnAll`` is set or ``documents`` in single
    insert mode.
    """
    values = values or {}
    names = OPERATION_FIELDS[kind]
    if kind is OperationKind.FIND and "returnAll" in values:
        if _as_bool("returnAll", with_default("returnAll", values.get("returnAll"))):
            names = tuple(n for n in names if n != "limit")
    if kind is OperationKind.INSERT and "insertMode" in values:
        mode = _as_mode(InsertMode, "insertMode", values.get("insertMode"))
        skip = "documents" if mode is InsertMode.SINGLE else "document"
        names = tuple(n for n in names if n != skip)
    return names


def with_default(name: str, value: Any) -> Any:
    """Return the table default for ``name`` when ``value`` is unset."""
    if _is_unset(value):
        default = FIELD_DEFAULTS.get(name)
        return None if default is REQUIRED else default
    return value


# ============================================================================
# COMMAND ARGUMENTS
# ============================================================================


@dataclass(frozen=True)
class FindArgs:
    filter: dict[str, Any] = field(default_factory=dict)
    projection: dict[str, Any] | None = None
    sort: dict[str, Any] | None = None
    skip: int = 0
    limit: int = UNBOUNDED_LIMIT
    kind: OperationKind = field(default=OperationKind.FIND, init=False)


@dataclass(frozen=True)
class InsertOneArgs:
    document: dict[str, Any]
    kind: OperationKind = field(default=OperationKind.INSERT, init=False)


@dataclass(frozen=True)
class InsertManyArgs:
    documents: list[dict[str, Any]]
    kind: OperationKind = field(default=OperationKind.INSERT, init=False)


@dataclass(frozen=True)
class UpdateArgs:
    filter: dict[str, Any]
    update: dict[str, Any]
    mode: UpdateMode = UpdateMode.UPDATE_MANY
    upsert: bool = False
    kind: OperationKind = field(default=OperationKind.UPDATE, init=False)


@dataclass(frozen=True)
class DeleteArgs:
    filter: dict[str, Any]
    mode: DeleteMode = DeleteMode.DELETE_MANY
    kind: OperationKind = field(default=OperationKind.DELETE, init=False)


@dataclass(frozen=True)
class AggregateArgs:
    pipeline: list[dict[str, Any]]
    kind: OperationKind = field(default=OperationKind.AGGREGATE, init=False)


CommandArgs = Union[FindArgs, InsertOneArgs, InsertManyArgs, UpdateArgs, DeleteArgs, AggregateArgs]


# ============================================================================
# FIELD CONVERSION
# ============================================================================


def _decode(name: str, value: Any) -> Any:
    if not isinstance(value, str):
        # Already decoded by the caller (object or array).
        return value
    try:
        return loads_json(value)
    except (BSONError, TypeError, ValueError) as e:
        # ValueError covers JSONDecodeError and bad Extended JSON, e.g. {"$oid": "xyz"}
        raise CommandParseError(name, str(e)) from e


def _require(name: str, value: Any) -> Any:
    value = with_default(name, value)
    if value is None:
        raise CommandValidationError(f"{name} is required", field=name)
    return value


def _object_field(name: str, value: Any, required: bool = False) -> dict[str, Any] | None:
    value = _require(name, value) if required else with_default(name, value)
    if value is None:
        return None
    decoded = _decode(name, value)
    if not isinstance(decoded, dict):
        raise CommandValidationError(
            f"{name} must be a JSON object, got {_json_type(decoded)}", field=name
        )
    return decoded


def _array_field(name: str, value: Any, label: str) -> list[Any]:
    decoded = _decode(name, _require(name, value))
    if not isinstance(decoded, list):
        raise CommandValidationError(f"{label} must be an array", field=name)
    for index, element in enumerate(decoded):
        if not isinstance(element, dict):
            raise CommandValidationError(
                f"{label} element {index} must be a JSON object, got {_json_type(element)}",
                field=name,
            )
    return decoded


def _json_type(value: Any) -> str:
    if isinstance(value, list):
        return "array"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return type(value).__name__


def _as_bool(name: str, value: Any) -> bool:
    value = with_default(name, value)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    if isinstance(value, int):
        return bool(value)
    raise CommandValidationError(f"{name} must be a boolean, got {value!r}", field=name)


def _as_non_negative_int(name: str, value: Any) -> int:
    value = with_default(name, value)
    if isinstance(value, bool):
        raise CommandValidationError(f"{name} must be a number, got {value!r}", field=name)
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise CommandValidationError(f"{name} must be a number, got {value!r}", field=name) from e
    if isinstance(value, float) and not value.is_integer():
        raise CommandValidationError(f"{name} must be a whole number, got {value!r}", field=name)
    if number < 0:
        raise CommandValidationError(f"{name} must not be negative, got {number}", field=name)
    return number


def _as_mode(mode_type: type[Enum], name: str, value: Any) -> Any:
    value = with_default(name, value)
    try:
        return mode_type(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in mode_type)
        raise CommandValidationError(
            f"{name} must be one of: {allowed}, got {value!r}", field=name
        ) from e


# ============================================================================
# PARSERS
# ============================================================================


def _parse_find(params: Mapping[str, Any]) -> FindArgs:
    query = _object_field("query", params.get("query"))
    projection = _object_field("projection", params.get("projection"))
    sort = _object_field("sort", params.get("sort"))
    return_all = _as_bool("returnAll", params.get("returnAll"))
    limit = UNBOUNDED_LIMIT if return_all else _as_non_negative_int("limit", params.get("limit"))
    return FindArgs(
        filter=coerce_id_filter(query or {}),
        projection=projection or None,
        sort=sort or None,
        skip=_as_non_negative_int("skip", params.get("skip")),
        limit=limit,
    )


def _parse_insert(params: Mapping[str, Any]) -> InsertOneArgs | InsertManyArgs:
    mode = _as_mode(InsertMode, "insertMode", params.get("insertMode"))
    if mode is InsertMode.SINGLE:
        return InsertOneArgs(document=_object_field("document", params.get("document"), True))
    documents = _array_field("documents", params.get("documents"), "Documents")
    if not documents:
        raise CommandValidationError("Documents must not be empty", field="documents")
    return InsertManyArgs(documents=documents)


def _parse_update(params: Mapping[str, Any]) -> UpdateArgs:
    return UpdateArgs(
        filter=coerce_id_filter(_object_field("filter", params.get("filter"), True)),
        update=_object_field("update", params.get("update"), True),
        mode=_as_mode(UpdateMode, "updateMode", params.get("updateMode")),
        upsert=_as_bool("upsert", params.get("upsert")),
    )


def _parse_delete(params: Mapping[str, Any]) -> DeleteArgs:
    return DeleteArgs(
        filter=coerce_id_filter(_object_field("deleteFilter", params.get("deleteFilter"), True)),
        mode=_as_mode(DeleteMode, "deleteMode", params.get("deleteMode")),
    )


def _parse_aggregate(params: Mapping[str, Any]) -> AggregateArgs:
    return AggregateArgs(pipeline=_array_field("pipeline", params.get("pipeline"), "Pipeline"))


_PARSERS = {
    OperationKind.FIND: _parse_find,
    OperationKind.INSERT: _parse_insert,
    OperationKind.UPDATE: _parse_update,
    OperationKind.DELETE: _parse_delete,
    OperationKind.AGGREGATE: _parse_aggregate,
}


def parse_command(kind: OperationKind | str, params: Mapping[str, Any]) -> CommandArgs:
    """
    Parse raw operation parameters into typed command arguments.

    Args:
        kind: Operation kind (or its name)
        params: Raw parameter values keyed by parameter name; JSON fields may be
            JSON text or already-decoded objects/arrays

    Returns:
        One of FindArgs, InsertOneArgs, InsertManyArgs, UpdateArgs, DeleteArgs,
        AggregateArgs

    Raises:
        CommandParseError: If a JSON field is not valid JSON
        CommandValidationError: If a field is missing or has the wrong shape
        ConfigurationError: If the operation is unknown
    """
    kind = OperationKind.parse(kind)
    args = _PARSERS[kind](params)
    logger.debug(f"Parsed {kind.value} command: {type(args).__name__}")
    return args
