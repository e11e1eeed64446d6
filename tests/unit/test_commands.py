"""
Unit tests for command parsing.

Tests per-operation parameter parsing, defaults, JSON shape validation and
_id coercion.
"""

import pytest
from bson import ObjectId

from mdb_connector.core.commands import (FIELD_DEFAULTS, REQUIRED,
                                         AggregateArgs, DeleteArgs, DeleteMode,
                                         FindArgs, InsertManyArgs,
                                         InsertOneArgs, OperationKind,
                                         UpdateArgs, UpdateMode, fields_for,
                                         parse_command, with_default)
from mdb_connector.exceptions import (CommandParseError,
                                      CommandValidationError,
                                      ConfigurationError)

OID = "507f1f77bcf86cd799439011"


class TestOperationKind:
    """Test operation name parsing."""

    @pytest.mark.parametrize("name", ["find", "insert", "update", "delete", "aggregate"])
    def test_known_operations(self, name):
        assert OperationKind.parse(name).value == name

    def test_unknown_operation(self):
        with pytest.raises(ConfigurationError) as exc_info:
            OperationKind.parse("drop")
        assert exc_info.value.message == "Unknown operation: drop"

    def test_parse_command_rejects_unknown_operation(self):
        with pytest.raises(ConfigurationError):
            parse_command("upsert", {})


class TestFieldDefaults:
    """Test the central defaulting table."""

    def test_defaults(self):
        assert FIELD_DEFAULTS["query"] == "{}"
        assert FIELD_DEFAULTS["returnAll"] is True
        assert FIELD_DEFAULTS["limit"] == 50
        assert FIELD_DEFAULTS["updateMode"] == "updateMany"
        assert FIELD_DEFAULTS["deleteMode"] == "deleteMany"
        assert FIELD_DEFAULTS["insertMode"] == "single"
        assert FIELD_DEFAULTS["pipeline"] is REQUIRED

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_values_take_default(self, value):
        assert with_default("skip", value) == 0
        assert with_default("document", value) is None

    def test_fields_for_find_return_all(self):
        assert "limit" not in fields_for(OperationKind.FIND, {"returnAll": True})
        assert "limit" in fields_for(OperationKind.FIND, {"returnAll": False})

    def test_fields_for_insert_modes(self):
        single = fields_for(OperationKind.INSERT, {"insertMode": "single"})
        multiple = fields_for(OperationKind.INSERT, {"insertMode": "multiple"})
        assert "document" in single and "documents" not in single
        assert "documents" in multiple and "document" not in multiple


class TestParseFind:
    """Test find parameter parsing."""

    def test_defaults(self):
        args = parse_command("find", {})
        assert args == FindArgs(filter={}, projection=None, sort=None, skip=0, limit=0)
        assert args.kind is OperationKind.FIND

    def test_full_parameters(self):
        args = parse_command(
            "find",
            {
                "query": '{"status": "active"}',
                "projection": '{"name": 1}',
                "sort": '{"age": -1}',
                "returnAll": False,
                "limit": 10,
                "skip": "5",
            },
        )
        assert args.filter == {"status": "active"}
        assert args.projection == {"name": 1}
        assert args.sort == {"age": -1}
        assert args.skip == 5
        assert args.limit == 10

    def test_return_all_ignores_limit(self):
        args = parse_command("find", {"returnAll": True, "limit": 10})
        assert args.limit == 0

    def test_limit_defaults_when_not_returning_all(self):
        args = parse_command("find", {"returnAll": False})
        assert args.limit == 50

    def test_limit_zero_means_unbounded(self):
        args = parse_command("find", {"returnAll": False, "limit": 0})
        assert args.limit == 0

    def test_empty_query_defaults_to_match_all(self):
        assert parse_command("find", {"query": ""}).filter == {}

    def test_query_array_rejected(self):
        with pytest.raises(CommandValidationError) as exc_info:
            parse_command("find", {"query": "[1, 2]"})
        assert "query must be a JSON object" in str(exc_info.value)

    def test_invalid_json(self):
        with pytest.raises(CommandParseError) as exc_info:
            parse_command("find", {"query": "{status: active}"})
        assert exc_info.value.field == "query"
        assert str(exc_info.value).startswith("Invalid query JSON:")

    def test_negative_skip_rejected(self):
        with pytest.raises(CommandValidationError):
            parse_command("find", {"skip": -1})

    def test_non_numeric_limit_rejected(self):
        with pytest.raises(CommandValidationError):
            parse_command("find", {"returnAll": "false", "limit": "ten"})

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_limit_rejected(self, value):
        with pytest.raises(CommandValidationError) as exc_info:
            parse_command("find", {"returnAll": False, "limit": value})
        assert exc_info.value.field == "limit"

    def test_non_finite_skip_rejected(self):
        with pytest.raises(CommandValidationError):
            parse_command("find", {"skip": float("inf")})

    def test_fractional_limit_rejected(self):
        with pytest.raises(CommandValidationError) as exc_info:
            parse_command("find", {"returnAll": False, "limit": 2.5})
        assert "whole number" in exc_info.value.message

    def test_integral_float_limit_accepted(self):
        assert parse_command("find", {"returnAll": False, "limit": 10.0}).limit == 10

    def test_id_string_coerced_to_object_id(self):
        args = parse_command("find", {"query": f'{{"_id": "{OID}"}}'})
        assert args.filter == {"_id": ObjectId(OID)}

    def test_extended_json_object_id(self):
        args = parse_command("find", {"query": f'{{"_id": {{"$oid": "{OID}"}}}}'})
        assert args.filter == {"_id": ObjectId(OID)}

    def test_bad_extended_json_object_id(self):
        with pytest.raises(CommandParseError):
            parse_command("find", {"query": '{"_id": {"$oid": "xyz"}}'})

    def test_decoded_values_accepted(self):
        args = parse_command("find", {"query": {"n": {"$gt": 1}}})
        assert args.filter == {"n": {"$gt": 1}}


class TestParseInsert:
    """Test insert parameter parsing."""

    def test_single_document(self):
        args = parse_command("insert", {"document": '{"name": "Ada"}'})
        assert args == InsertOneArgs(document={"name": "Ada"})

    def test_document_required(self):
        with pytest.raises(CommandValidationError) as exc_info:
            parse_command("insert", {"insertMode": "single", "document": ""})
        assert exc_info.value.message == "document is required"

    def test_document_must_be_object(self):
        with pytest.raises(CommandValidationError):
            parse_command("insert", {"document": '[{"a": 1}]'})

    def test_multiple_documents(self):
        args = parse_command(
            "insert", {"insertMode": "multiple", "documents": '[{"a": 1}, {"a": 2}]'}
        )
        assert args == InsertManyArgs(documents=[{"a": 1}, {"a": 2}])

    def test_documents_must_be_array(self):
        with pytest.raises(CommandValidationError) as exc_info:
            parse_command("insert", {"insertMode": "multiple", "documents": '{"a": 1}'})
        assert exc_info.value.message == "Documents must be an array"

    def test_documents_elements_must_be_objects(self):
        with pytest.raises(CommandValidationError):
            parse_command("insert", {"insertMode": "multiple", "documents": "[1, 2]"})

    def test_empty_documents_rejected(self):
        with pytest.raises(CommandValidationError):
            parse_command("insert", {"insertMode": "multiple", "documents": "[]"})

    def test_unknown_insert_mode(self):
        with pytest.raises(CommandValidationError):
            parse_command("insert", {"insertMode": "bulk", "document": "{}"})


class TestParseUpdate:
    """Test update parameter parsing."""

    def test_defaults(self):
        args = parse_command("update", {"filter": '{"a": 1}', "update": '{"$set": {"b": 2}}'})
        assert args == UpdateArgs(
            filter={"a": 1}, update={"$set": {"b": 2}}, mode=UpdateMode.UPDATE_MANY, upsert=False
        )

    def test_update_one_with_upsert(self):
        args = parse_command(
            "update",
            {
                "updateMode": "updateOne",
                "filter": "{}",
                "update": '{"$inc": {"n": 1}}',
                "upsert": True,
            },
        )
        assert args.mode is UpdateMode.UPDATE_ONE
        assert args.upsert is True

    @pytest.mark.parametrize("missing", ["filter", "update"])
    def test_required_fields(self, missing):
        params = {"filter": "{}", "update": '{"$set": {"a": 1}}'}
        params[missing] = ""
        with pytest.raises(CommandValidationError) as exc_info:
            parse_command("update", params)
        assert exc_info.value.message == f"{missing} is required"

    def test_filter_id_coerced(self):
        args = parse_command(
            "update",
            {"filter": f'{{"_id": {{"$in": ["{OID}", "plain"]}}}}', "update": '{"$set": {}}'},
        )
        assert args.filter == {"_id": {"$in": [ObjectId(OID), "plain"]}}


class TestParseDelete:
    """Test delete parameter parsing."""

    def test_defaults(self):
        args = parse_command("delete", {"deleteFilter": '{"status": "old"}'})
        assert args == DeleteArgs(filter={"status": "old"}, mode=DeleteMode.DELETE_MANY)

    def test_delete_one(self):
        args = parse_command("delete", {"deleteMode": "deleteOne", "deleteFilter": "{}"})
        assert args.mode is DeleteMode.DELETE_ONE

    def test_filter_required(self):
        with pytest.raises(CommandValidationError):
            parse_command("delete", {"deleteFilter": ""})


class TestParseAggregate:
    """Test aggregate parameter parsing."""

    def test_pipeline(self):
        args = parse_command("aggregate", {"pipeline": '[{"$match": {"a": 1}}, {"$count": "n"}]'})
        assert args == AggregateArgs(pipeline=[{"$match": {"a": 1}}, {"$count": "n"}])

    def test_pipeline_must_be_array(self):
        with pytest.raises(CommandValidationError) as exc_info:
            parse_command("aggregate", {"pipeline": '{"$match": {}}'})
        assert exc_info.value.message == "Pipeline must be an array"

    def test_pipeline_required(self):
        with pytest.raises(CommandValidationError):
            parse_command("aggregate", {})

    def test_invalid_pipeline_json(self):
        with pytest.raises(CommandParseError):
            parse_command("aggregate", {"pipeline": "[{"})
