"""
Unit tests for connector events and contextual logging.

Tests LoggingEventSink levels and metrics, and the run correlation context.
"""

import logging

import pytest

from mdb_connector.observability.events import (EventSink, LoggingEventSink,
                                                NullEventSink)
from mdb_connector.observability.logging import (current_run, get_logger,
                                                 run_context)


@pytest.fixture
def sink(metrics_collector):
    return LoggingEventSink(logger_name="tests.events", metrics=metrics_collector)


class TestLoggingEventSink:
    """Test event logging and metrics."""

    def test_sinks_satisfy_protocol(self, sink):
        assert isinstance(sink, EventSink)
        assert isinstance(NullEventSink(), EventSink)

    @pytest.mark.parametrize(
        "event, level",
        [
            ("connection.failed", logging.ERROR),
            ("batch.aborted", logging.ERROR),
            ("item.failed", logging.WARNING),
            ("batch.started", logging.INFO),
            ("operation.completed", logging.DEBUG),
        ],
    )
    def test_levels(self, sink, caplog, event, level):
        with caplog.at_level(logging.DEBUG, logger="tests.events"):
            sink.emit(event)

        (record,) = caplog.records
        assert record.levelno == level
        assert record.getMessage() == f"[MongoDB] {event}"
        assert record.event == event

    def test_fields_in_record(self, sink, caplog):
        with caplog.at_level(logging.INFO, logger="tests.events"):
            sink.emit("connection.opened", host="localhost:27017", duration_ms=12.3456)

        record = caplog.records[0]
        assert record.host == "localhost:27017"
        assert record.duration_ms == 12.35

    def test_operation_metrics(self, sink, metrics_collector):
        sink.emit(
            "operation.completed",
            operation="find",
            collection="users",
            success=True,
            duration_ms=5.0,
        )
        sink.emit(
            "operation.completed",
            operation="find",
            collection="users",
            success=False,
            duration_ms=7.0,
        )

        summary = metrics_collector.get_summary()["summary"]
        assert summary["mongodb.find"]["count"] == 2
        assert summary["mongodb.find"]["error_count"] == 1

    def test_connection_and_batch_metrics(self, sink, metrics_collector):
        sink.emit("connection.opened", duration_ms=3.0)
        sink.emit("connection.failed", duration_ms=4.0)
        sink.emit("batch.completed", duration_ms=10.0)

        assert metrics_collector.get_operation_count("connection.open") == 2
        assert metrics_collector.get_operation_count("batch.run") == 1
        summary = metrics_collector.get_summary()["summary"]
        assert summary["connection.open"]["error_count"] == 1

    def test_events_without_duration_not_recorded(self, sink, metrics_collector):
        sink.emit("item.succeeded", item_index=0)
        assert metrics_collector.get_metrics()["metrics"] == {}


class TestRunContext:
    """Test run-scoped logging context."""

    def test_no_run_outside_context(self):
        assert current_run() is None

    def test_run_context_sets_and_restores(self):
        with run_context(operation="find", collection="users") as run:
            assert current_run() is run
            assert run.as_extra() == {
                "correlation_id": run.correlation_id,
                "operation": "find",
                "collection": "users",
            }
        assert current_run() is None

    def test_nested_runs_restore_outer(self):
        with run_context(correlation_id="outer") as outer:
            with run_context(correlation_id="inner"):
                assert current_run().correlation_id == "inner"
            assert current_run() is outer

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with run_context(operation="delete"):
                raise RuntimeError("boom")
        assert current_run() is None

    def test_generated_correlation_ids_differ(self):
        with run_context() as first:
            pass
        with run_context() as second:
            pass
        assert first.correlation_id != second.correlation_id

    def test_context_attached_to_records(self, sink, caplog):
        with run_context(operation="delete", collection="logs", correlation_id="run-1"):
            with caplog.at_level(logging.INFO, logger="tests.events"):
                sink.emit("batch.started", item_count=2)

        record = caplog.records[0]
        assert record.correlation_id == "run-1"
        assert record.operation == "delete"
        assert record.collection == "logs"
        assert record.item_count == 2

    def test_explicit_extra_wins(self, caplog):
        logger = get_logger("tests.events")
        with run_context(collection="users", correlation_id="run-2"):
            with caplog.at_level(logging.INFO, logger="tests.events"):
                logger.info("listing", extra={"collection": "orders"})

        record = caplog.records[0]
        assert record.collection == "orders"
        assert record.correlation_id == "run-2"
