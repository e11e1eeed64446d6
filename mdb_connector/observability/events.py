"""
Structured event emission.

Runner and executor report what happens through an EventSink instead of
calling the logging module directly. LoggingEventSink is the default sink: it
turns events into contextual log records and feeds durations into the
metrics collector.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from .logging import get_logger
from .metrics import MetricsCollector, get_metrics_collector

# Events logged above INFO
_WARNING_EVENTS = frozenset({"item.failed"})
_ERROR_EVENTS = frozenset({"connection.failed", "batch.aborted"})
_DEBUG_EVENTS = frozenset({"operation.completed", "item.succeeded"})

# Metric name per event carrying a duration
_METRIC_NAMES = {
    "connection.opened": "connection.open",
    "connection.failed": "connection.open",
    "connection.closed": "connection.close",
    "batch.completed": "batch.run",
    "batch.aborted": "batch.run",
}


@runtime_checkable
class EventSink(Protocol):
    """Receiver for structured connector events."""

    def emit(self, event: str, **fields: Any) -> None:
        ...


class NullEventSink:
    """Discards every event."""

    def emit(self, event: str, **fields: Any) -> None:
        return None


class LoggingEventSink:
    """
    Logs events through a contextual logger and records durations as metrics.

    Events with a ``duration_ms`` field are recorded in the metrics collector;
    ``operation.completed`` is recorded per command kind as ``mongodb.<kind>``.
    """

    def __init__(
        self,
        logger_name: str = "mdb_connector.events",
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._logger = get_logger(logger_name)
        self._metrics = metrics

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics or get_metrics_collector()

    def emit(self, event: str, **fields: Any) -> None:
        if event in _ERROR_EVENTS:
            level = logging.ERROR
        elif event in _WARNING_EVENTS:
            level = logging.WARNING
        elif event in _DEBUG_EVENTS:
            level = logging.DEBUG
        else:
            level = logging.INFO

        duration_ms = fields.get("duration_ms")
        if duration_ms is not None:
            fields["duration_ms"] = round(duration_ms, 2)
            self._record(event, duration_ms, fields)

        self._logger.log(level, f"[MongoDB] {event}", extra={"event": event, **fields})

    def _record(self, event: str, duration_ms: float, fields: dict[str, Any]) -> None:
        success = fields.get("success", not event.endswith(("failed", "aborted")))
        if event == "operation.completed":
            self.metrics.record_operation(
                f"mongodb.{fields.get('operation')}",
                duration_ms,
                success,
                collection=fields.get("collection"),
            )
            return
        metric_name = _METRIC_NAMES.get(event)
        if metric_name:
            self.metrics.record_operation(metric_name, duration_ms, success)
