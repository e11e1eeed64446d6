"""
Observability components.

Provides run-scoped logging context, structured connector events and
in-process timing metrics.
"""

from .events import EventSink, LoggingEventSink, NullEventSink
from .logging import (
    ContextualLoggerAdapter,
    RunContext,
    current_run,
    get_logger,
    run_context,
)
from .metrics import MetricsCollector, TimingStats, get_metrics_collector

__all__ = [
    # Events
    "EventSink",
    "LoggingEventSink",
    "NullEventSink",
    # Metrics
    "MetricsCollector",
    "TimingStats",
    "get_metrics_collector",
    # Logging
    "RunContext",
    "run_context",
    "current_run",
    "ContextualLoggerAdapter",
    "get_logger",
]
