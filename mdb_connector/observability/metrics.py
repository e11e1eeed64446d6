"""
In-process timing metrics for MDB_CONNECTOR.

Durations are recorded per metric name (``mongodb.find``, ``connection.open``,
``batch.run``) and, for commands, per collection. The collector is bounded:
once ``max_metrics`` series exist, the least recently updated one is evicted.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

SeriesKey = tuple[str, str | None]


@dataclass
class TimingStats:
    """Count, failures and latency bounds for one metric series."""

    count: int = 0
    failures: int = 0
    total_ms: float = 0.0
    min_ms: float | None = None
    max_ms: float = 0.0

    def add(self, duration_ms: float, success: bool) -> None:
        self.count += 1
        self.total_ms += duration_ms
        self.min_ms = duration_ms if self.min_ms is None else min(self.min_ms, duration_ms)
        self.max_ms = max(self.max_ms, duration_ms)
        if not success:
            self.failures += 1

    def merge(self, other: "TimingStats") -> None:
        self.count += other.count
        self.failures += other.failures
        self.total_ms += other.total_ms
        if other.min_ms is not None:
            self.min_ms = other.min_ms if self.min_ms is None else min(self.min_ms, other.min_ms)
        self.max_ms = max(self.max_ms, other.max_ms)

    def to_dict(self) -> dict[str, Any]:
        avg = self.total_ms / self.count if self.count else 0.0
        rate = self.failures / self.count * 100 if self.count else 0.0
        return {
            "count": self.count,
            "avg_duration_ms": round(avg, 2),
            "min_duration_ms": round(self.min_ms or 0.0, 2),
            "max_duration_ms": round(self.max_ms, 2),
            "error_count": self.failures,
            "error_rate_percent": round(rate, 2),
        }


def _label(key: SeriesKey) -> str:
    name, collection = key
    return f"{name}@{collection}" if collection else name


class MetricsCollector:
    """
    Thread-safe, bounded store of TimingStats series.

    Example:
        metrics = MetricsCollector()
        metrics.record_operation("mongodb.find", 12.5, collection="users")
        metrics.get_summary()["summary"]["mongodb.find"]["count"]  # 1
    """

    def __init__(self, max_metrics: int = 1000):
        self._series: OrderedDict[SeriesKey, TimingStats] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics

    def record_operation(
        self,
        operation_name: str,
        duration_ms: float,
        success: bool = True,
        collection: str | None = None,
    ) -> None:
        """
        Record one timed execution.

        Args:
            operation_name: Metric name, e.g. "mongodb.find"
            duration_ms: Duration in milliseconds
            success: Whether the execution succeeded
            collection: Collection the command ran against, if any
        """
        key: SeriesKey = (operation_name, collection)
        with self._lock:
            stats = self._series.get(key)
            if stats is None:
                if len(self._series) >= self._max_metrics:
                    evicted, _ = self._series.popitem(last=False)
                    logger.debug(f"Evicted metric series {_label(evicted)}")
                stats = self._series[key] = TimingStats()
            else:
                self._series.move_to_end(key)
            stats.add(duration_ms, success)

    def get_metrics(self, prefix: str | None = None) -> dict[str, Any]:
        """
        Per-series metrics, labelled ``name`` or ``name@collection``.

        Args:
            prefix: Only include metric names starting with this prefix
        """
        with self._lock:
            metrics = {
                _label(key): stats.to_dict()
                for key, stats in self._series.items()
                if not prefix or key[0].startswith(prefix)
            }
            total = len(self._series)
        return {"metrics": metrics, "total_operations": total}

    def get_summary(self) -> dict[str, Any]:
        """Metrics per name with collections folded together."""
        aggregated: dict[str, TimingStats] = {}
        with self._lock:
            for (name, _), stats in self._series.items():
                aggregated.setdefault(name, TimingStats()).merge(stats)
        return {
            "total_operations": len(aggregated),
            "summary": {name: stats.to_dict() for name, stats in aggregated.items()},
        }

    def get_operation_count(self, operation_name: str) -> int:
        with self._lock:
            return sum(
                stats.count for (name, _), stats in self._series.items() if name == operation_name
            )

    def reset(self) -> None:
        with self._lock:
            self._series.clear()


_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Process-wide collector used when a sink is given none."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
