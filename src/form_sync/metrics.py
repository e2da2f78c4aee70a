"""
metrics.py - Observability for form_sync.

Provides:
- Prometheus-style counters and histograms
- Structured JSON logging
- SyncLogger with convenience methods for sync events
"""

import json
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List


# =============================================================================
# Metric Types
# =============================================================================

@dataclass
class MetricValue:
    """Single metric value with labels."""
    name: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class Counter:
    """Prometheus-style counter metric."""

    def __init__(self, name: str, help_text: str, labels: List[str] = None):
        self.name = name
        self.help = help_text
        self.labels = labels or []
        self._values: Dict[tuple, float] = {}
        self._lock = threading.Lock()

    def inc(self, value: float = 1, **label_values) -> None:
        """Increment counter."""
        key = self._label_key(label_values)
        with self._lock:
            self._values[key] = self._values.get(key, 0) + value

    def get(self, **label_values) -> float:
        """Get current value."""
        key = self._label_key(label_values)
        return self._values.get(key, 0)

    def total(self) -> float:
        """Sum across all label combinations."""
        with self._lock:
            return sum(self._values.values())

    def collect(self) -> List[MetricValue]:
        """Collect all values for export."""
        with self._lock:
            return [
                MetricValue(
                    name=self.name,
                    value=value,
                    labels=dict(zip(self.labels, key))
                )
                for key, value in self._values.items()
            ]

    def _label_key(self, label_values: dict) -> tuple:
        return tuple(label_values.get(l, "") for l in self.labels)


class Histogram:
    """Prometheus-style histogram metric."""

    DEFAULT_BUCKETS = (0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 60.0, float('inf'))

    def __init__(
        self,
        name: str,
        help_text: str,
        labels: List[str] = None,
        buckets: tuple = None
    ):
        self.name = name
        self.help = help_text
        self.labels = labels or []
        self.buckets = buckets or self.DEFAULT_BUCKETS
        self._values: Dict[tuple, dict] = {}
        self._lock = threading.Lock()

    def observe(self, value: float, **label_values) -> None:
        """Observe a value."""
        key = self._label_key(label_values)

        with self._lock:
            if key not in self._values:
                self._values[key] = {
                    "count": 0,
                    "sum": 0.0,
                    "buckets": {b: 0 for b in self.buckets}
                }

            data = self._values[key]
            data["count"] += 1
            data["sum"] += value

            for bucket in self.buckets:
                if value <= bucket:
                    data["buckets"][bucket] += 1

    def collect(self) -> List[MetricValue]:
        """Collect all values for export."""
        results = []

        with self._lock:
            for key, data in self._values.items():
                labels = dict(zip(self.labels, key))
                results.append(MetricValue(name=f"{self.name}_sum", value=data["sum"], labels=labels))
                results.append(MetricValue(name=f"{self.name}_count", value=data["count"], labels=labels))
                for le, count in data["buckets"].items():
                    results.append(MetricValue(
                        name=f"{self.name}_bucket",
                        value=count,
                        labels={**labels, "le": str(le)}
                    ))

        return results

    def _label_key(self, label_values: dict) -> tuple:
        return tuple(label_values.get(l, "") for l in self.labels)


# =============================================================================
# Metrics Registry
# =============================================================================

class MetricsRegistry:
    """Process-wide metrics registry."""

    def __init__(self, prefix: str = "form_sync"):
        self.prefix = prefix
        self._metrics: Dict[str, Counter | Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, help_text: str, labels: List[str] = None) -> Counter:
        """Register or get a counter metric."""
        full_name = f"{self.prefix}_{name}"

        with self._lock:
            if full_name not in self._metrics:
                self._metrics[full_name] = Counter(full_name, help_text, labels)
            return self._metrics[full_name]

    def histogram(
        self,
        name: str,
        help_text: str,
        labels: List[str] = None,
        buckets: tuple = None
    ) -> Histogram:
        """Register or get a histogram metric."""
        full_name = f"{self.prefix}_{name}"

        with self._lock:
            if full_name not in self._metrics:
                self._metrics[full_name] = Histogram(full_name, help_text, labels, buckets)
            return self._metrics[full_name]

    def collect_all(self) -> List[MetricValue]:
        """Collect all metrics."""
        results = []

        with self._lock:
            for metric in self._metrics.values():
                results.extend(metric.collect())

        return results

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        lines = []

        for metric in self.collect_all():
            if metric.labels:
                label_str = ",".join(f'{k}="{v}"' for k, v in metric.labels.items())
                lines.append(f"{metric.name}{{{label_str}}} {metric.value}")
            else:
                lines.append(f"{metric.name} {metric.value}")

        return "\n".join(lines)


# =============================================================================
# Pre-defined Sync Metrics
# =============================================================================

_registry = MetricsRegistry()

statements_executed_total = _registry.counter(
    "statements_executed_total",
    "Total number of SQL statements executed",
    labels=["phase", "status"]
)

records_materialized_total = _registry.counter(
    "records_materialized_total",
    "Total number of records written or deleted",
    labels=["operation"]
)

forms_rebuilt_total = _registry.counter(
    "forms_rebuilt_total",
    "Total number of full form rebuilds"
)

view_failures_total = _registry.counter(
    "view_failures_total",
    "Friendly view drops or creates that failed",
    labels=["action"]
)

rebuild_duration_seconds = _registry.histogram(
    "rebuild_duration_seconds",
    "Duration of full form rebuilds in seconds"
)


def get_registry() -> MetricsRegistry:
    """Get the process metrics registry."""
    return _registry


# =============================================================================
# Structured Logging
# =============================================================================

class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra
        self._hostname = os.environ.get("HOSTNAME", "unknown")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self._hostname
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in record.__dict__.items():
                if key not in (
                    'name', 'msg', 'args', 'created', 'filename', 'funcName',
                    'levelname', 'levelno', 'lineno', 'module', 'msecs',
                    'pathname', 'process', 'processName', 'relativeCreated',
                    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
                    'message', 'taskName'
                ):
                    log_data[key] = value

        return json.dumps(log_data, default=str)


class SyncLogger:
    """
    Structured logger for sync operations.

    Provides convenience methods for common sync events and keeps the
    matching counters up to date.
    """

    def __init__(self, name: str = "form_sync"):
        self._logger = logging.getLogger(name)

    def form_rebuilt(self, form_name: str, table: str, record_count: int, duration_s: float) -> None:
        """Log completion of a full rebuild."""
        self._logger.info(
            f"Rebuilt {form_name}: {record_count} records in {duration_s:.2f}s",
            extra={
                "event": "form_rebuilt",
                "form": form_name,
                "table": table,
                "record_count": record_count,
                "duration_s": duration_s
            }
        )
        forms_rebuilt_total.inc()
        rebuild_duration_seconds.observe(duration_s)

    def statement_failed(self, phase: str, sql: str, error: str, debug: bool = False) -> None:
        """Log a statement the store rejected."""
        extra = {"event": "statement_failed", "phase": phase, "error": error}
        if debug:
            extra["sql"] = sql
        self._logger.error(f"Statement failed during {phase}: {error}", extra=extra)
        statements_executed_total.inc(1, phase=phase, status="failed")

    def view_skipped(self, action: str, view_name: str, error: str) -> None:
        """Log a friendly view operation that could not be applied."""
        self._logger.warning(
            f"Could not {action} view {view_name!r}: {error}",
            extra={"event": "view_skipped", "action": action, "view": view_name, "error": error}
        )
        view_failures_total.inc(1, action=action)

    def record_materialized(self, record_id: str, operation: str, statement_count: int) -> None:
        """Log a record written to or removed from the store."""
        self._logger.debug(
            f"Record {record_id} {operation}: {statement_count} statements",
            extra={
                "event": "record_materialized",
                "record_id": record_id,
                "operation": operation,
                "statement_count": statement_count
            }
        )
        records_materialized_total.inc(1, operation=operation)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: str = None
) -> None:
    """
    Configure logging for production.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting
        log_file: Optional log file path
    """
    handlers = []

    console = logging.StreamHandler()
    if json_format:
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    handlers.append(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True
    )
