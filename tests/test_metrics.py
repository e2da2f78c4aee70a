"""
test_metrics.py - Tests for counters, histograms and structured logging.
"""

import asyncio
import json
import logging
from unittest.mock import Mock

from form_sync.config import SyncConfig
from form_sync.metrics import (
    Counter,
    Histogram,
    JSONFormatter,
    MetricsRegistry,
    SyncLogger,
    view_failures_total,
)
from form_sync.orchestrator import SyncOrchestrator


class TestMetricTypes:
    """Tests for counter and histogram bookkeeping."""

    def test_counter_labels(self):
        counter = Counter("c", "help", labels=["phase"])
        counter.inc(phase="schema")
        counter.inc(2, phase="record")

        assert counter.get(phase="schema") == 1
        assert counter.get(phase="record") == 2
        assert counter.total() == 3

    def test_histogram_buckets(self):
        histogram = Histogram("h", "help", buckets=(1.0, float("inf")))
        histogram.observe(0.5)
        histogram.observe(3.0)

        values = {(m.name, m.labels.get("le")): m.value for m in histogram.collect()}
        assert values[("h_count", None)] == 2
        assert values[("h_bucket", "1.0")] == 1
        assert values[("h_bucket", "inf")] == 2

    def test_registry_prometheus_export(self):
        registry = MetricsRegistry(prefix="test")
        registry.counter("events_total", "help", labels=["kind"]).inc(kind="a")

        assert 'test_events_total{kind="a"} 1' in registry.export_prometheus()

    def test_registry_returns_same_metric(self):
        registry = MetricsRegistry(prefix="test")
        assert registry.counter("x", "help") is registry.counter("x", "help")


class TestStructuredLogging:
    """Tests for JSON formatting and sync log events."""

    def test_json_formatter_includes_extra(self):
        record = logging.LogRecord("form_sync", logging.INFO, __file__, 1, "hello", None, None)
        record.event = "form_rebuilt"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "hello"
        assert data["event"] == "form_rebuilt"

    def test_view_skipped_counts(self, caplog):
        before = view_failures_total.get(action="create")

        with caplog.at_level(logging.WARNING, logger="form_sync"):
            SyncLogger().view_skipped("create", "Sites", "already exists")

        assert view_failures_total.get(action="create") == before + 1
        assert "Could not create view 'Sites'" in caplog.text

    def test_statement_failed_hides_sql_without_debug(self, caplog):
        with caplog.at_level(logging.ERROR, logger="form_sync"):
            SyncLogger().statement_failed("schema", "DROP TABLE x", "boom")

        assert not hasattr(caplog.records[-1], "sql")

    def test_orchestrator_reports_rebuild(self, store, form, account):
        sync_logger = Mock(spec=SyncLogger)
        orchestrator = SyncOrchestrator(store, SyncConfig(), sync_logger=sync_logger)

        async def scenario():
            await orchestrator.activate()
            await orchestrator.rebuild_form(form, account)

        asyncio.run(scenario())

        sync_logger.form_rebuilt.assert_called_once()
        args = sync_logger.form_rebuilt.call_args.args
        assert args[0] == "Sites"
        assert args[2] == 0
