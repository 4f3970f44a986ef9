"""Unit tests for logging, metrics and tracing setup."""

from __future__ import annotations

import json
from typing import Callable

import pytest
import structlog
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from structure_db import Connection, MigrationOrderError, SQLSyntaxError
from structure_db.infrastructure import setup_observability, tracing
from structure_db.infrastructure.config import Config, ObservabilityConfig
from structure_db.infrastructure.logging import add_thread_name, get_logger, setup_logging
from structure_db.infrastructure.metrics import MetricsRegistry, get_metrics


@pytest.fixture
def spans(monkeypatch: pytest.MonkeyPatch) -> InMemorySpanExporter:
    """Route spans to an in-memory exporter."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(tracing, "_tracer", provider.get_tracer("structure_db.tests"))
    return exporter


@pytest.fixture
def reset_structlog() -> None:
    """Restore structlog's defaults after the test."""
    yield
    structlog.reset_defaults()


@pytest.mark.unit
class TestLogging:
    """Tests for structured logging."""

    def test_add_thread_name(self) -> None:
        """The emitting thread's name is added to each event."""
        event = add_thread_name(None, "info", {"event": "x"})

        assert event["thread"] == "MainThread"

    def test_json_output(self, capsys: pytest.CaptureFixture[str], reset_structlog: None) -> None:
        """JSON logging renders one object per event."""
        setup_logging(level="INFO", log_format="json")

        get_logger("tests", component="queue").info("queue_started", depth=0)

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["event"] == "queue_started"
        assert record["component"] == "queue"
        assert record["level"] == "info"
        assert "thread" in record

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str], reset_structlog: None) -> None:
        """Events below the configured level are dropped."""
        setup_logging(level="WARNING", log_format="json")

        get_logger("tests").info("hidden")

        assert "hidden" not in capsys.readouterr().out


@pytest.mark.unit
class TestConnectionMetrics:
    """Tests for metrics recorded by connection operations."""

    def test_operation_counts(self, connection: Connection, sample: Callable[..., float]) -> None:
        """Operations are counted by kind and status."""
        connection.execute("CREATE TABLE t (a)")
        with pytest.raises(SQLSyntaxError):
            connection.execute("INSERT INTO missing VALUES (1)")

        assert sample("structure_db_operations_total", operation="execute", status="success") == 1
        assert sample("structure_db_operations_total", operation="execute", status="error") == 1
        assert sample("structure_db_operation_latency_seconds_count", operation="execute") == 2

    def test_open_connections_gauge(
        self, test_config, metrics_registry: MetricsRegistry, sample: Callable[..., float]
    ) -> None:
        """The open-connection gauge follows open and close."""
        conn = Connection.open(config=test_config, metrics=metrics_registry)
        assert sample("structure_db_connections_open") == 1

        conn.close()
        assert sample("structure_db_connections_open") == 0


@pytest.mark.unit
class TestTracing:
    """Tests for spans around units of work."""

    def test_transaction_span(self, connection: Connection, spans: InMemorySpanExporter) -> None:
        """Transactions are traced."""
        connection.transaction(lambda c: None)

        assert [span.name for span in spans.get_finished_spans()] == ["structure_db.transaction"]

    def test_migrate_span_attributes(self, connection: Connection, spans: InMemorySpanExporter) -> None:
        """Migration spans carry the target version."""
        connection.migrate(1, lambda c: None)

        migrate_spans = [s for s in spans.get_finished_spans() if s.name == "structure_db.migrate"]
        assert migrate_spans[0].attributes["db.version"] == 1

    def test_failed_migration_span_records_error(
        self, connection: Connection, spans: InMemorySpanExporter
    ) -> None:
        """A rejected migration marks its span as failed."""
        with pytest.raises(MigrationOrderError):
            connection.migrate(4, lambda c: None)

        span = spans.get_finished_spans()[-1]
        assert not span.status.is_ok

    def test_perform_span(self, connection: Connection, spans: InMemorySpanExporter) -> None:
        """perform() spans carry the statement text."""
        statement = connection.prepare("SELECT 1")
        connection.perform(statement, lambda row: None)

        span = spans.get_finished_spans()[-1]
        assert span.name == "structure_db.perform"
        assert span.attributes["db.statement"] == "SELECT 1"


@pytest.mark.unit
class TestSetupObservability:
    """Tests for one-call setup."""

    def test_applies_configuration(self, reset_structlog: None) -> None:
        """Logging and tracing are configured and the shared registry returned."""
        config = Config(observability=ObservabilityConfig(log_level="DEBUG", log_format="console"))

        metrics = setup_observability(config)

        assert metrics is get_metrics()
        assert tracing.get_tracer() is not None
        assert structlog.is_configured()
