"""Prometheus metrics for structure-db connections."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all structure-db metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Connection operations
        self.operations_total = Counter(
            "structure_db_operations_total",
            "Total number of connection operations",
            ["operation", "status"],  # status: success, error
            registry=self._registry,
        )

        self.operation_latency_seconds = Histogram(
            "structure_db_operation_latency_seconds",
            "Connection operation latency in seconds",
            ["operation"],  # prepare, execute, perform, step, ...
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
            registry=self._registry,
        )

        # Execution queue
        self.queue_wait_seconds = Histogram(
            "structure_db_queue_wait_seconds",
            "Time an operation waited before the execution queue ran it",
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            registry=self._registry,
        )

        # Transactions
        self.transactions_total = Counter(
            "structure_db_transactions_total",
            "Total number of transactions",
            ["status"],  # committed, rolled_back, rejected
            registry=self._registry,
        )

        self.transactions_active = Gauge(
            "structure_db_transactions_active",
            "Number of transactions currently open",
            registry=self._registry,
        )

        # Migrations
        self.migrations_total = Counter(
            "structure_db_migrations_total",
            "Total number of migration requests",
            ["status"],  # applied, skipped, rejected, failed
            registry=self._registry,
        )

        # Statements
        self.statements_prepared_total = Counter(
            "structure_db_statements_prepared_total",
            "Total number of prepared statements",
            registry=self._registry,
        )

        self.statements_open = Gauge(
            "structure_db_statements_open",
            "Number of prepared statements not yet finalized",
            registry=self._registry,
        )

        self.connections_open = Gauge(
            "structure_db_connections_open",
            "Number of open connections",
            registry=self._registry,
        )

        self.info = Info(
            "structure_db",
            "structure-db library information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up the Prometheus metrics endpoint.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    from structure_db import __version__
    _metrics.info.info({
        "version": __version__,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
