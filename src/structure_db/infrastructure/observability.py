"""One-call setup of logging, tracing and metrics from configuration."""

from __future__ import annotations

from structure_db.infrastructure import logging as log_setup
from structure_db.infrastructure import tracing
from structure_db.infrastructure.config import Config, get_config
from structure_db.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics


def setup_observability(
    config: Config | None = None,
    *,
    serve_metrics: bool = False,
) -> MetricsRegistry:
    """Configure structlog and OpenTelemetry, and return the metrics registry.

    Args:
        config: Configuration to apply (the global one if omitted).
        serve_metrics: Also start the Prometheus scrape endpoint on
            ``observability.metrics_port``.
    """
    config = config or get_config()
    log_setup.configure_from(config.observability)
    tracing.configure_from(config.observability)
    if serve_metrics:
        return setup_metrics(port=config.observability.metrics_port)
    return get_metrics()
