"""Infrastructure layer - cross-cutting concerns."""

from structure_db.infrastructure.config import Config, get_config
from structure_db.infrastructure.logging import setup_logging, get_logger
from structure_db.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from structure_db.infrastructure.observability import setup_observability
from structure_db.infrastructure.tracing import setup_tracing, get_tracer, trace_span

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_observability",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
