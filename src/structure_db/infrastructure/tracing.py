"""OpenTelemetry tracing configuration.

Spans are opened around units of work that may hold the execution queue
for a long time: transactions, migrations and statement runs.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from structure_db.infrastructure.config import ObservabilityConfig

SPAN_PREFIX = "structure_db"

_tracer: trace.Tracer | None = None


def setup_tracing(
    service_name: str = "structure_db",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """Install a TracerProvider and return the structure-db tracer.

    Spans go to an OTLP collector when ``otlp_endpoint`` is set (for
    example ``"http://localhost:4317"``) and to stdout when
    ``console_export`` is set. With neither, spans are created but dropped.
    """
    global _tracer

    from structure_db import __version__

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": service_name,
                "service.version": __version__,
                "db.system": "sqlite",
            }
        )
    )

    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )

    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = provider.get_tracer(service_name)
    return _tracer


def configure_from(observability: ObservabilityConfig) -> trace.Tracer:
    """Apply the tracing section of a loaded configuration."""
    return setup_tracing(
        service_name=observability.otel_service_name,
        otlp_endpoint=observability.otel_endpoint,
    )


def get_tracer() -> trace.Tracer:
    """Get the global tracer instance."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("structure_db")
    return _tracer


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Open a span named ``structure_db.<name>``.

    Each attribute is recorded as ``db.<key>``; None values are left out.
    """
    with get_tracer().start_as_current_span(f"{SPAN_PREFIX}.{name}") as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(f"db.{key}", value)
        yield span
