"""OpenTelemetry spans around engine calls.

Spans are named ``duckling.<operation>`` and carry the OpenTelemetry
database attributes (``db.system``, ``db.statement``, ``db.name``). A span
left by a DucklingError is marked failed and tagged with the error reason,
so failed statements can be filtered by category in a trace backend.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.trace import Status, StatusCode

from duckling.domain.errors import DucklingError

DB_SYSTEM = "duckdb"
TRACER_NAME = "duckling"

# Longest SQL text attached to a span attribute.
MAX_STATEMENT_ATTRIBUTE = 1024

_tracer: trace.Tracer | None = None


def setup_tracing(
    service_name: str = "duckling",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """Install a tracer provider for this process.

    Args:
        service_name: ``service.name`` resource attribute.
        otlp_endpoint: OTLP gRPC collector, e.g. ``"http://localhost:4317"``.
        console_export: Also print finished spans to stdout.

    Returns:
        The library tracer, bound to the new provider.
    """
    global _tracer

    from duckling import __version__

    exporters: list[SpanExporter] = []
    if otlp_endpoint:
        exporters.append(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    if console_export:
        exporters.append(ConsoleSpanExporter())

    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name, "service.version": __version__})
    )
    for exporter in exporters:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(TRACER_NAME, __version__)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Return the library tracer.

    Before setup_tracing runs this is a proxy on the global provider, which
    records nothing until a provider is installed.
    """
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def statement_attributes(sql: str, parameter_count: int | None = None) -> dict[str, Any]:
    """Span attributes for running one SQL text."""
    return {
        "db.system": DB_SYSTEM,
        "db.statement": sql[:MAX_STATEMENT_ATTRIBUTE],
        "duckling.parameter_count": parameter_count,
    }


@contextmanager
def trace_span(name: str, attributes: Mapping[str, Any] | None = None) -> Iterator[trace.Span]:
    """Run the enclosed block inside a span.

    None-valued attributes are dropped. A DucklingError raised in the block
    sets the span status to ERROR and adds ``duckling.error.reason`` before
    it propagates.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(
        name, record_exception=False, set_status_on_exception=False
    ) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except DucklingError as exc:
            span.set_attribute("duckling.error.reason", exc.reason.value)
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
