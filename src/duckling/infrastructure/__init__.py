"""Infrastructure layer - cross-cutting concerns."""

from __future__ import annotations

from duckling.infrastructure.config import (
    ClientConfig,
    Config,
    EngineConfig,
    ObservabilityConfig,
    get_config,
)
from duckling.infrastructure.logging import get_logger, setup_logging
from duckling.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from duckling.infrastructure.tracing import get_tracer, setup_tracing, trace_span


def setup_observability(config: Config | None = None) -> MetricsRegistry:
    """Configure logging, tracing and metrics from one Config.

    Tracing is only wired to an exporter when an OTLP endpoint is set, and
    the metrics HTTP server only starts when a port is set.

    Returns:
        The process-wide metrics registry.
    """
    config = config or get_config()
    observability = config.observability

    setup_logging(level=observability.log_level, log_format=observability.log_format)
    if observability.otel_endpoint:
        setup_tracing(
            service_name=observability.otel_service_name,
            otlp_endpoint=observability.otel_endpoint,
        )
    return setup_metrics(port=observability.metrics_port)


__all__ = [
    "Config",
    "EngineConfig",
    "ClientConfig",
    "ObservabilityConfig",
    "get_config",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
    "setup_observability",
]
