"""Prometheus metrics for the access layer."""

from __future__ import annotations

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
)


class MetricsRegistry:
    """Registry of all access layer metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Handle metrics
        self.handles_open = Gauge(
            "duckling_handles_open",
            "Number of live handles",
            ["kind"],  # database, connection, statement, query_result, appender
            registry=self._registry,
        )

        # Query metrics
        self.queries_total = Counter(
            "duckling_queries_total",
            "Total number of statements run",
            ["kind", "status"],  # kind: query, execute; status: success, error
            registry=self._registry,
        )

        self.query_latency_seconds = Histogram(
            "duckling_query_latency_seconds",
            "Time until the engine has a result ready",
            ["kind"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        # Result stream metrics
        self.chunks_fetched_total = Counter(
            "duckling_chunks_fetched_total",
            "Total non-empty chunks pulled from result cursors",
            registry=self._registry,
        )

        self.rows_fetched_total = Counter(
            "duckling_rows_fetched_total",
            "Total rows pulled from result cursors",
            registry=self._registry,
        )

        # Appender metrics
        self.appender_rows_buffered_total = Counter(
            "duckling_appender_rows_buffered_total",
            "Total rows accepted into appender buffers",
            registry=self._registry,
        )

        self.appender_rows_committed_total = Counter(
            "duckling_appender_rows_committed_total",
            "Total appended rows committed to tables",
            registry=self._registry,
        )

        self.appender_flushes_total = Counter(
            "duckling_appender_flushes_total",
            "Total appender flushes",
            ["status"],  # success, error
            registry=self._registry,
        )

        self.appender_flush_latency_seconds = Histogram(
            "duckling_appender_flush_latency_seconds",
            "Appender flush latency in seconds",
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5, 1.0, 5.0),
            registry=self._registry,
        )

        self.info = Info(
            "duckling",
            "Access layer information",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(
    port: int | None = None, registry: CollectorRegistry | None = None
) -> MetricsRegistry:
    """
    Set up the metrics registry and, optionally, the Prometheus exporter.

    Args:
        port: Port for the metrics HTTP server; no server is started if None
        registry: Optional custom registry. A new MetricsRegistry is created
            on it; without one the process-wide registry is returned.

    Returns:
        The metrics registry
    """
    # Collectors can only be registered once per CollectorRegistry, so the
    # default registry always goes through the process-wide instance.
    metrics = get_metrics() if registry is None else MetricsRegistry(registry)

    from duckling import __version__
    metrics.info.info({
        "version": __version__,
    })

    if port is not None:
        start_http_server(port, registry=metrics.registry)

    return metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
