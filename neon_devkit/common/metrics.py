"""Metrics collection for the search service.

A thin wrapper around ``prometheus_client`` so the HTTP layer and the
ranker record consistent metrics.

Design notes
- Metrics and labels are predeclared to keep cardinality bounded
- Each collector owns its registry (inject one in tests)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name of the owning service
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.request_count = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status'],
            registry=self.registry
        )

        self.request_duration = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration',
            ['method', 'endpoint'],
            registry=self.registry
        )

        self.search_requests = Counter(
            'search_requests_total',
            'Total search requests',
            ['mode', 'outcome'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'search_duration_seconds',
            'Search duration',
            ['mode'],
            registry=self.registry
        )

        self.search_results = Histogram(
            'search_results_returned',
            'Number of results returned per search',
            ['mode'],
            buckets=(0, 1, 5, 10, 20, 50, 100),
            registry=self.registry
        )

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration: float
    ) -> None:
        """Record HTTP request metrics.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.request_count.labels(method=method, endpoint=endpoint, status=status).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_search(
        self,
        mode: str,
        duration: float,
        outcome: str = "ok",
        result_count: Optional[int] = None
    ) -> None:
        """Record a search call; ``mode`` is hybrid, semantic or keyword."""
        self.search_requests.labels(mode=mode, outcome=outcome).inc()
        self.search_duration.labels(mode=mode).observe(duration)
        if result_count is not None:
            self.search_results.labels(mode=mode).observe(result_count)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector
