"""
Prometheus metrics for monitoring the vector store.

Defines and exposes metrics for:
- Document upserts and deletes
- Similarity search volume, outcome and latency
- Schema provisioning steps

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    start_http_server,
)

from oracle_vectorstore.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the vector store.

    Usage:
        metrics = MetricsCollector()
        metrics.start_server()

        metrics.record_upsert(table="vector_store", count=10)
        metrics.record_search(table="vector_store", status="success", latency=0.02)
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            registry: Registry to register metrics with (default: global REGISTRY)
        """
        self._registry = registry or REGISTRY

        self.documents_upserted = Counter(
            "oracle_vectorstore_documents_upserted_total",
            "Total number of documents upserted",
            ["table"],
            registry=self._registry,
        )

        self.documents_deleted = Counter(
            "oracle_vectorstore_documents_deleted_total",
            "Total number of rows deleted",
            ["table"],
            registry=self._registry,
        )

        self.searches = Counter(
            "oracle_vectorstore_searches_total",
            "Total number of similarity searches",
            ["table", "status"],  # status: success, error
            registry=self._registry,
        )

        self.search_latency = Histogram(
            "oracle_vectorstore_search_latency_seconds",
            "Similarity search latency",
            ["table"],
            buckets=LATENCY_BUCKETS,
            registry=self._registry,
        )

        self.search_results = Histogram(
            "oracle_vectorstore_search_results",
            "Number of rows returned per similarity search",
            ["table"],
            buckets=(0, 1, 2, 5, 10, 20, 50, 100, 500),
            registry=self._registry,
        )

        self.schema_operations = Counter(
            "oracle_vectorstore_schema_operations_total",
            "Schema provisioning statements by outcome",
            ["operation", "outcome"],  # outcome: created, reused, failed
            registry=self._registry,
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=self._registry)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_upsert(self, table: str, count: int) -> None:
        """Record upserted documents."""
        if count > 0:
            self.documents_upserted.labels(table=table).inc(count)

    def record_delete(self, table: str, count: int) -> None:
        """Record deleted rows."""
        if count > 0:
            self.documents_deleted.labels(table=table).inc(count)

    def record_search(
        self,
        table: str,
        status: str,
        latency: float | None = None,
        results: int | None = None,
    ) -> None:
        """
        Record a similarity search.

        Args:
            table: Backing table name
            status: "success" or "error"
            latency: Optional search latency in seconds
            results: Optional number of rows returned
        """
        self.searches.labels(table=table, status=status).inc()

        if latency is not None:
            self.search_latency.labels(table=table).observe(latency)
        if results is not None:
            self.search_results.labels(table=table).observe(results)

    def record_schema_operation(self, operation: str, outcome: str) -> None:
        """Record a DDL step (drop_table, create_table, create_index)."""
        self.schema_operations.labels(operation=operation, outcome=outcome).inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
