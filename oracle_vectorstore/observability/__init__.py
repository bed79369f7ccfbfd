"""Observability layer - logging and metrics."""

from oracle_vectorstore.observability.logging import bind_context, clear_context, setup_logging
from oracle_vectorstore.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "bind_context", "clear_context", "MetricsCollector", "get_metrics"]
