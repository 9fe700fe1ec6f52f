"""
Observability components: counters and Prometheus export.
"""

from ws_registry.components.metrics.collector import MetricsCollector
from ws_registry.components.metrics.prometheus import (
    PrometheusFormatter,
    generate_prometheus_metrics,
)

__all__ = [
    "MetricsCollector",
    "PrometheusFormatter",
    "generate_prometheus_metrics",
]
