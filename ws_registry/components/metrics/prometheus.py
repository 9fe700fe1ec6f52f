"""
Prometheus Metrics Export for the Connection Registry.

Formats internal metrics in Prometheus exposition format.
No external dependencies required.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ws_registry.connection_registry import ConnectionRegistry


class MetricType(str, Enum):
    """Prometheus metric types."""

    COUNTER = "counter"
    GAUGE = "gauge"


class PrometheusFormatter:
    """
    Formats metrics in Prometheus text exposition format.

    Reference: https://prometheus.io/docs/instrumenting/exposition_formats/

    Usage:
        formatter = PrometheusFormatter()
        output = formatter.format_all_metrics(registry.get_stats())
    """

    def __init__(self, prefix: str = "wsregistry"):
        """
        Initialize formatter.

        Args:
            prefix: Prefix for all metric names.
        """
        self._prefix = prefix

    def format_metric(
        self,
        name: str,
        value: float | int,
        help_text: str,
        metric_type: MetricType,
        labels: dict[str, str] | None = None,
    ) -> str:
        """
        Format a single metric in Prometheus format.

        Args:
            name: Metric name without prefix.
            value: Metric value.
            help_text: Help text description.
            metric_type: Prometheus metric type.
            labels: Optional label key-value pairs.

        Returns:
            Prometheus-formatted metric string.
        """
        full_name = f"{self._prefix}_{name}"
        lines = [
            f"# HELP {full_name} {help_text}",
            f"# TYPE {full_name} {metric_type.value}",
        ]

        if labels:
            label_str = ",".join(f'{k}="{v}"' for k, v in labels.items())
            lines.append(f"{full_name}{{{label_str}}} {value}")
        else:
            lines.append(f"{full_name} {value}")

        return "\n".join(lines)

    def format_labeled(
        self,
        name: str,
        label: str,
        values: dict[str, float | int],
        help_text: str,
        metric_type: MetricType,
    ) -> str:
        """Format one metric family with a sample per label value."""
        full_name = f"{self._prefix}_{name}"
        lines = [
            f"# HELP {full_name} {help_text}",
            f"# TYPE {full_name} {metric_type.value}",
        ]
        for label_value, value in values.items():
            lines.append(f'{full_name}{{{label}="{label_value}"}} {value}')
        return "\n".join(lines)

    def format_all_metrics(self, stats: dict[str, Any]) -> str:
        """
        Format all metrics from ConnectionRegistry stats.

        Args:
            stats: Stats dictionary from ConnectionRegistry.get_stats().

        Returns:
            Complete Prometheus exposition format string.
        """
        metrics = stats.get("metrics", {})
        lines: list[str] = []

        # Connection gauges
        lines.append(self.format_metric(
            "connections_total",
            stats.get("total_connections", 0),
            "Current number of registered connections",
            MetricType.GAUGE,
        ))
        lines.append(self.format_metric(
            "connections_max",
            stats.get("max_connections", 0),
            "Maximum transport handles",
            MetricType.GAUGE,
        ))
        lines.append(self.format_metric(
            "connections_utilization_percent",
            stats.get("utilization_percent", 0),
            "Connection utilization percentage",
            MetricType.GAUGE,
        ))
        lines.append(self.format_labeled(
            "connections_by_category",
            "category",
            stats.get("by_category", {}),
            "Registered connections per category",
            MetricType.GAUGE,
        ))

        # Lifecycle counters
        lines.append(self.format_metric(
            "connections_accepted",
            metrics.get("connections_accepted", 0),
            "Connections registered since start",
            MetricType.COUNTER,
        ))
        lines.append(self.format_labeled(
            "connections_rejected_total",
            "reason",
            {
                "capacity": metrics.get("connections_rejected_capacity", 0),
                "handshake": metrics.get("connections_rejected_handshake", 0),
                "timeout": metrics.get("connections_timeouts", 0),
                "not_ready": metrics.get("connections_rejected_not_ready", 0),
            },
            "Rejected upgrade requests by reason",
            MetricType.COUNTER,
        ))
        lines.append(self.format_labeled(
            "connections_closed_total",
            "initiator",
            {
                "peer": metrics.get("connections_closed_by_peer", 0),
                "registry": metrics.get("connections_closed_by_registry", 0),
            },
            "Closed connections by initiator",
            MetricType.COUNTER,
        ))

        # Broadcast counters
        lines.append(self.format_metric(
            "broadcasts_total",
            metrics.get("broadcasts_total", 0),
            "Total broadcast operations",
            MetricType.COUNTER,
        ))
        lines.append(self.format_metric(
            "broadcasts_failed",
            metrics.get("broadcasts_failed", 0),
            "Broadcasts with at least one failed recipient",
            MetricType.COUNTER,
        ))
        lines.append(self.format_metric(
            "broadcasts_sent_recipients",
            metrics.get("broadcasts_sent_recipients", 0),
            "Total delivered recipients",
            MetricType.COUNTER,
        ))
        lines.append(self.format_metric(
            "broadcasts_failed_recipients",
            metrics.get("broadcasts_failed_recipients", 0),
            "Total failed recipients",
            MetricType.COUNTER,
        ))

        lines.append(self.format_metric(
            "scrape_timestamp",
            int(time.time()),
            "Timestamp of metrics scrape",
            MetricType.GAUGE,
        ))

        return "\n".join(lines) + "\n"


_formatter: PrometheusFormatter | None = None


def get_prometheus_formatter() -> PrometheusFormatter:
    """Get singleton Prometheus formatter."""
    global _formatter
    if _formatter is None:
        _formatter = PrometheusFormatter()
    return _formatter


def generate_prometheus_metrics(registry: "ConnectionRegistry") -> str:
    """
    Generate Prometheus metrics from a ConnectionRegistry.

    Args:
        registry: ConnectionRegistry instance.

    Returns:
        Prometheus exposition format string.
    """
    return get_prometheus_formatter().format_all_metrics(registry.get_stats())
