"""
Tests for the metrics collector and Prometheus export.
"""

from ws_registry.components.metrics.collector import MetricsCollector
from ws_registry.components.metrics.prometheus import (
    MetricType,
    PrometheusFormatter,
    generate_prometheus_metrics,
)
from ws_registry.connection_registry import ConnectionRegistry
from ws_registry.errors import AcceptFailure


class TestMetricsCollector:
    """Tests for MetricsCollector counters."""

    def test_rejections_are_split_by_reason(self):
        metrics = MetricsCollector()
        metrics.increment_connection_rejected(AcceptFailure.OUT_OF_MEMORY)
        metrics.increment_connection_rejected(AcceptFailure.TIMEOUT)
        metrics.increment_connection_rejected(AcceptFailure.NOT_READY)
        metrics.increment_connection_rejected(AcceptFailure.HANDSHAKE_FAILED)
        metrics.increment_connection_rejected(AcceptFailure.HANDSHAKE_FAILED)

        snapshot = metrics.get_snapshot()

        assert snapshot["connections_rejected_capacity"] == 1
        assert snapshot["connections_timeouts"] == 1
        assert snapshot["connections_rejected_not_ready"] == 1
        assert snapshot["connections_rejected_handshake"] == 2

    def test_closes_are_split_by_initiator(self):
        metrics = MetricsCollector()
        metrics.increment_connection_closed(by_peer=True)
        metrics.increment_connection_closed(by_peer=False)
        metrics.increment_connection_closed(by_peer=False)

        snapshot = metrics.get_snapshot()

        assert snapshot["connections_closed_by_peer"] == 1
        assert snapshot["connections_closed_by_registry"] == 2

    def test_reset_returns_previous_values(self):
        metrics = MetricsCollector()
        metrics.increment_broadcast_total()
        metrics.add_broadcast_recipients(sent=4, failed=1)

        previous = metrics.reset()

        assert previous["broadcasts_total"] == 1
        assert previous["broadcasts_sent_recipients"] == 4
        assert previous["broadcasts_failed_recipients"] == 1
        assert all(value == 0 for value in metrics.get_snapshot().values())


class TestPrometheusFormatter:
    """Tests for the exposition format."""

    def test_format_metric_with_labels(self):
        formatter = PrometheusFormatter(prefix="test")

        output = formatter.format_metric(
            "requests", 3, "Requests seen", MetricType.COUNTER, {"path": "/ws"}
        )

        assert output.splitlines() == [
            "# HELP test_requests Requests seen",
            "# TYPE test_requests counter",
            'test_requests{path="/ws"} 3',
        ]

    def test_registry_metrics(self):
        registry = ConnectionRegistry(max_total_connections=4)
        registry.initialize()

        output = generate_prometheus_metrics(registry)

        assert "wsregistry_connections_total 0\n" in output
        assert "wsregistry_connections_max 4\n" in output
        assert 'wsregistry_connections_rejected_total{reason="capacity"} 0' in output
        assert 'wsregistry_connections_closed_total{initiator="peer"} 0' in output
        assert "# TYPE wsregistry_broadcasts_total counter" in output
        assert output.endswith("\n")
