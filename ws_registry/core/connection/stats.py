"""
Connection Statistics.

Aggregates statistics from the connection set, the transport factory and
the metrics collector.
"""

from __future__ import annotations

from typing import Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from ws_registry.components.connection.index import ConnectionSet
    from ws_registry.components.metrics.collector import MetricsCollector
    from ws_registry.components.transport.factory import TransportFactory


class ConnectionStats:
    """Aggregates connection statistics for health and metrics endpoints."""

    def __init__(
        self,
        connections: "ConnectionSet",
        metrics: "MetricsCollector",
        get_factory: Callable[[], "TransportFactory | None"],
        max_total_connections: int,
    ) -> None:
        self._connections = connections
        self._metrics = metrics
        self._get_factory = get_factory
        self._max_total_connections = max_total_connections

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        factory = self._get_factory()
        index_stats = self._connections.get_stats()
        total = index_stats["total_connections"]

        return {
            "initialized": factory is not None,
            "total_connections": total,
            "max_connections": self._max_total_connections,
            "utilization_percent": round(
                total / max(1, self._max_total_connections) * 100, 1
            ),
            "categories_with_connections": index_stats["categories_count"],
            "by_category": index_stats["by_category"],
            "transport_live_handles": factory.live_handles if factory is not None else 0,
            "metrics": self._metrics.get_snapshot(),
        }
