"""
Metrics Collector for the Connection Registry.

Centralizes counters for accepts, closes and broadcasts.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from ws_registry.errors import AcceptFailure


@dataclass
class BroadcastMetrics:
    """Metrics for broadcast operations."""
    total: int = 0
    failed: int = 0
    recipients_sent: int = 0
    recipients_failed: int = 0


@dataclass
class ConnectionMetrics:
    """Metrics for connection lifecycle."""
    accepted: int = 0
    rejected_capacity: int = 0
    rejected_handshake: int = 0
    rejected_not_ready: int = 0
    timeouts: int = 0
    closed_by_peer: int = 0
    closed_by_registry: int = 0


class MetricsCollector:
    """
    Metrics collector for the Connection Registry.

    Counter updates are guarded by a threading.Lock so snapshots taken from
    a health check thread see consistent values.

    Usage:
        metrics = MetricsCollector()
        metrics.increment_broadcast_total()
        stats = metrics.get_snapshot()
    """

    def __init__(self) -> None:
        """Initialize metrics collector."""
        self._lock = threading.Lock()
        self._broadcast = BroadcastMetrics()
        self._connection = ConnectionMetrics()

    # ==========================================================================
    # Broadcast Metrics
    # ==========================================================================

    def increment_broadcast_total(self) -> None:
        """Increment total broadcast count."""
        with self._lock:
            self._broadcast.total += 1

    def increment_broadcast_failed(self) -> None:
        """Increment count of broadcasts with at least one failed recipient."""
        with self._lock:
            self._broadcast.failed += 1

    def add_broadcast_recipients(self, sent: int, failed: int) -> None:
        """Add delivered and failed recipient counts of one broadcast."""
        with self._lock:
            self._broadcast.recipients_sent += sent
            self._broadcast.recipients_failed += failed

    # ==========================================================================
    # Connection Metrics
    # ==========================================================================

    def increment_connection_accepted(self) -> None:
        """Increment count of registered connections."""
        with self._lock:
            self._connection.accepted += 1

    def increment_connection_rejected(self, reason: AcceptFailure) -> None:
        """Increment the rejection counter matching an accept failure."""
        with self._lock:
            if reason is AcceptFailure.OUT_OF_MEMORY:
                self._connection.rejected_capacity += 1
            elif reason is AcceptFailure.TIMEOUT:
                self._connection.timeouts += 1
            elif reason is AcceptFailure.NOT_READY:
                self._connection.rejected_not_ready += 1
            else:
                self._connection.rejected_handshake += 1

    def increment_connection_closed(self, by_peer: bool) -> None:
        """Increment close counters, split by who ended the connection."""
        with self._lock:
            if by_peer:
                self._connection.closed_by_peer += 1
            else:
                self._connection.closed_by_registry += 1

    # ==========================================================================
    # Snapshot
    # ==========================================================================

    def get_snapshot(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Metric names follow the pattern {category}_{metric}.
        """
        with self._lock:
            return {
                # Broadcast metrics
                "broadcasts_total": self._broadcast.total,
                "broadcasts_failed": self._broadcast.failed,
                "broadcasts_sent_recipients": self._broadcast.recipients_sent,
                "broadcasts_failed_recipients": self._broadcast.recipients_failed,
                # Connection metrics
                "connections_accepted": self._connection.accepted,
                "connections_rejected_capacity": self._connection.rejected_capacity,
                "connections_rejected_handshake": self._connection.rejected_handshake,
                "connections_rejected_not_ready": self._connection.rejected_not_ready,
                "connections_timeouts": self._connection.timeouts,
                "connections_closed_by_peer": self._connection.closed_by_peer,
                "connections_closed_by_registry": self._connection.closed_by_registry,
            }

    def reset(self) -> dict[str, Any]:
        """
        Reset all metrics and return the previous values.

        Useful for periodic metric collection systems.
        """
        snapshot = self.get_snapshot()
        with self._lock:
            self._broadcast = BroadcastMetrics()
            self._connection = ConnectionMetrics()
        return snapshot
