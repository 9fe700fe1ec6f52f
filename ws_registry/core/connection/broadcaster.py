"""
Connection Broadcaster.

Sends a text payload to every live connection of a category.
"""

from __future__ import annotations

import asyncio
from typing import Hashable, TYPE_CHECKING

from shared.config.logging import get_logger
from ws_registry.components.core.constants import WSConstants

if TYPE_CHECKING:
    from ws_registry.components.connection.index import Connection, ConnectionSet
    from ws_registry.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


class ConnectionBroadcaster:
    """
    Handles broadcasting text payloads to connections.

    Broadcasts are best-effort: the recipients are snapshotted up front, a
    failed send never stops the others, and no send error reaches the
    caller. Recipients that close while the broadcast is running are
    skipped.
    """

    def __init__(
        self,
        connections: "ConnectionSet",
        metrics: "MetricsCollector",
        batch_size: int = WSConstants.BROADCAST_BATCH_SIZE,
    ) -> None:
        """
        Initialize broadcaster with dependencies.

        Args:
            connections: The live-connection set
            metrics: Collects broadcast metrics
            batch_size: Number of connections sent to in parallel
        """
        self._connections = connections
        self._metrics = metrics
        self._batch_size = max(1, batch_size)

    async def broadcast(self, category: Hashable, payload: str) -> int:
        """
        Send a text payload to all connections in a category.

        Returns:
            Number of connections that received the payload.

        Raises:
            TypeError: If payload is not a str.
        """
        if not isinstance(payload, str):
            raise TypeError(f"payload must be str, got {type(payload).__name__}")

        connections = self._connections.get_category_connections(category)
        context = f"category:{getattr(category, 'value', category)}"
        return await self._broadcast_to_connections(connections, payload, context)

    async def _send_to_connection(self, connection: "Connection", payload: str) -> bool:
        """
        Send to a single connection, returning success status.

        Connections removed from the set since the snapshot are skipped.
        """
        if connection not in self._connections:
            return False
        try:
            await connection.send_text(payload)
            return True
        except Exception as e:
            logger.debug("Send failed", connection_id=connection.id, error=str(e))
            return False

    async def _broadcast_to_connections(
        self,
        connections: list["Connection"],
        payload: str,
        context: str,
    ) -> int:
        """
        Send to multiple connections in parallel batches.

        Args:
            connections: Snapshot of recipient connections.
            payload: Text payload to send.
            context: Context string for logging.

        Returns:
            Number of connections that received the payload.
        """
        self._metrics.increment_broadcast_total()
        if not connections:
            return 0

        sent = 0
        failed = 0

        for i in range(0, len(connections), self._batch_size):
            batch = connections[i : i + self._batch_size]
            results = await asyncio.gather(
                *[self._send_to_connection(connection, payload) for connection in batch],
                return_exceptions=True,
            )

            for result in results:
                if result is True:
                    sent += 1
                else:
                    failed += 1
                    if isinstance(result, Exception):
                        logger.debug(
                            "Batch send exception",
                            context=context,
                            error=str(result),
                        )

        self._metrics.add_broadcast_recipients(sent, failed)
        if failed > 0:
            self._metrics.increment_broadcast_failed()
            logger.debug(
                "Broadcast completed with failures",
                context=context,
                sent=sent,
                failed=failed,
                total=len(connections),
            )

        return sent
