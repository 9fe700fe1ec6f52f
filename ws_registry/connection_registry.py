"""
Connection Registry.

Thin orchestrator that composes modular components:
- ConnectionLifecycle: Initialize/accept/close/shutdown
- ConnectionBroadcaster: Categorized broadcasting
- ConnectionStats: Statistics aggregation

The registry is the sole owner of every Connection and of the
TransportFactory. Construct one instance per process and pass it to the
code that needs it.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Hashable, TYPE_CHECKING

from shared.config.settings import settings
from ws_registry.components.connection.index import Connection, ConnectionSet
from ws_registry.components.core.constants import WSCloseCode
from ws_registry.components.metrics.collector import MetricsCollector
from ws_registry.components.transport.factory import TransportFactory
from ws_registry.core.connection import (
    ConnectionBroadcaster,
    ConnectionLifecycle,
    ConnectionStats,
)
from ws_registry.core.connection.lifecycle import MessageHandler

if TYPE_CHECKING:
    from fastapi import WebSocket

__all__ = ["ConnectionRegistry"]


class ConnectionRegistry:
    """
    Registry of live push-channel connections, grouped by category.

    Lifecycle:
        registry = ConnectionRegistry()
        registry.initialize()
        connection = await registry.accept(websocket, category, handler)
        await registry.broadcast(category, "hello")
        await registry.shutdown()

    Configuration from settings (overridable per instance):
    - ws_accept_timeout: Seconds allowed for the upgrade handshake (default: 5)
    - ws_max_total_connections: Transport capacity (default: 1000)
    - ws_max_message_size: Largest inbound frame (default: 64 KB)
    - ws_broadcast_batch_size: Parallel sends per broadcast batch (default: 50)

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        accept_timeout: float | None = None,
        max_total_connections: int | None = None,
        max_message_size: int | None = None,
        broadcast_batch_size: int | None = None,
    ) -> None:
        """Initialize the registry with composed components. No transport is created yet."""
        self._accept_timeout = (
            settings.ws_accept_timeout if accept_timeout is None else accept_timeout
        )
        self._max_total_connections = (
            settings.ws_max_total_connections
            if max_total_connections is None
            else max_total_connections
        )
        self._max_message_size = (
            settings.ws_max_message_size if max_message_size is None else max_message_size
        )
        batch_size = (
            settings.ws_broadcast_batch_size
            if broadcast_batch_size is None
            else broadcast_batch_size
        )

        self._metrics = MetricsCollector()
        self._connections = ConnectionSet()

        self._lifecycle = ConnectionLifecycle(
            connections=self._connections,
            metrics=self._metrics,
            factory_builder=self._build_factory,
        )
        self._broadcaster = ConnectionBroadcaster(
            connections=self._connections,
            metrics=self._metrics,
            batch_size=batch_size,
        )
        self._stats = ConnectionStats(
            connections=self._connections,
            metrics=self._metrics,
            get_factory=lambda: self._lifecycle.factory,
            max_total_connections=self._max_total_connections,
        )

    def _build_factory(self) -> TransportFactory:
        return TransportFactory(
            accept_timeout=self._accept_timeout,
            max_handles=self._max_total_connections,
            max_message_size=self._max_message_size,
        )

    # =========================================================================
    # Public properties
    # =========================================================================

    @property
    def connections(self) -> MappingProxyType[int, Connection]:
        """Registered connections indexed by id."""
        return self._connections.by_id

    @property
    def total_connections(self) -> int:
        """Total number of registered connections."""
        return self._lifecycle.total_connections

    @property
    def is_initialized(self) -> bool:
        """Whether initialize() has run and shutdown() has not."""
        return self._lifecycle.is_initialized

    @property
    def factory(self) -> TransportFactory | None:
        """The live transport factory."""
        return self._lifecycle.factory

    def get_category_connections(self, category: Hashable) -> list[Connection]:
        """Registered connections in a category (copy)."""
        return self._connections.get_category_connections(category)

    # =========================================================================
    # Lifecycle (delegate to lifecycle)
    # =========================================================================

    def initialize(self) -> None:
        """
        Create the transport factory.

        Raises:
            InitializationError: If already initialized or the factory cannot be created.
        """
        self._lifecycle.initialize()

    async def accept(
        self,
        websocket: "WebSocket",
        category: Hashable,
        message_handler: MessageHandler,
    ) -> Connection:
        """
        Accept an upgrade request and register the connection.

        Raises:
            AcceptError: If the handshake failed or the registry is not ready.
        """
        return await self._lifecycle.accept(websocket, category, message_handler)

    async def close(self, connection: Connection, code: int = WSCloseCode.NORMAL) -> bool:
        """Close and unregister a connection. Returns False if it was already gone."""
        return await self._lifecycle.close(connection, code)

    async def shutdown(self) -> None:
        """Close every connection, then release the transport factory."""
        await self._lifecycle.shutdown()

    # =========================================================================
    # Broadcasting (delegate to broadcaster)
    # =========================================================================

    async def broadcast(self, category: Hashable, payload: str) -> int:
        """Send a text payload to every connection in a category."""
        return await self._broadcaster.broadcast(category, payload)

    # =========================================================================
    # Statistics (delegate to stats)
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        return self._stats.get_stats()
