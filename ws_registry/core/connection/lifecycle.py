"""
Connection Lifecycle Management.

Handles registry initialization, connection acceptance, teardown and
shutdown draining.

Teardown removes the connection from the set before awaiting anything, so
every later callback on the event loop sees the set without it.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Awaitable, Callable, Hashable, TYPE_CHECKING

from shared.config.logging import audit_ws_connection, get_logger
from ws_registry.components.connection.index import Connection
from ws_registry.components.core.constants import WSCloseCode
from ws_registry.errors import AcceptError, AcceptFailure, InitializationError, TransportError

if TYPE_CHECKING:
    from fastapi import WebSocket
    from ws_registry.components.connection.index import ConnectionSet
    from ws_registry.components.metrics.collector import MetricsCollector
    from ws_registry.components.transport.factory import TransportFactory

logger = get_logger(__name__)

MessageHandler = Callable[[Connection, Any], "Awaitable[None] | None"]


def _category_label(category: Hashable) -> str:
    return getattr(category, "value", str(category))


class ConnectionLifecycle:
    """
    Manages the lifecycle of registered connections.

    Responsibilities:
    - Create and release the transport factory
    - Accept upgrade requests and register the resulting connections
    - Tear down connections on explicit close or transport close-notification
    - Drain every connection before releasing the factory on shutdown
    """

    def __init__(
        self,
        connections: "ConnectionSet",
        metrics: "MetricsCollector",
        factory_builder: Callable[[], "TransportFactory"],
    ) -> None:
        """
        Initialize lifecycle manager with dependencies.

        Args:
            connections: The live-connection set
            metrics: Collects lifecycle metrics
            factory_builder: Creates the transport factory on initialize
        """
        self._connections = connections
        self._metrics = metrics
        self._factory_builder = factory_builder
        self._factory: TransportFactory | None = None
        self._ids = itertools.count(1)
        self._shutdown = False

    @property
    def factory(self) -> "TransportFactory | None":
        """The live transport factory, or None outside initialize/shutdown."""
        return self._factory

    @property
    def is_initialized(self) -> bool:
        """Whether the registry holds a transport factory."""
        return self._factory is not None

    @property
    def total_connections(self) -> int:
        """Current number of registered connections."""
        return len(self._connections)

    def initialize(self) -> None:
        """
        Create the transport factory.

        Raises:
            InitializationError: If already initialized or the factory
                cannot be created.
        """
        if self._factory is not None:
            raise InitializationError("Connection registry already initialized")

        try:
            self._factory = self._factory_builder()
        except Exception as e:
            raise InitializationError(f"Failed to create transport factory: {e}") from e

        logger.info(
            "Connection registry initialized",
            max_connections=self._factory.max_handles,
        )

    async def accept(
        self,
        websocket: "WebSocket",
        category: Hashable,
        message_handler: MessageHandler,
    ) -> Connection:
        """
        Complete an upgrade handshake and register the connection.

        Args:
            websocket: The WebSocket of the in-progress upgrade.
            category: Broadcast group of the new connection.
            message_handler: Called with (connection, data) for every inbound frame.

        Returns:
            The registered Connection.

        Raises:
            AcceptError: If the registry is not ready or the handshake failed.
        """
        factory = self._factory
        if factory is None or self._shutdown:
            self._reject(category, AcceptFailure.NOT_READY, "registry not accepting connections")
            raise AcceptError(AcceptFailure.NOT_READY, "Registry is not accepting connections")

        connection = Connection(id=next(self._ids), category=category)

        def on_message(data: Any) -> "Awaitable[None] | None":
            return message_handler(connection, data)

        async def on_close(code: int) -> None:
            await self._on_transport_closed(connection, code)

        try:
            handle = await factory.try_accept(websocket, on_message, on_close)
        except TransportError as e:
            self._reject(category, e.reason, str(e))
            raise AcceptError(e.reason, str(e)) from e

        if self._shutdown:
            await handle.release(WSCloseCode.GOING_AWAY)
            self._reject(category, AcceptFailure.NOT_READY, "shutdown started during handshake")
            raise AcceptError(AcceptFailure.NOT_READY, "Registry shut down during handshake")

        connection.handle = handle
        self._connections.add(connection)

        self._metrics.increment_connection_accepted()
        audit_ws_connection(
            "ACCEPT",
            connection_id=connection.id,
            category=_category_label(category),
        )
        logger.info(
            "Connection registered",
            connection_id=connection.id,
            category=_category_label(category),
            total=len(self._connections),
        )
        return connection

    async def close(self, connection: Connection, code: int = WSCloseCode.NORMAL) -> bool:
        """
        Tear down a connection on the registry's initiative.

        Returns:
            True if the connection was torn down, False if it was already gone.
        """
        return await self._destroy(connection, code, by_peer=False)

    async def shutdown(self) -> None:
        """
        Drain every connection, then release the transport factory.

        Safe to call repeatedly; never raises. If the drain is cancelled the
        registry stays initialized, so a later call finishes the job.
        """
        if self._factory is None or self._shutdown:
            return
        self._shutdown = True

        connections = self._connections.get_all_connections()
        logger.info("Shutting down connection registry", connections=len(connections))

        drained = 0
        try:
            for connection in connections:
                if await self._destroy(connection, WSCloseCode.GOING_AWAY, by_peer=False):
                    drained += 1
            factory, self._factory = self._factory, None
        except asyncio.CancelledError:
            logger.warning(
                "Shutdown interrupted",
                drained=drained,
                remaining=len(self._connections),
            )
            raise
        finally:
            self._shutdown = False

        try:
            await factory.release()
        except Exception as e:
            logger.warning("Error releasing transport factory", error=str(e))

        audit_ws_connection("SHUTDOWN", drained=drained)
        logger.info("Connection registry shut down", drained=drained)

    async def _on_transport_closed(self, connection: Connection, code: int) -> None:
        """Close-notification from the transport: the peer went away or the connection errored."""
        await self._destroy(connection, code, by_peer=True)

    async def _destroy(self, connection: Connection, code: int, by_peer: bool) -> bool:
        """Remove the connection from the set and release its handle."""
        if not self._connections.discard(connection):
            return False

        if by_peer:
            connection.close_code = code

        self._metrics.increment_connection_closed(by_peer)
        audit_ws_connection(
            "CLOSE",
            connection_id=connection.id,
            category=_category_label(connection.category),
            close_code=int(code),
            reason="peer" if by_peer else "registry",
        )

        try:
            await connection.handle.release(code)
        except Exception as e:
            logger.warning(
                "Failed to release connection handle",
                connection_id=connection.id,
                error=str(e),
            )

        logger.debug(
            "Connection removed",
            connection_id=connection.id,
            total=len(self._connections),
        )
        return True

    def _reject(self, category: Hashable, reason: AcceptFailure, detail: str) -> None:
        self._metrics.increment_connection_rejected(reason)
        audit_ws_connection(
            "REJECT",
            category=_category_label(category),
            reason=reason.value,
            detail=detail,
        )
