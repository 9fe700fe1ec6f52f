"""
Transport Factory.

Process-scoped capability to turn an in-progress upgrade into a live
TransportHandle. Owned by the ConnectionRegistry: created on initialize,
released on shutdown after every connection is drained.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from shared.config.logging import get_logger
from ws_registry.components.core.constants import WSCloseCode, WSConstants
from ws_registry.components.transport.handle import (
    CloseCallback,
    MessageCallback,
    TransportHandle,
)
from ws_registry.errors import AcceptFailure, TransportError

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)


class TransportFactory:
    """
    Accepts upgrade requests and tracks the handles it produced.

    Capacity is counted from the moment a handshake starts, so concurrent
    handshakes cannot overshoot `max_handles`.
    """

    def __init__(
        self,
        accept_timeout: float = WSConstants.WS_ACCEPT_TIMEOUT,
        max_handles: int = WSConstants.MAX_TOTAL_CONNECTIONS,
        max_message_size: int = WSConstants.MAX_MESSAGE_SIZE,
    ) -> None:
        """
        Args:
            accept_timeout: Seconds allowed for the upgrade handshake
            max_handles: Maximum number of live handles
            max_message_size: Largest inbound frame accepted by a handle

        Raises:
            ValueError: If any limit is not positive.
        """
        if accept_timeout <= 0:
            raise ValueError(f"accept_timeout must be positive, got {accept_timeout}")
        if max_handles <= 0:
            raise ValueError(f"max_handles must be positive, got {max_handles}")
        if max_message_size <= 0:
            raise ValueError(f"max_message_size must be positive, got {max_message_size}")

        self._accept_timeout = accept_timeout
        self._max_handles = max_handles
        self._max_message_size = max_message_size
        self._handles: set[TransportHandle] = set()
        self._released = False

    @property
    def live_handles(self) -> int:
        """Handles handed out (or being handed out) and not yet released."""
        return len(self._handles)

    @property
    def max_handles(self) -> int:
        """Capacity limit."""
        return self._max_handles

    @property
    def released(self) -> bool:
        """Whether the factory has been released."""
        return self._released

    async def try_accept(
        self,
        websocket: "WebSocket",
        message_handler: MessageCallback,
        close_handler: CloseCallback,
    ) -> TransportHandle:
        """
        Complete the upgrade handshake and start the connection's reader.

        Args:
            websocket: The WebSocket of the in-progress upgrade.
            message_handler: Called with every inbound text/bytes frame.
            close_handler: Called once with the close code when the peer
                goes away or the connection errors out. Never called after
                the handle was released by its owner.

        Raises:
            TransportError: With reason NOT_READY, OUT_OF_MEMORY, TIMEOUT or
                HANDSHAKE_FAILED.
        """
        if self._released:
            raise TransportError("Transport factory released", AcceptFailure.NOT_READY)

        if len(self._handles) >= self._max_handles:
            raise TransportError(
                f"Transport at capacity ({self._max_handles} handles)",
                AcceptFailure.OUT_OF_MEMORY,
            )

        handle = TransportHandle(websocket, self, self._max_message_size)
        self._handles.add(handle)
        accepted = False
        try:
            try:
                await asyncio.wait_for(websocket.accept(), timeout=self._accept_timeout)
            except asyncio.TimeoutError:
                raise TransportError("WebSocket accept timed out", AcceptFailure.TIMEOUT) from None
            except Exception as e:
                raise TransportError(
                    f"WebSocket accept failed: {e}", AcceptFailure.HANDSHAKE_FAILED
                ) from e

            if self._released:
                await websocket.close(code=WSCloseCode.GOING_AWAY)
                raise TransportError(
                    "Transport factory released during handshake", AcceptFailure.NOT_READY
                )
            accepted = True
        finally:
            if not accepted:
                self._handles.discard(handle)

        handle.start(message_handler, close_handler)
        return handle

    def forget(self, handle: TransportHandle) -> None:
        """Drop a released handle from the live set."""
        self._handles.discard(handle)

    async def release(self) -> None:
        """
        Release the factory. Idempotent.

        The owner must drain its connections first. Handles still alive at
        this point are left to their owner and reported.
        """
        if self._released:
            return
        self._released = True

        if self._handles:
            logger.warning(
                "Transport factory released with live handles",
                live_handles=len(self._handles),
            )
        logger.info("Transport factory released")
