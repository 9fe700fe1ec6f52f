"""
Transport Handle.

Owned wrapper around one accepted Starlette WebSocket. Each handle runs a
reader task that feeds inbound frames to the message handler and reports
the end of the connection to the close handler exactly once.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from starlette.websockets import WebSocketState

from shared.config.logging import get_logger
from ws_registry.components.core.constants import WSCloseCode, WSConstants
from ws_registry.errors import TransportError

if TYPE_CHECKING:
    from fastapi import WebSocket
    from ws_registry.components.transport.factory import TransportFactory

logger = get_logger(__name__)

MessageCallback = Callable[[Any], "Awaitable[None] | None"]
CloseCallback = Callable[[int], Awaitable[None]]


def is_ws_connected(ws: "WebSocket") -> bool:
    """
    Check if WebSocket is in connected state before sending.

    Starlette WebSockets have limited state visibility:
    - CONNECTING: Initial state (not observable here)
    - CONNECTED: Active connection
    - DISCONNECTED: Closed connection
    """
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class TransportHandle:
    """
    Live transport-level socket wrapper.

    Released exactly once, either by its owner (`release()`) or by the
    reader task after the close handler ran. Once released, sends fail with
    TransportError and the close handler is never invoked.
    """

    def __init__(
        self,
        websocket: "WebSocket",
        factory: "TransportFactory",
        max_message_size: int = WSConstants.MAX_MESSAGE_SIZE,
    ) -> None:
        self._websocket = websocket
        self._factory = factory
        self._max_message_size = max_message_size
        self._message_handler: MessageCallback | None = None
        self._close_handler: CloseCallback | None = None
        self._reader: asyncio.Task | None = None
        self._released = False
        self._closed = asyncio.Event()

    @property
    def websocket(self) -> "WebSocket":
        """The underlying Starlette WebSocket."""
        return self._websocket

    @property
    def released(self) -> bool:
        """Whether the handle has been released."""
        return self._released

    def start(self, message_handler: MessageCallback, close_handler: CloseCallback) -> None:
        """Start the reader task. Called by the factory once the handshake succeeded."""
        self._message_handler = message_handler
        self._close_handler = close_handler
        self._reader = asyncio.create_task(
            self._read_loop(), name=f"ws_reader_{id(self):x}"
        )

    async def send_text(self, payload: str) -> None:
        """
        Send a text frame.

        Raises:
            TransportError: If the handle is released or the socket is not connected.
        """
        if self._released:
            raise TransportError("Handle already released")
        if not is_ws_connected(self._websocket):
            raise TransportError("WebSocket not connected")
        await self._websocket.send_text(payload)

    async def release(self, code: int = WSCloseCode.NORMAL) -> None:
        """
        Release the handle and close the socket if it is still open.

        Idempotent. Safe to call from inside this handle's own close
        notification: the reader task is only cancelled when another task
        releases the handle. ABNORMAL is sent as SERVER_ERROR.
        """
        if self._released:
            return
        self._released = True
        self._factory.forget(self)

        reader = self._reader
        cancel_reader = (
            reader is not None
            and not reader.done()
            and reader is not asyncio.current_task()
        )
        if cancel_reader:
            reader.cancel()

        # 1006 is reserved for reporting and must not be sent in a close frame
        if code == WSCloseCode.ABNORMAL:
            code = WSCloseCode.SERVER_ERROR

        try:
            if is_ws_connected(self._websocket):
                try:
                    await asyncio.wait_for(
                        self._websocket.close(code=code),
                        timeout=WSConstants.WS_RELEASE_TIMEOUT,
                    )
                except Exception as e:
                    logger.debug("Failed to close websocket on release", error=str(e))

            if cancel_reader:
                await asyncio.gather(reader, return_exceptions=True)
        finally:
            self._closed.set()

    async def wait_closed(self) -> None:
        """Wait until the handle is released."""
        await self._closed.wait()

    async def _read_loop(self) -> None:
        """Receive frames until the peer goes away or the handle is released."""
        code = WSCloseCode.ABNORMAL
        try:
            while not self._released:
                message = await self._websocket.receive()
                if message["type"] == "websocket.disconnect":
                    code = message.get("code", WSCloseCode.NORMAL)
                    break

                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                if data is None:
                    continue

                size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
                if size > self._max_message_size:
                    logger.warning(
                        "Inbound message too large, closing connection",
                        size=size,
                        max_size=self._max_message_size,
                    )
                    code = WSCloseCode.MESSAGE_TOO_BIG
                    break

                await self._dispatch(data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug("Receive failed", error=str(e))
            code = WSCloseCode.ABNORMAL

        if self._released:
            return
        await self._notify_closed(code)

    async def _dispatch(self, data: Any) -> None:
        """Hand one inbound frame to the message handler."""
        try:
            result = self._message_handler(data)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.error("Message handler failed", exc_info=True)

    async def _notify_closed(self, code: int) -> None:
        """Report the end of the connection to the owner, then make sure the handle is released."""
        try:
            await self._close_handler(code)
        except Exception:
            logger.error("Close handler failed", close_code=code, exc_info=True)

        if not self._released:
            await self.release(code)
