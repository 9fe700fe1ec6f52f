"""
Pytest configuration and fixtures for registry tests.
"""

import asyncio
from typing import Callable

import pytest
import pytest_asyncio
from starlette.websockets import WebSocketState

from ws_registry.components.core.constants import ConnectionCategory
from ws_registry.connection_registry import ConnectionRegistry


class FakeWebSocket:
    """
    Stand-in for a Starlette WebSocket in the middle of an upgrade.

    Inbound frames are fed with push_text()/push_bytes(); disconnect()
    simulates the peer going away.
    """

    def __init__(
        self,
        accept_error: Exception | None = None,
        accept_delay: float = 0.0,
        send_error: Exception | None = None,
        receive_error: Exception | None = None,
        close_delay: float = 0.0,
    ) -> None:
        self.client_state = WebSocketState.CONNECTING
        self.application_state = WebSocketState.CONNECTING
        self.accept_error = accept_error
        self.accept_delay = accept_delay
        self.send_error = send_error
        self.receive_error = receive_error
        self.close_delay = close_delay
        self.close_started = False
        self.sent: list[str] = []
        self.close_codes: list[int] = []
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def accept(self) -> None:
        if self.accept_delay:
            await asyncio.sleep(self.accept_delay)
        if self.accept_error is not None:
            raise self.accept_error
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_started = True
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        self.close_codes.append(code)
        self.application_state = WebSocketState.DISCONNECTED

    async def receive(self) -> dict:
        message = await self._inbox.get()
        if self.receive_error is not None:
            raise self.receive_error
        return message

    def push_text(self, text: str) -> None:
        self._inbox.put_nowait({"type": "websocket.receive", "text": text})

    def push_bytes(self, data: bytes) -> None:
        self._inbox.put_nowait({"type": "websocket.receive", "bytes": data})

    def disconnect(self, code: int = 1000) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self._inbox.put_nowait({"type": "websocket.disconnect", "code": code})


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Let the event loop run until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached before timeout")
        await asyncio.sleep(0.001)


async def ignore_message(connection, data) -> None:
    """Message handler for tests that do not care about inbound frames."""


@pytest.fixture
def fake_ws() -> Callable[..., FakeWebSocket]:
    """Factory for FakeWebSocket instances."""
    return FakeWebSocket


@pytest.fixture
def categories():
    """Shortcut to the connection categories."""
    return ConnectionCategory


@pytest_asyncio.fixture
async def registry():
    """
    An initialized registry with small limits.
    Shut down after the test so no reader task outlives it.
    """
    registry = ConnectionRegistry(
        accept_timeout=0.2,
        max_total_connections=10,
        max_message_size=1024,
        broadcast_batch_size=2,
    )
    registry.initialize()
    yield registry
    await registry.shutdown()
