"""
Registry error taxonomy.

Initialization failures are fatal to startup and propagate to the caller.
Accept failures are scoped to one upgrade request. Send failures during a
broadcast never leave the broadcaster.
"""

from __future__ import annotations

from enum import Enum


class AcceptFailure(str, Enum):
    """Why an upgrade request could not become a registered connection."""

    OUT_OF_MEMORY = "out_of_memory"  # No capacity left for another handle
    HANDSHAKE_FAILED = "handshake_failed"  # The upgrade handshake raised
    TIMEOUT = "timeout"  # The upgrade handshake did not finish in time
    NOT_READY = "not_ready"  # Registry not initialized or shutting down


class RegistryError(Exception):
    """Base class for connection registry errors."""


class InitializationError(RegistryError):
    """The registry could not be initialized."""


class AcceptError(RegistryError):
    """
    An upgrade request was rejected.

    Usage:
        try:
            connection = await registry.accept(websocket, category, handler)
        except AcceptError as e:
            if e.reason is AcceptFailure.OUT_OF_MEMORY:
                ...
    """

    def __init__(self, reason: AcceptFailure, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or reason.value)


class TransportError(Exception):
    """
    Raised by the transport layer.

    Carries the AcceptFailure the registry reports when this happens
    during an accept.
    """

    def __init__(self, message: str, reason: AcceptFailure = AcceptFailure.HANDSHAKE_FAILED) -> None:
        self.reason = reason
        super().__init__(message)
