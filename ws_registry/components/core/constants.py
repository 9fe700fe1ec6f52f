"""
Connection Registry Constants.

Centralized constants with documentation explaining the value of each.
"""

from enum import Enum, IntEnum
from typing import Final

__all__ = [
    "ConnectionCategory",
    "WSCloseCode",
    "WSConstants",
    "DEFAULT_ALLOWED_ORIGINS",
]


class ConnectionCategory(str, Enum):
    """
    Broadcast groups a connection can belong to.

    Fixed at accept time. The registry only compares categories for
    equality, so the host application may add members freely.
    """

    CONTROL = "control-channel"
    TELEMETRY = "telemetry-channel"

    @classmethod
    def parse(cls, value: str) -> "ConnectionCategory | None":
        """Return the category for ``value``, or None if it is not one."""
        try:
            return cls(value)
        except ValueError:
            return None


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the registry.

    Standard codes (1000-1999) from RFC 6455.
    """

    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Server shutting down or client navigating away
    PROTOCOL_ERROR = 1002  # Protocol error
    ABNORMAL = 1006  # Connection dropped without a close frame (never sent on the wire)
    POLICY_VIOLATION = 1008  # Generic policy violation
    MESSAGE_TOO_BIG = 1009  # Message too large to process
    SERVER_ERROR = 1011  # Unexpected server error
    SERVER_OVERLOADED = 1013  # Server overloaded, try again later


class WSConstants:
    """
    Registry operational constants.

    These are defaults used when settings are not available. At runtime the
    ConnectionRegistry reads from `shared.config.settings.settings`, which
    can override them via environment variables.
    """

    # ==========================================================================
    # Timeout Constants
    # ==========================================================================

    # WS_ACCEPT_TIMEOUT: 5 seconds
    # The upgrade handshake should complete within TCP timeout. 5 seconds
    # handles slow networks while rejecting stuck handshakes.
    WS_ACCEPT_TIMEOUT: Final[float] = 5.0

    # WS_RELEASE_TIMEOUT: 2 seconds
    # Upper bound for sending a close frame while releasing a handle.
    # Shutdown drains every connection sequentially, so a peer that stopped
    # reading must not stall it.
    WS_RELEASE_TIMEOUT: Final[float] = 2.0

    # ==========================================================================
    # Capacity Constants
    # ==========================================================================

    # MAX_TOTAL_CONNECTIONS: 1000
    # Handles the transport factory hands out before accepts fail with
    # OUT_OF_MEMORY.
    MAX_TOTAL_CONNECTIONS: Final[int] = 1000

    # MAX_MESSAGE_SIZE: 64 KB
    # Inbound frames above this many bytes (text is measured UTF-8 encoded)
    # close the connection with MESSAGE_TOO_BIG.
    MAX_MESSAGE_SIZE: Final[int] = 64 * 1024

    # BROADCAST_BATCH_SIZE: 50
    # Sends per asyncio.gather() batch during a broadcast.
    BROADCAST_BATCH_SIZE: Final[int] = 50


# Default development origins for the host application's HTTP routes
DEFAULT_ALLOWED_ORIGINS: Final[tuple[str, ...]] = (
    "http://localhost:5173",
    "http://localhost:8001",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8001",
)
