"""
Real-time connection registry.

Accepts websocket upgrades, groups the resulting connections by category
and broadcasts text payloads to a category.

IMPORT EXAMPLES:
    from ws_registry import ConnectionRegistry, ConnectionCategory
    from ws_registry.errors import AcceptError, InitializationError
"""

from ws_registry.components.connection.index import Connection
from ws_registry.components.core.constants import ConnectionCategory, WSCloseCode
from ws_registry.connection_registry import ConnectionRegistry
from ws_registry.errors import (
    AcceptError,
    AcceptFailure,
    InitializationError,
    RegistryError,
    TransportError,
)

__all__ = [
    "AcceptError",
    "AcceptFailure",
    "Connection",
    "ConnectionCategory",
    "ConnectionRegistry",
    "InitializationError",
    "RegistryError",
    "TransportError",
    "WSCloseCode",
]
