"""
Connection Registry Core Module.

- connection/: Connection lifecycle, broadcasting, stats
"""

from ws_registry.core.connection import (
    ConnectionLifecycle,
    ConnectionBroadcaster,
    ConnectionStats,
)

__all__ = [
    "ConnectionLifecycle",
    "ConnectionBroadcaster",
    "ConnectionStats",
]
