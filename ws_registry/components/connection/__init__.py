"""
Connection bookkeeping components.
"""

from ws_registry.components.connection.index import Connection, ConnectionSet

__all__ = [
    "Connection",
    "ConnectionSet",
]
