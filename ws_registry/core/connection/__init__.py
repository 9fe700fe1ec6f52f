"""
Connection Management Module.

Components composed by ConnectionRegistry:
- lifecycle.py: Initialize, accept, close, shutdown
- broadcaster.py: Categorized broadcasting
- stats.py: Statistics aggregation
"""

from ws_registry.core.connection.lifecycle import ConnectionLifecycle
from ws_registry.core.connection.broadcaster import ConnectionBroadcaster
from ws_registry.core.connection.stats import ConnectionStats

__all__ = [
    "ConnectionLifecycle",
    "ConnectionBroadcaster",
    "ConnectionStats",
]
