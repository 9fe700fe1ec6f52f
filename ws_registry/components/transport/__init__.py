"""
Transport components.

Wraps the Starlette upgrade/accept mechanism:
- factory.py: TransportFactory (accept capability, capacity accounting)
- handle.py: TransportHandle (owned socket wrapper with its reader task)
"""

from ws_registry.components.transport.factory import TransportFactory
from ws_registry.components.transport.handle import TransportHandle, is_ws_connected

__all__ = [
    "TransportFactory",
    "TransportHandle",
    "is_ws_connected",
]
