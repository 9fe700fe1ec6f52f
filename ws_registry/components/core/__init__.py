"""
Core registry components.

Foundational components: constants and categories.
"""

from ws_registry.components.core.constants import (
    ConnectionCategory,
    WSCloseCode,
    WSConstants,
    DEFAULT_ALLOWED_ORIGINS,
)

__all__ = [
    "ConnectionCategory",
    "WSCloseCode",
    "WSConstants",
    "DEFAULT_ALLOWED_ORIGINS",
]
