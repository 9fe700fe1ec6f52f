"""
Connection Set - the registry's live-connection collection.

Connections are owned by id in a plain dict; a reverse index by category
serves broadcasts. Removal is a dict delete, so no member can outlive its
entry.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Hashable, TYPE_CHECKING

if TYPE_CHECKING:
    from ws_registry.components.transport.handle import TransportHandle


@dataclass(eq=False)
class Connection:
    """
    One active push-channel session.

    `handle` is None only while the record is being constructed; members of
    a ConnectionSet always carry a live handle. `close_code` is filled in
    when the transport reports the peer went away.
    """

    id: int
    category: Hashable
    handle: "TransportHandle | None" = None
    created_at: float = field(default_factory=time.monotonic)
    close_code: int | None = None

    async def send_text(self, payload: str) -> None:
        """Send a text frame over this connection's handle."""
        await self.handle.send_text(payload)

    async def wait_closed(self) -> None:
        """Wait until the connection's handle is released."""
        await self.handle.wait_closed()


class ConnectionSet:
    """
    Live connections keyed by id, with a per-category index.

    Indices maintained:
    - by_id: connection_id -> Connection
    - by_category: category -> set[connection_id]

    Mutations happen only on the event loop thread, so no locks are needed.
    Read-only properties return immutable views (MappingProxyType); query
    methods return copies that stay valid while the set changes.
    """

    def __init__(self) -> None:
        """Initialize empty indices."""
        self._by_id: dict[int, Connection] = {}
        self._by_category: dict[Hashable, set[int]] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, connection: object) -> bool:
        return (
            isinstance(connection, Connection)
            and self.get(connection.id) is connection
        )

    # =========================================================================
    # Immutable views
    # =========================================================================

    @property
    def by_id(self) -> MappingProxyType[int, Connection]:
        """Connections indexed by id (immutable view)."""
        return MappingProxyType(self._by_id)

    # =========================================================================
    # Query methods
    # =========================================================================

    def get(self, connection_id: int) -> Connection | None:
        """Get a connection by id."""
        return self._by_id.get(connection_id)

    def get_all_connections(self) -> list[Connection]:
        """All live connections (copy)."""
        return list(self._by_id.values())

    def get_category_connections(self, category: Hashable) -> list[Connection]:
        """Live connections in a category (copy)."""
        ids = self._by_category.get(category, ())
        return [self._by_id[connection_id] for connection_id in ids]

    def count_category(self, category: Hashable) -> int:
        """Count live connections in a category."""
        return len(self._by_category.get(category, ()))

    # =========================================================================
    # Registration methods
    # =========================================================================

    def add(self, connection: Connection) -> None:
        """
        Insert a fully constructed connection.

        Raises:
            ValueError: If the connection has no handle or its id is taken.
        """
        if connection.handle is None:
            raise ValueError("Connection must carry a handle before joining the set")
        if connection.id in self._by_id:
            raise ValueError(f"Connection id {connection.id} already registered")

        self._by_id[connection.id] = connection
        self._by_category.setdefault(connection.category, set()).add(connection.id)

    def discard(self, connection: Connection) -> bool:
        """
        Remove a connection if it is a member.

        Returns:
            True if the connection was removed, False if it was not a member.
        """
        if self.get(connection.id) is not connection:
            return False

        del self._by_id[connection.id]
        ids = self._by_category.get(connection.category)
        if ids is not None:
            ids.discard(connection.id)
            if not ids:
                del self._by_category[connection.category]
        return True

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, object]:
        """Get index statistics."""
        return {
            "total_connections": len(self._by_id),
            "categories_count": len(self._by_category),
            "by_category": {
                getattr(category, "value", str(category)): len(ids)
                for category, ids in self._by_category.items()
            },
        }
