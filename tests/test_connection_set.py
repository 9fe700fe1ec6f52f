"""
Tests for ConnectionSet.
"""

from unittest.mock import MagicMock

import pytest

from ws_registry.components.connection.index import Connection, ConnectionSet
from ws_registry.components.core.constants import ConnectionCategory

TELEMETRY = ConnectionCategory.TELEMETRY
CONTROL = ConnectionCategory.CONTROL


def make_connection(connection_id: int, category=TELEMETRY) -> Connection:
    return Connection(id=connection_id, category=category, handle=MagicMock())


class TestMembership:
    """Tests for add/discard."""

    def test_add_requires_handle(self):
        connections = ConnectionSet()

        with pytest.raises(ValueError):
            connections.add(Connection(id=1, category=TELEMETRY))

        assert len(connections) == 0

    def test_add_rejects_duplicate_id(self):
        connections = ConnectionSet()
        connections.add(make_connection(1))

        with pytest.raises(ValueError):
            connections.add(make_connection(1, CONTROL))

        assert connections.count_category(CONTROL) == 0

    def test_discard_reports_membership(self):
        connections = ConnectionSet()
        connection = make_connection(1)
        connections.add(connection)

        assert connection in connections
        assert connections.discard(connection) is True
        assert connections.discard(connection) is False
        assert connection not in connections
        assert connections.get(1) is None

    def test_discard_ignores_lookalike(self):
        """A different object with the same id is not a member."""
        connections = ConnectionSet()
        connection = make_connection(1)
        connections.add(connection)
        lookalike = make_connection(1)

        assert lookalike not in connections
        assert connections.discard(lookalike) is False
        assert len(connections) == 1

    def test_empty_category_is_dropped(self):
        connections = ConnectionSet()
        connection = make_connection(1)
        connections.add(connection)
        connections.discard(connection)

        assert connections.get_stats()["categories_count"] == 0


class TestQueries:
    """Tests for query methods."""

    def test_category_connections_are_a_copy(self):
        connections = ConnectionSet()
        first = make_connection(1)
        connections.add(first)
        connections.add(make_connection(2, CONTROL))

        snapshot = connections.get_category_connections(TELEMETRY)
        connections.discard(first)

        assert snapshot == [first]
        assert connections.get_category_connections(TELEMETRY) == []

    def test_unknown_category_is_empty(self):
        connections = ConnectionSet()
        assert connections.get_category_connections("missing") == []
        assert connections.count_category("missing") == 0

    def test_by_id_is_read_only(self):
        connections = ConnectionSet()
        connections.add(make_connection(1))

        with pytest.raises(TypeError):
            connections.by_id[2] = make_connection(2)

    def test_stats(self):
        connections = ConnectionSet()
        connections.add(make_connection(1))
        connections.add(make_connection(2))
        connections.add(make_connection(3, CONTROL))

        stats = connections.get_stats()

        assert stats["total_connections"] == 3
        assert stats["categories_count"] == 2
        assert stats["by_category"] == {
            "telemetry-channel": 2,
            "control-channel": 1,
        }


class TestConnectionCategory:
    """Tests for category parsing."""

    def test_parse_known_values(self):
        assert ConnectionCategory.parse("telemetry-channel") is TELEMETRY
        assert ConnectionCategory.parse("control-channel") is CONTROL

    def test_parse_unknown_value(self):
        assert ConnectionCategory.parse("nope") is None
