"""
Integration tests for the host application.

Drive the FastAPI app through Starlette's TestClient: websocket clients
connect per category and broadcasts are triggered over HTTP.
"""

import time

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from ws_registry.main import app


def wait_for_connections(client: TestClient, expected: int, timeout: float = 2.0) -> dict:
    """Poll the health endpoint until the registry holds `expected` connections."""
    deadline = time.monotonic() + timeout
    while True:
        health = client.get("/ws/health").json()
        if health["total_connections"] == expected:
            return health
        if time.monotonic() > deadline:
            raise AssertionError(
                f"Expected {expected} connections, registry has {health['total_connections']}"
            )
        time.sleep(0.01)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


class TestHttpEndpoints:
    """Tests for health, metrics and broadcast routes."""

    def test_health(self, client):
        response = client.get("/ws/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "ws-registry"
        assert body["initialized"] is True
        assert body["total_connections"] == 0

    def test_metrics(self, client):
        response = client.get("/ws/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "wsregistry_connections_total" in response.text

    def test_broadcast_unknown_category(self, client):
        response = client.post("/ws/broadcast/nope", json={"payload": "x"})
        assert response.status_code == 404

    def test_broadcast_requires_payload(self, client):
        response = client.post("/ws/broadcast/telemetry-channel", json={})
        assert response.status_code == 422

    def test_broadcast_without_listeners(self, client):
        response = client.post("/ws/broadcast/control-channel", json={"payload": "x"})

        assert response.status_code == 200
        assert response.json() == {"category": "control-channel", "delivered": 0}


class TestWebSocketEndpoint:
    """Tests for the per-category websocket endpoint."""

    def test_broadcast_reaches_connected_client(self, client):
        with client.websocket_connect("/ws/telemetry-channel") as websocket:
            health = wait_for_connections(client, 1)
            assert health["by_category"] == {"telemetry-channel": 1}

            response = client.post(
                "/ws/broadcast/telemetry-channel", json={"payload": "hello"}
            )
            assert response.json() == {"category": "telemetry-channel", "delivered": 1}
            assert websocket.receive_text() == "hello"

            other = client.post("/ws/broadcast/control-channel", json={"payload": "nope"})
            assert other.json()["delivered"] == 0

        wait_for_connections(client, 0)

    def test_unknown_category_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/unknown-channel") as websocket:
                websocket.receive_text()

        assert client.get("/ws/health").json()["total_connections"] == 0

    def test_client_disconnect_is_counted(self, client):
        with client.websocket_connect("/ws/control-channel"):
            wait_for_connections(client, 1)

        health = wait_for_connections(client, 0)
        assert health["metrics"]["connections_closed_by_peer"] >= 1
