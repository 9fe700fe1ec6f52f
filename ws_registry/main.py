"""
Connection Registry host application.

Exposes the registry over FastAPI: one websocket endpoint per category,
an HTTP route that triggers a categorized broadcast, and health/metrics
endpoints.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from starlette.websockets import WebSocketState

from shared.config.logging import setup_logging, ws_registry_logger as logger
from shared.config.settings import settings
from ws_registry.components.connection.index import Connection
from ws_registry.components.core.constants import (
    ConnectionCategory,
    DEFAULT_ALLOWED_ORIGINS,
    WSCloseCode,
)
from ws_registry.components.metrics.prometheus import generate_prometheus_metrics
from ws_registry.connection_registry import ConnectionRegistry
from ws_registry.errors import AcceptError, AcceptFailure


# Process-wide registry
registry = ConnectionRegistry()


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes the registry on startup. On shutdown every connection is
    closed before the transport factory is released.
    """
    setup_logging()
    for problem in settings.validate_production_settings():
        logger.warning("Configuration problem", problem=problem)

    logger.info(
        "Starting connection registry",
        port=settings.ws_registry_port,
        env=settings.environment,
    )
    registry.initialize()

    yield

    logger.info("Shutting down connection registry")
    await registry.shutdown()


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Connection Registry",
    description="Categorized real-time push channels",
    version="0.1.0",
    lifespan=lifespan,
)

ws_allowed_origins = (
    [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    if settings.allowed_origins
    else list(DEFAULT_ALLOWED_ORIGINS)
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ws_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


class BroadcastRequest(BaseModel):
    """Body of a broadcast request."""

    payload: str


class BroadcastResponse(BaseModel):
    """Result of a broadcast request."""

    category: str
    delivered: int


async def log_inbound_message(connection: Connection, data: Any) -> None:
    """Default message handler: inbound frames are not interpreted, only logged."""
    logger.debug(
        "Inbound message",
        connection_id=connection.id,
        category=connection.category.value,
        size=len(data),
    )


# =============================================================================
# Health Check
# =============================================================================


@app.get("/ws/health")
def health_check():
    """Basic health check endpoint."""
    try:
        stats = registry.get_stats()
    except Exception as e:
        logger.warning("Failed to get stats in health check", error=str(e))
        stats = {"error": "stats_unavailable"}
    return {
        "status": "healthy" if registry.is_initialized else "starting",
        "service": "ws-registry",
        "version": app.version,
        "environment": settings.environment,
        **stats,
    }


# =============================================================================
# Prometheus Metrics Endpoint
# =============================================================================


@app.get("/ws/metrics")
def prometheus_metrics():
    """
    Prometheus-compatible metrics endpoint.

    Configure Prometheus scrape:
        scrape_configs:
          - job_name: 'ws-registry'
            static_configs:
              - targets: ['localhost:8001']
            metrics_path: '/ws/metrics'
    """
    return PlainTextResponse(
        content=generate_prometheus_metrics(registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


# =============================================================================
# Broadcast
# =============================================================================


@app.post("/ws/broadcast/{category}", response_model=BroadcastResponse)
async def broadcast(category: str, request: BroadcastRequest):
    """Send a text payload to every connection in a category."""
    parsed = ConnectionCategory.parse(category)
    if parsed is None:
        raise HTTPException(status_code=404, detail=f"Unknown category: {category}")

    delivered = await registry.broadcast(parsed, request.payload)
    return BroadcastResponse(category=parsed.value, delivered=delivered)


# =============================================================================
# WebSocket Endpoint
# =============================================================================


@app.websocket("/ws/{category}")
async def category_websocket(websocket: WebSocket, category: str):
    """
    WebSocket endpoint for one category.

    The endpoint stays alive until the connection is released, either by
    the peer or by the registry.
    """
    parsed = ConnectionCategory.parse(category)
    if parsed is None:
        logger.warning("Rejected upgrade for unknown category", category=category)
        await websocket.close(code=WSCloseCode.POLICY_VIOLATION)
        return

    try:
        connection = await registry.accept(websocket, parsed, log_inbound_message)
    except AcceptError as e:
        logger.warning("Upgrade rejected", category=parsed.value, reason=e.reason.value)
        # Still in the handshake: reject the upgrade instead of leaving it hanging
        if websocket.application_state == WebSocketState.CONNECTING:
            code = (
                WSCloseCode.SERVER_OVERLOADED
                if e.reason is AcceptFailure.OUT_OF_MEMORY
                else WSCloseCode.GOING_AWAY
            )
            await websocket.close(code=code)
        return

    await connection.wait_closed()


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ws_registry.main:app",
        host="0.0.0.0",
        port=settings.ws_registry_port,
        reload=settings.debug,
    )
