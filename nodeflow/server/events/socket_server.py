"""
Socket.IO server — forwards Graph events to connected clients.

Uses python-socketio in ASGI mode so it can wrap FastAPI.
`create_socket_app(fastapi_app)` returns the composite ASGI application to
pass to uvicorn. Every bus event is re-emitted as a `graph-event` message:

    {"type": "node-add", "node": {...}}
    {"type": "socket-connect", "connection": {...}}
    {"type": "property-change", "nodeId": "...", "property": "...", "value": ...}
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import socketio

from nodeflow.core.Connection import Connection
from nodeflow.core.EventBus import EventBus, GRAPH_EVENTS, PropertyChange, Subscription
from nodeflow.core.Node import Node
from nodeflow.serializers.graph_serializer import serialize_connection

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Socket.IO instance (async, ASGI mode)
# ---------------------------------------------------------------------------

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


# ---------------------------------------------------------------------------
# Payload conversion
# ---------------------------------------------------------------------------

def _node_summary(node: Node) -> Dict[str, Any]:
    return {
        "id": node.id,
        "name": node.name,
        "type": node.type,
        "isRoot": node.is_root,
        "inputs": [socket.id for socket in node.inputs],
        "outputs": [socket.id for socket in node.outputs],
    }


def event_message(event_type: str, payload: Any) -> Dict[str, Any]:
    """Turn a bus payload into the JSON-safe `graph-event` message."""
    message: Dict[str, Any] = {"type": event_type}
    if isinstance(payload, Node):
        message["node"] = _node_summary(payload)
    elif isinstance(payload, Connection):
        message["connection"] = serialize_connection(payload)
    elif isinstance(payload, PropertyChange):
        message["nodeId"] = payload.node.id
        message["property"] = payload.property
        message["value"] = payload.value
    else:
        message["data"] = payload
    return message


# ---------------------------------------------------------------------------
# Bus fan-out: wire EventBus -> Socket.IO emit
# ---------------------------------------------------------------------------

def _forward(event_type: str):
    def _on_event(payload: Any) -> None:
        """
        Called synchronously by EventBus.emit().
        We schedule an async emit on the running event loop, if there is one.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop, '{event_type}' not forwarded")
            return
        loop.create_task(sio.emit("graph-event", event_message(event_type, payload)))
    return _on_event


def attach_bus(bus: EventBus) -> List[Subscription]:
    """Subscribe to every Graph event on *bus*; returns the subscriptions."""
    return [bus.subscribe(event_type, _forward(event_type)) for event_type in GRAPH_EVENTS]


# ---------------------------------------------------------------------------
# Socket.IO lifecycle events
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict, auth: Any = None) -> None:
    logger.debug(f"Client connected: {sid}")


@sio.event
async def disconnect(sid: str, *args: Any) -> None:
    logger.debug(f"Client disconnected: {sid}")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_socket_app(fastapi_app: Any) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application."""
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
