"""
Graph REST routes.

All routes are mounted under /api by main.py. They operate on the single graph
held by `graph_state`; every mutation is also broadcast as a `graph-event`
over Socket.IO by the event bridge.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, ValidationError

from nodeflow.core.Errors import InvalidOperationError, NotFoundError
from nodeflow.serializers.graph_serializer import serialize_connection
from nodeflow.server.state import graph_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


# ── GET /graph ────────────────────────────────────────────────────────────────

@router.get("/graph")
async def get_graph() -> Dict[str, Any]:
    try:
        return graph_state.graph.serialize()
    except NotFoundError as exc:
        raise HTTPException(status_code=500, detail=str(exc))


# ── PUT /graph ────────────────────────────────────────────────────────────────

@router.put("/graph")
async def load_graph(body: Dict[str, Any]) -> Dict[str, Any]:
    try:
        graph_state.graph.deserialize(body)
        return graph_state.graph.serialize()
    except (NotFoundError, InvalidOperationError, ValidationError) as exc:
        raise _http_error(exc)


# ── GET /node-types ───────────────────────────────────────────────────────────

@router.get("/node-types")
async def get_node_types() -> List[Dict[str, Any]]:
    return [
        {"type": entry.type, "args": list(entry.args)}
        for entry in graph_state.registry.get_all()
    ]


# ── POST /nodes ───────────────────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    type: str


@router.post("/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    try:
        node = graph_state.graph.add_node(body.type)
    except (NotFoundError, InvalidOperationError) as exc:
        raise _http_error(exc)
    return {
        "id": node.id,
        "name": node.name,
        "type": node.type,
        "inputs": [socket.id for socket in node.inputs],
        "outputs": [socket.id for socket in node.outputs],
    }


# ── DELETE /nodes/:nodeId ─────────────────────────────────────────────────────

@router.delete("/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str) -> Response:
    if graph_state.graph.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")
    graph_state.graph.remove_node(node_id)
    return Response(status_code=204)


# ── PUT /sockets/:socketId/value ──────────────────────────────────────────────

class SetSocketValueBody(BaseModel):
    value: Any


@router.put("/sockets/{socket_id}/value", status_code=204)
async def set_socket_value(socket_id: str, body: SetSocketValueBody) -> Response:
    try:
        graph_state.graph.set_socket_value(socket_id, body.value)
        return Response(status_code=204)
    except (NotFoundError, InvalidOperationError) as exc:
        raise _http_error(exc)


# ── POST /connections ─────────────────────────────────────────────────────────

class ConnectionBody(BaseModel):
    outputId: str
    inputId: str


@router.post("/connections", status_code=201)
async def connect_sockets(body: ConnectionBody) -> Dict[str, Any]:
    try:
        connection = graph_state.graph.connect_sockets(body.outputId, body.inputId)
    except (NotFoundError, InvalidOperationError) as exc:
        raise _http_error(exc)

    if connection is None:
        raise HTTPException(status_code=409, detail="Sockets cannot be connected")
    return serialize_connection(connection)


# ── POST /connections/validate ────────────────────────────────────────────────

@router.post("/connections/validate")
async def validate_connection(body: ConnectionBody) -> Dict[str, Any]:
    graph = graph_state.graph
    output = graph.get_socket(body.outputId)
    input = graph.get_socket(body.inputId)
    if output is None or input is None:
        raise HTTPException(status_code=404, detail="Socket not found")
    return {"valid": graph.is_socket_connection_valid(output, input)}


# ── DELETE /connections/:connectionId ─────────────────────────────────────────

@router.delete("/connections/{connection_id}", status_code=204)
async def disconnect_sockets(connection_id: str) -> Response:
    try:
        graph_state.graph.disconnect_sockets(connection_id)
        return Response(status_code=204)
    except NotFoundError as exc:
        raise _http_error(exc)


# ── POST /run ─────────────────────────────────────────────────────────────────

@router.post("/run")
async def run_graph() -> Dict[str, Any]:
    try:
        order = graph_state.graph.run()
    except Exception as exc:
        logger.exception("Graph run failed")
        raise HTTPException(status_code=500, detail=str(exc))
    return {"status": "ok", "order": order}
