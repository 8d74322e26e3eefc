"""
Graph serializer: converts a Graph and its nodes, sockets and connections
into the JSON-safe document described in `graph_schema`.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, TYPE_CHECKING

from ..core.Errors import NotFoundError
from ..core.Types import SocketType

if TYPE_CHECKING:
    from ..core.Connection import Connection
    from ..core.Graph import Graph
    from ..core.Node import Node
    from ..core.Socket import Socket


# ── Helpers ───────────────────────────────────────────────────────────────────

def _serialize_socket(socket: 'Socket') -> Dict[str, Any]:
    return {
        "id": socket.id,
        "property": socket.property,
        "name": socket.name,
        "type": SocketType.tag(socket.type),
        "editable": socket.editable,
        "allowMultipleConnections": socket.allow_multiple_connections,
        "parentId": socket.node.id,
        "isInput": socket.is_input,
    }


def _serialize_node(node: 'Node', graph: 'Graph') -> Dict[str, Any]:
    entry = graph.registry.get_from_instance(node)
    if entry is None:
        raise NotFoundError(
            f"Node '{node.name}' ({node.id}) of class {type(node).__name__} is not in registry"
        )

    return {
        "id": node.id,
        "name": node.name,
        "type": entry.type,
        "properties": copy.deepcopy(node.properties),
        "inputs": [socket.id for socket in node.inputs],
        "outputs": [socket.id for socket in node.outputs],
        "isRoot": node.is_root,
    }


def serialize_connection(connection: 'Connection') -> Dict[str, Any]:
    return {
        "id": connection.id,
        "outputId": connection.output.id,
        "inputId": connection.input.id,
    }


# ── Public API ─────────────────────────────────────────────────────────────────

def serialize_graph(graph: 'Graph') -> Dict[str, Any]:
    """
    Serialize *graph* into a flat document keyed by id.

    :raises NotFoundError: If a node's variant is not registered.
    """
    nodes = {node.id: _serialize_node(node, graph) for node in graph.nodes.values()}
    sockets = {socket.id: _serialize_socket(socket) for socket in graph.sockets}
    connections = {connection.id: serialize_connection(connection) for connection in graph.connections}

    return {
        "id": graph.id,
        "nodes": nodes,
        "sockets": sockets,
        "connections": connections,
    }
