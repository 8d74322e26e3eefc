from typing import Any, Dict, List, Optional, Union
import copy
import logging
import uuid

import networkx as nx

from .Connection import Connection
from .Errors import InvalidOperationError, NotFoundError
from .EventBus import (
    EventBus,
    NODE_ADD,
    NODE_REMOVED,
    PROPERTY_CHANGE,
    PropertyChange,
    SOCKET_CONNECT,
    SOCKET_DISCONNECT,
)
from .Executor import Executor
from .Node import Node
from .Socket import Socket
from .Types import SocketType
from ..noderegistry.NodeRegistry import NodeRegistry

logger = logging.getLogger(__name__)


class Graph:
    """
    Holds nodes, validates socket connections and runs the nodes it contains.

    Sockets are indexed by id in a directed multigraph: vertices are socket ids
    (attribute ``socket``), edges go output socket -> input socket and are keyed
    by connection id (attribute ``connection``). Every mutation is announced on
    the event bus.
    """

    def __init__(self, registry: NodeRegistry, bus: EventBus):
        self.id = uuid.uuid4().hex
        self.registry = registry
        self.bus = bus

        self.nodes: Dict[str, Node] = {}
        self._index = nx.MultiDiGraph()
        # connection id -> Connection, kept in step with the index edges
        self._connections: Dict[str, Connection] = {}

        self.on_node_added = bus.on(NODE_ADD)
        self.on_node_removed = bus.on(NODE_REMOVED)
        self.on_socket_connect = bus.on(SOCKET_CONNECT)
        self.on_socket_disconnect = bus.on(SOCKET_DISCONNECT)
        self.on_property_change = bus.on(PROPERTY_CHANGE)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def get_socket(self, socket_id: str) -> Optional[Socket]:
        if socket_id not in self._index:
            return None
        return self._index.nodes[socket_id]["socket"]

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    @property
    def sockets(self) -> List[Socket]:
        return [socket for _, socket in self._index.nodes(data="socket")]

    @property
    def connections(self) -> List[Connection]:
        return [connection for _, _, connection in self._index.edges(data="connection")]

    def _require_socket(self, socket_id: str) -> Socket:
        socket = self.get_socket(socket_id)
        if socket is None:
            raise NotFoundError(f"Could not find socket in the graph: {socket_id}")
        return socket

    # =========================================================================
    # Node Management
    # =========================================================================

    def add_node(self, node: Union[str, Node]) -> Node:
        """
        Add a node instance, or create one from a registered type name.

        Raises:
            NotFoundError: If a type name is given that is not in the registry.
            InvalidOperationError: If the node or one of its sockets is already in the graph.
        """
        if isinstance(node, Node):
            instance = node
        else:
            entry = self.registry.get(node)
            if entry is None:
                raise NotFoundError(f"Node type '{node}' was not found in registry")
            instance = entry.create()

        self._insert_node(instance)
        return instance

    def _insert_node(self, node: Node) -> None:
        if node.id in self.nodes:
            raise InvalidOperationError(f"Node with id '{node.id}' already exists in the graph")
        for socket in node.sockets():
            if socket.id in self._index:
                raise InvalidOperationError(f"Socket with id '{socket.id}' already exists in the graph")

        self.nodes[node.id] = node
        for socket in node.sockets():
            self._index.add_node(socket.id, socket=socket)

        logger.debug(f"Added node: {node}")
        self.bus.emit(NODE_ADD, node)

    def remove_node(self, node_id: str) -> None:
        """Remove a node together with every connection touching its sockets. Unknown ids are ignored."""
        node = self.nodes.get(node_id)
        if node is None:
            logger.debug(f"remove_node: '{node_id}' is not in the graph, nothing to do")
            return

        socket_ids = [socket.id for socket in node.sockets() if socket.id in self._index]

        touching: Dict[str, Connection] = {}
        for socket_id in socket_ids:
            for _, _, connection in self._index.in_edges(socket_id, data="connection"):
                touching[connection.id] = connection
            for _, _, connection in self._index.out_edges(socket_id, data="connection"):
                touching[connection.id] = connection

        for connection in list(touching.values()):
            # a subscriber may already have dropped it
            if self._has_connection(connection):
                self.disconnect_sockets(connection)

        for socket_id in socket_ids:
            if socket_id in self._index:
                self._index.remove_node(socket_id)

        del self.nodes[node_id]
        logger.debug(f"Removed node: {node}")
        self.bus.emit(NODE_REMOVED, node)

    def clear(self) -> None:
        """Remove every node (and so every connection), announcing each removal."""
        for node_id in list(self.nodes.keys()):
            self.remove_node(node_id)
        self._index.clear()
        self._connections.clear()

    # =========================================================================
    # Connection Management
    # =========================================================================

    def is_socket_connection_valid(self, socket1: Socket, socket2: Socket) -> bool:
        """Check that socket types are compatible before connecting them."""
        if socket1.type == SocketType.PRODUCE:
            return socket2.type == SocketType.CONSUME
        if socket1.type == SocketType.CONSUME:
            return socket2.type == SocketType.PRODUCE
        return socket1.type == socket2.type

    def connect_sockets(self, output: str, input: str, connection_id: Optional[str] = None) -> Optional[Connection]:
        """
        Connect two sockets by id.

        The pair may be given input-first (a drag can start at either end); it
        is stored output -> input. Incompatible pairs are refused silently and
        None is returned.

        Raises:
            NotFoundError: If either socket id is not in the graph.
            InvalidOperationError: If *connection_id* is already used.
        """
        output_socket = self._require_socket(output)
        input_socket = self._require_socket(input)

        if not self.is_socket_connection_valid(output_socket, input_socket):
            logger.debug(f"Refused connection {output_socket} -> {input_socket}: incompatible types")
            return None
        if output_socket.is_input == input_socket.is_input:
            logger.debug(f"Refused connection {output_socket} -> {input_socket}: same direction")
            return None

        if output_socket.is_input:
            output_socket, input_socket = input_socket, output_socket

        if connection_id is not None and self.get_connection(connection_id) is not None:
            raise InvalidOperationError(f"Connection with id '{connection_id}' already exists in the graph")

        # Single-connection sockets give up their current connection first
        for socket in (output_socket, input_socket):
            if not socket.allow_multiple_connections:
                for existing in list(socket.connections):
                    if self._has_connection(existing):
                        self.disconnect_sockets(existing)
                    else:
                        existing.detach()

        connection = Connection(output_socket, input_socket, connection_id)
        connection.attach()
        self._index.add_edge(output_socket.id, input_socket.id, key=connection.id, connection=connection)
        self._connections[connection.id] = connection

        logger.debug(f"Connected: {connection}")
        self.bus.emit(SOCKET_CONNECT, connection)
        return connection

    def disconnect_sockets(self, connection: Union[str, Connection]) -> None:
        """
        Remove a connection from the graph and from both of its sockets.

        Raises:
            NotFoundError: If the connection is not in the graph.
        """
        if not isinstance(connection, Connection):
            found = self.get_connection(connection)
            if found is None:
                raise NotFoundError(f"Could not find connection in the graph: {connection}")
            connection = found

        if not self._has_connection(connection):
            raise NotFoundError(f"Could not find connection in the graph: {connection.id}")

        self._index.remove_edge(connection.output.id, connection.input.id, key=connection.id)
        del self._connections[connection.id]
        connection.detach()

        logger.debug(f"Disconnected: {connection}")
        self.bus.emit(SOCKET_DISCONNECT, connection)

    def _has_connection(self, connection: Connection) -> bool:
        return self._index.has_edge(connection.output.id, connection.input.id, key=connection.id)

    # =========================================================================
    # Properties
    # =========================================================================

    def set_socket_value(self, socket_id: str, value: Any) -> None:
        """
        Type a literal value into an editable socket: stores it in the owning
        node's property bag under the socket's property key.
        """
        socket = self._require_socket(socket_id)
        if not socket.editable:
            raise InvalidOperationError(f"Socket '{socket.name}' on node '{socket.node.name}' is not editable")

        socket.node.properties[socket.property] = value
        self.bus.emit(PROPERTY_CHANGE, PropertyChange(socket.node, socket.property, value))

    # =========================================================================
    # Execution
    # =========================================================================

    def run(self) -> List[str]:
        """Execute every node reachable from a root once, upstream first. Returns the run order."""
        return Executor(self).run()

    # =========================================================================
    # Serialization
    # =========================================================================

    def serialize(self) -> Dict[str, Any]:
        from ..serializers.graph_serializer import serialize_graph
        return serialize_graph(self)

    def deserialize(self, data: Any) -> None:
        """
        Replace the whole graph state with the content of a serialized document.

        The document is validated and every node type and socket reference is
        resolved before the current state is touched.

        Raises:
            pydantic.ValidationError: If the document is malformed.
            NotFoundError: On an unknown node type or a dangling socket id.
        """
        from ..serializers.graph_schema import validate_document

        document = validate_document(data)

        # Keys are unique, so matching keys make ids unique too
        for kind, table in (("Node", document.nodes),
                            ("Socket", document.sockets),
                            ("Connection", document.connections)):
            for key, item in table.items():
                if key != item.id:
                    raise InvalidOperationError(f"{kind} stored under '{key}' has id '{item.id}'")

        entries = {}
        owned_sockets = set()
        for serialized_node in document.nodes.values():
            entry = self.registry.get(serialized_node.type)
            if entry is None:
                raise NotFoundError(
                    f"Could not parse node type '{serialized_node.type}'. Node is not in registry"
                )
            entries[serialized_node.id] = entry
            for socket_id in [*serialized_node.inputs, *serialized_node.outputs]:
                if socket_id not in document.sockets:
                    raise NotFoundError(f"Socket '{socket_id}' of node '{serialized_node.id}' is missing")
                if socket_id in owned_sockets:
                    raise InvalidOperationError(f"Socket '{socket_id}' is claimed by more than one node")
                if document.sockets[socket_id].parentId != serialized_node.id:
                    raise InvalidOperationError(
                        f"Socket '{socket_id}' is listed by node '{serialized_node.id}' "
                        f"but names '{document.sockets[socket_id].parentId}' as parent"
                    )
                owned_sockets.add(socket_id)

        for serialized_connection in document.connections.values():
            for socket_id in (serialized_connection.outputId, serialized_connection.inputId):
                if socket_id not in owned_sockets:
                    raise NotFoundError(
                        f"Socket '{socket_id}' of connection '{serialized_connection.id}' is missing"
                    )

        self.clear()
        self.id = document.id

        for serialized_node in document.nodes.values():
            instance = entries[serialized_node.id].create()
            instance.id = serialized_node.id
            instance.name = serialized_node.name
            instance.properties = copy.deepcopy(serialized_node.properties)
            if serialized_node.isRoot is not None:
                instance.is_root = serialized_node.isRoot

            # Replace the factory sockets with the serialized ones
            instance.inputs.clear()
            instance.outputs.clear()
            for socket_id in serialized_node.inputs:
                instance.inputs.append(self._restore_socket(document.sockets[socket_id], instance, True))
            for socket_id in serialized_node.outputs:
                instance.outputs.append(self._restore_socket(document.sockets[socket_id], instance, False))

            self._insert_node(instance)

        for serialized_connection in document.connections.values():
            self.connect_sockets(
                serialized_connection.outputId,
                serialized_connection.inputId,
                serialized_connection.id,
            )

        logger.debug(f"Deserialized graph '{self.id}': {len(self.nodes)} nodes, {len(self.connections)} connections")

    @staticmethod
    def _restore_socket(serialized: Any, node: Node, is_input: bool) -> Socket:
        return Socket(
            SocketType.parse(serialized.type),
            serialized.property,
            serialized.name,
            node,
            editable=serialized.editable,
            allow_multiple_connections=serialized.allowMultipleConnections,
            is_input=is_input,
            socket_id=serialized.id,
        )

    def __repr__(self) -> str:
        return f"Graph({self.id[:8]}, nodes={len(self.nodes)}, connections={self._index.number_of_edges()})"
