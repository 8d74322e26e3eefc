from typing import Any, List, Optional, TYPE_CHECKING
import uuid

from .Types import SocketType, SocketTag

# To avoid circular imports only for typing
if TYPE_CHECKING:
    from .Node import Node
    from .Connection import Connection


class Socket:
    """
    A typed, named connection point owned by exactly one node.

    `property` is the key in the owning node's `properties` bag that this socket
    reads from (inputs) or whose downstream counterpart it writes to (outputs).
    """

    def __init__(self,
                 type: SocketTag,
                 property: str,
                 name: str,
                 node: 'Node',
                 editable: bool = True,
                 allow_multiple_connections: bool = False,
                 is_input: bool = False,
                 socket_id: Optional[str] = None):
        self.id = socket_id if socket_id is not None else uuid.uuid4().hex
        self.type = SocketType.parse(type)
        self.property = property
        self.name = name
        self.editable = editable
        self.allow_multiple_connections = allow_multiple_connections
        self.is_input = is_input

        # Back-reference only. The node owns the socket.
        self.node = node
        self.connections: List['Connection'] = []

    def isInput(self) -> bool:
        return self.is_input

    def isOutput(self) -> bool:
        return not self.is_input

    def isConnected(self) -> bool:
        return len(self.connections) > 0

    def get_value(self) -> Any:
        """Value currently stored under this socket's property on the owning node."""
        return self.node.properties.get(self.property)

    def __repr__(self) -> str:
        direction = "in" if self.is_input else "out"
        return f"Socket({self.name}:{SocketType.tag(self.type)}:{direction} {self.id[:8]})"
