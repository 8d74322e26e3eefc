from typing import Any, Dict, List, Optional
import logging
import uuid

from abc import ABC, abstractmethod

from .Errors import InvalidOperationError
from .Socket import Socket
from .Types import SocketTag


# Get a logger for this module
logger = logging.getLogger(__name__)


class Node(ABC):
    """
    Unit of computation: a property bag, ordered input/output sockets and a
    `run()` supplied by each concrete node.

    Values travel between nodes by direct write: when a node calls
    `set_output_property()` the value lands in the property bag of every node
    connected downstream. The Graph runs upstream nodes first, so a node reads
    its inputs from its own bag with `get_input_property()`.

    Subclasses declare their socket shape once, in `__init__`:

        class UpperNode(Node):
            def __init__(self):
                super().__init__("Upper")
                self.add_input(SocketType.TEXT, "text", "In")
                self.add_output(SocketType.TEXT, "text", "Out")

            def run(self):
                self.set_output_property(0, str(self.get_input_property(0)).upper())
    """

    def __init__(self, name: str):
        self.id = uuid.uuid4().hex
        self.name = name
        # Registry type name. Stamped by the NodeRegistry entry that built the node.
        self.type: Optional[str] = None
        self.properties: Dict[str, Any] = {}
        self.is_root = False

        # Order matters: the list index is how run() addresses a socket
        self.inputs: List[Socket] = []
        self.outputs: List[Socket] = []

    def add_input(self,
                  type: SocketTag,
                  property: str,
                  name: str,
                  editable: bool = True,
                  allow_multiple_connections: bool = False) -> Socket:
        socket = Socket(type, property, name, self,
                        editable=editable,
                        allow_multiple_connections=allow_multiple_connections,
                        is_input=True)
        self.inputs.append(socket)
        return socket

    def add_output(self,
                   type: SocketTag,
                   property: str,
                   name: str,
                   editable: bool = True,
                   allow_multiple_connections: bool = False) -> Socket:
        socket = Socket(type, property, name, self,
                        editable=editable,
                        allow_multiple_connections=allow_multiple_connections,
                        is_input=False)
        self.outputs.append(socket)
        return socket

    def sockets(self) -> List[Socket]:
        return [*self.inputs, *self.outputs]

    def get_input_property(self, index: int) -> Any:
        """Read the value of the property behind input socket *index* from this node's bag."""
        socket = self._socket_at(self.inputs, index, "inputs")
        return self.properties.get(socket.property)

    def set_output_property(self, index: int, value: Any) -> None:
        """Push *value* into every node connected to output socket *index*."""
        socket = self._socket_at(self.outputs, index, "outputs")

        if not socket.connections:
            logger.debug(f"Output '{socket.name}' on node '{self.name}' is not connected, value dropped")
            return

        for connection in socket.connections:
            target = connection.input
            logger.debug(f"  |- '{self.name}.{socket.name}' -> '{target.node.name}.{target.property}'")
            target.node.properties[target.property] = value

    def _socket_at(self, sockets: List[Socket], index: int, kind: str) -> Socket:
        if not 0 <= index < len(sockets):
            raise InvalidOperationError(
                f"Socket with index {index} was not found in {kind} of node '{self.name}' ({self.id})"
            )
        return sockets[index]

    @abstractmethod
    def run(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name} {self.id[:8]})"
