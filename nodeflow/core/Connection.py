from typing import Optional, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from .Socket import Socket


class Connection:
    """
    A directed edge from one output socket to one input socket.

    The Graph owns connections. Both endpoint sockets keep a non-owning
    reference in their `connections` list once `attach()` has been called.
    """

    def __init__(self, output: 'Socket', input: 'Socket', connection_id: Optional[str] = None):
        self.id = connection_id if connection_id is not None else uuid.uuid4().hex
        self.output = output
        self.input = input

    def attach(self) -> None:
        # The Graph has already dropped prior connections on single-connection sockets
        for socket in (self.output, self.input):
            if self not in socket.connections:
                socket.connections.append(self)

    def detach(self) -> None:
        for socket in (self.output, self.input):
            socket.connections = [c for c in socket.connections if c is not self]

    def isAttached(self) -> bool:
        return self in self.output.connections and self in self.input.connections

    def __repr__(self) -> str:
        return (
            f"Connection({self.output.node.name}.{self.output.name} -> "
            f"{self.input.node.name}.{self.input.name})"
        )
