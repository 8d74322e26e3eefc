"""
nodeflow: a node-graph dataflow engine.

Nodes with typed input/output sockets are wired into a directed graph and run
once, upstream first, pushing values into each other's property bags.
"""
from .core.Connection import Connection
from .core.Errors import GraphError, InvalidOperationError, NotFoundError
from .core.EventBus import EventBus, PropertyChange
from .core.Graph import Graph
from .core.Node import Node
from .core.Socket import Socket
from .core.Types import SocketType
from .noderegistry.NodeRegistry import NodeRegistry, RegistryEntry

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "EventBus",
    "Graph",
    "GraphError",
    "InvalidOperationError",
    "Node",
    "NodeRegistry",
    "NotFoundError",
    "PropertyChange",
    "RegistryEntry",
    "Socket",
    "SocketType",
]
