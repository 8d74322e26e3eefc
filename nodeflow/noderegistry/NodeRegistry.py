from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, Type, Union
import logging

from ..core.Node import Node

logger = logging.getLogger(__name__)

NodeFactory = Union[Type[Node], Callable[..., Node]]


class RegistryEntry(NamedTuple):
    """Everything needed to build a node of one registered type."""
    type: str
    factory: NodeFactory
    args: Tuple[Any, ...] = ()

    def create(self) -> Node:
        node = self.factory(*self.args)
        # Tag the instance so serialization can recover the type without reflection
        node.type = self.type
        return node


class NodeRegistry:
    """
    Maps a type name to a node factory plus its fixed construction arguments.

    Every node type must be registered before it can be created by name or
    loaded from a serialized document.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, RegistryEntry] = {}

    def register(self, type: str, factory: NodeFactory, args: Optional[Any] = None) -> RegistryEntry:
        if not type or not type.strip():
            raise ValueError("Node type name must be non-empty")

        if type in self._entries:
            logger.debug(f"Node type '{type}' re-registered, replacing previous factory")

        entry = RegistryEntry(type, factory, self._as_args(args))
        self._entries[type] = entry
        return entry

    @staticmethod
    def _as_args(args: Optional[Any]) -> Tuple[Any, ...]:
        if args is None:
            return ()
        if isinstance(args, (list, tuple)):
            return tuple(args)
        # a lone value, strings included, is one argument
        return (args,)

    def register_node(self, type: str, *args: Any) -> Callable[[Type[Node]], Type[Node]]:
        """Decorator to register a node class with a specific type name."""
        def decorator(cls: Type[Node]) -> Type[Node]:
            self.register(type, cls, args)
            return cls
        return decorator

    def get(self, type: str) -> Optional[RegistryEntry]:
        return self._entries.get(type)

    def get_all(self) -> List[RegistryEntry]:
        return list(self._entries.values())

    def get_from_instance(self, node: Node) -> Optional[RegistryEntry]:
        """Find the entry that produced *node*, or None when its variant is not registered."""
        tagged = self._entries.get(node.type) if node.type else None
        if tagged is not None:
            return tagged

        # Nodes built by hand and added as instances carry no tag
        for entry in self._entries.values():
            if entry.factory is type(node):
                return entry
        for entry in self._entries.values():
            if isinstance(entry.factory, type) and isinstance(node, entry.factory):
                return entry
        return None

    def types(self) -> List[str]:
        return list(self._entries.keys())

    def __contains__(self, type: str) -> bool:
        return type in self._entries

    def __len__(self) -> int:
        return len(self._entries)
