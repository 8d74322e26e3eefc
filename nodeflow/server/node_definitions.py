"""
Built-in node types.

`register_builtin_nodes(registry)` registers every type below so it can be
created by name (`graph.add_node("upper")`) and loaded from a document.

Socket order is part of each node's contract: `run()` addresses sockets by
their index in `inputs` / `outputs`.
"""
from __future__ import annotations

import logging
from typing import List

from nodeflow.core.Node import Node
from nodeflow.core.Types import SocketType
from nodeflow.noderegistry.NodeRegistry import NodeRegistry

logger = logging.getLogger(__name__)


# ── StartNode ─────────────────────────────────────────────────────────────────

class StartNode(Node):
    """Entry point for control flow. Fires its Produce socket and does nothing else."""

    def __init__(self, name: str = "Start"):
        super().__init__(name)
        self.is_root = True
        self.add_output(SocketType.PRODUCE, "start", "Start", editable=False,
                        allow_multiple_connections=True)

    def run(self) -> None:
        self.set_output_property(0, True)


# ── MakeTextNode ──────────────────────────────────────────────────────────────

class MakeTextNode(Node):
    def __init__(self, text: str = "", name: str = "Make Text"):
        super().__init__(name)
        self.is_root = True
        self.properties["text"] = text

        self.add_input(SocketType.TEXT, "text", "Text")
        self.add_output(SocketType.TEXT, "text", "Text", editable=False,
                        allow_multiple_connections=True)

    def run(self) -> None:
        self.set_output_property(0, self.get_input_property(0))


# ── UpperNode ─────────────────────────────────────────────────────────────────

class UpperNode(Node):
    def __init__(self, name: str = "Upper"):
        super().__init__(name)
        self.add_input(SocketType.TEXT, "text", "In")
        self.add_output(SocketType.TEXT, "text", "Out", editable=False,
                        allow_multiple_connections=True)

    def run(self) -> None:
        text = self.get_input_property(0)
        self.set_output_property(0, "" if text is None else str(text).upper())


# ── EchoNode ──────────────────────────────────────────────────────────────────

class EchoNode(Node):
    def __init__(self, name: str = "Echo"):
        super().__init__(name)
        self.add_input(SocketType.TEXT, "in", "in")
        self.add_output(SocketType.TEXT, "out", "out", editable=False,
                        allow_multiple_connections=True)

    def run(self) -> None:
        self.set_output_property(0, self.get_input_property(0))


# ── ConcatNode ────────────────────────────────────────────────────────────────

class ConcatNode(Node):
    def __init__(self, separator: str = "", name: str = "Concat"):
        super().__init__(name)
        self.properties["separator"] = separator

        self.add_input(SocketType.TEXT, "a", "A")
        self.add_input(SocketType.TEXT, "b", "B")
        self.add_output(SocketType.TEXT, "text", "Text", editable=False,
                        allow_multiple_connections=True)

    def run(self) -> None:
        parts = [self.get_input_property(0), self.get_input_property(1)]
        separator = self.properties.get("separator") or ""
        self.set_output_property(0, separator.join("" if p is None else str(p) for p in parts))


# ── LogNode ───────────────────────────────────────────────────────────────────

class LogNode(Node):
    """Terminal node: logs the text it receives and keeps every message it has seen."""

    def __init__(self, name: str = "Log"):
        super().__init__(name)
        self.messages: List[str] = []
        self.add_input(SocketType.TEXT, "message", "Message")

    def run(self) -> None:
        message = self.get_input_property(0)
        logger.info(f"[{self.name}] {message}")
        self.messages.append(message)


# ── PrintNode ─────────────────────────────────────────────────────────────────

class PrintNode(Node):
    """Control-flow aware logger: runs when triggered, then triggers the next node."""

    def __init__(self, name: str = "Print"):
        super().__init__(name)
        self.messages: List[str] = []

        self.add_input(SocketType.CONSUME, "exec", "Exec", editable=False)
        self.add_input(SocketType.TEXT, "message", "Message")
        self.add_output(SocketType.PRODUCE, "exec", "Next", editable=False)

    def run(self) -> None:
        message = self.get_input_property(1)
        logger.info(f"[{self.name}] {message}")
        self.messages.append(message)
        self.set_output_property(0, True)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

BUILTIN_NODES = {
    "start": (StartNode, ()),
    "make-text": (MakeTextNode, ("hello",)),
    "upper": (UpperNode, ()),
    "echo": (EchoNode, ()),
    "concat": (ConcatNode, (" ",)),
    "log": (LogNode, ()),
    "print": (PrintNode, ()),
}


def register_builtin_nodes(registry: NodeRegistry) -> NodeRegistry:
    for type_name, (factory, args) in BUILTIN_NODES.items():
        registry.register(type_name, factory, args)
    return registry
