"""
The single graph served over HTTP.

Owns the registry (with the built-in node types), the event bus and the graph.
Builds a small demo graph on startup so a client has something to display on
first load.
"""
from __future__ import annotations

import logging

from nodeflow.core.EventBus import EventBus
from nodeflow.core.Graph import Graph
from nodeflow.noderegistry.NodeRegistry import NodeRegistry
from nodeflow.server.node_definitions import register_builtin_nodes

logger = logging.getLogger(__name__)


class GraphState:
    """Holds the registry, the event bus and the graph they are wired into."""

    def __init__(self, seed_demo: bool = True) -> None:
        self.registry = register_builtin_nodes(NodeRegistry())
        self.bus = EventBus()
        self.graph = Graph(self.registry, self.bus)

        if seed_demo:
            self._seed_demo()

    def reset(self, seed_demo: bool = True) -> None:
        """Empty the graph (announcing every removal) and optionally rebuild the demo."""
        self.graph.clear()
        if seed_demo:
            self._seed_demo()

    # ── Demo graph ──────────────────────────────────────────────────────────

    def _seed_demo(self) -> None:
        graph = self.graph

        # MakeText("hello") -> Upper -> Log
        text = graph.add_node("make-text")
        upper = graph.add_node("upper")
        log = graph.add_node("log")

        graph.connect_sockets(text.outputs[0].id, upper.inputs[0].id)
        graph.connect_sockets(upper.outputs[0].id, log.inputs[0].id)

        # Start -> Print, with the upper-cased text as message
        start = graph.add_node("start")
        printer = graph.add_node("print")

        graph.connect_sockets(start.outputs[0].id, printer.inputs[0].id)
        graph.connect_sockets(upper.outputs[0].id, printer.inputs[1].id)

        logger.info(f"Seeded demo graph '{graph.id}' with {len(graph.nodes)} nodes")


graph_state = GraphState()
