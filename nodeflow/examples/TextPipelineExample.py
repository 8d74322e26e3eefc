import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

from nodeflow.core.EventBus import EventBus
from nodeflow.core.Graph import Graph
from nodeflow.noderegistry.NodeRegistry import NodeRegistry
from nodeflow.server.node_definitions import LogNode, MakeTextNode, register_builtin_nodes
from nodeflow.serializers.graph_schema import save_document

logger = logging.getLogger(__name__)

# Build a three node text pipeline, run it and save it as a graph document.
# Demonstrates:
#  * How to create nodes by type name and as hand-built instances
#  * How to connect output sockets to input sockets
#  * How values are pushed downstream while the graph runs
#  * How to write the graph out as JSON
"""
Flow Breakdown

1. MakeText is a root node holding the literal "hi" in its "text" property.
2. Upper receives it on its input socket and pushes the upper-cased text on.
3. Log receives "HI" and records it.

    +-----------+        +---------+        +--------+
    | MakeText  | text   |  Upper  | text   |  Log   |
    |  ("hi")   |------->|         |------->|        |
    +-----------+        +---------+        +--------+
"""


def build_example_graph(text: str = "hi") -> Tuple[Graph, LogNode]:
    registry = register_builtin_nodes(NodeRegistry())
    graph = Graph(registry, EventBus())

    # Hand-built instance: the registry still recognises its class
    make_text = graph.add_node(MakeTextNode(text))
    upper = graph.add_node("upper")
    log = graph.add_node("log")

    graph.connect_sockets(make_text.outputs[0].id, upper.inputs[0].id)
    graph.connect_sockets(upper.outputs[0].id, log.inputs[0].id)
    return graph, log


def main(output: Optional[str] = None) -> Graph:
    graph, log = build_example_graph()

    order = graph.run()
    logger.info(f"Ran {len(order)} nodes, log received: {log.messages}")

    if output:
        path = save_document(graph, output)
        logger.info(f"Saved graph to {Path(path).resolve()}")
    return graph


if __name__ == "__main__":
    # Configure Logging ONCE at the entry point of your application
    logging.basicConfig(
        level=logging.INFO,  # Set to DEBUG to see executor internals
        format='[%(asctime)s]:%(name)s:(%(levelname)s) - %(message)s',
        datefmt='%H:%M:%S'
    )
    main(sys.argv[1] if len(sys.argv) > 1 else "text_pipeline.json")
