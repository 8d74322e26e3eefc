from typing import List, Optional, Set, TYPE_CHECKING
from logging import getLogger

from .Node import Node

if TYPE_CHECKING:
    from .Graph import Graph

logger = getLogger(__name__)


class ExecutionTreeNode:
    """One node of the per-root execution tree."""

    def __init__(self, node: Node):
        self.node = node
        self.next: List['ExecutionTreeNode'] = []
        self.dependencies: List['ExecutionTreeNode'] = []

    def __repr__(self) -> str:
        return f"ExecutionTreeNode({self.node.name}, next={len(self.next)}, deps={len(self.dependencies)})"


class Executor:
    """
    Runs a graph once, from its root nodes.

    For each root a tree is built depth first: a node's `next` children are the
    nodes fed by its outputs, its `dependencies` the nodes feeding its inputs.
    A node is marked visited as soon as it is placed in the tree, which keeps
    cycles finite and places every node at most once. The tree is then walked
    dependencies -> node.run() -> next.
    """

    def __init__(self, graph: 'Graph'):
        self.graph = graph
        self.visited: Set[str] = set()
        self.executed: List[str] = []

    def find_roots(self) -> List[Node]:
        roots = {}
        for socket in self.graph.sockets:
            node = socket.node
            if node.is_root and node.id not in roots:
                roots[node.id] = node
        return list(roots.values())

    def build_execution_tree(self, node: Node) -> ExecutionTreeNode:
        # TODO: a node reached through a `next` link can end up ahead of a
        # dependency that was placed earlier on another branch.
        item = ExecutionTreeNode(node)
        self.visited.add(node.id)

        for candidate in self._next_nodes(node):
            if candidate.id not in self.visited:
                item.next.append(self.build_execution_tree(candidate))

        for candidate in self._dependency_nodes(node):
            if candidate.id not in self.visited:
                item.dependencies.append(self.build_execution_tree(candidate))

        return item

    def build_execution_forest(self, roots: Optional[List[Node]] = None) -> List[ExecutionTreeNode]:
        self.visited = set()
        if roots is None:
            roots = self.find_roots()
        return [self.build_execution_tree(root) for root in roots if root.id not in self.visited]

    def run_tree(self, items: List[ExecutionTreeNode]) -> None:
        for item in items:
            self.run_tree(item.dependencies)
            self._run_node(item.node)
            self.run_tree(item.next)

    def run(self) -> List[str]:
        self.executed = []
        forest = self.build_execution_forest()
        logger.debug(f"Running graph '{self.graph.id}' from {len(forest)} root(s)")
        self.run_tree(forest)
        return list(self.executed)

    def _run_node(self, node: Node) -> None:
        logger.debug(f"RUN: node '{node.name}' ({node.id})")
        try:
            node.run()
        except Exception as exc:
            logger.error(f"Node '{node.name}' ({node.id}) failed: {exc}")
            raise
        self.executed.append(node.id)

    @staticmethod
    def _next_nodes(node: Node) -> List[Node]:
        return [connection.input.node
                for output in node.outputs
                for connection in output.connections]

    @staticmethod
    def _dependency_nodes(node: Node) -> List[Node]:
        return [connection.output.node
                for input in node.inputs
                for connection in input.connections]
