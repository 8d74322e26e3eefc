"""
Exceptions raised by the graph engine.

Connection type mismatches are not errors: an incompatible pair is
refused silently and it is up to the editor layer to show why.
"""


class GraphError(Exception):
    """Base class for every error raised by nodeflow."""


class NotFoundError(GraphError, KeyError):
    """An id or registry type name does not resolve to anything."""

    def __str__(self) -> str:
        # KeyError quotes its message, keep it readable
        return str(self.args[0]) if self.args else ""


class InvalidOperationError(GraphError, ValueError):
    """The operation is not allowed in the current state (bad index, duplicate id, ...)."""
