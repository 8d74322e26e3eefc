"""
nodeflow graph document — schema + file helpers
================================================
Defines the flat, id-addressed document produced by `Graph.serialize()` and
accepted by `Graph.deserialize()`.

Document format
---------------

    {
      "id": "7f0c...",                                   // graph id (str, required)
      "nodes": {
        "a1b2...": {
          "id":         "a1b2...",                      // node id (str, required)
          "name":       "Upper",                        // display name (str, required)
          "type":       "upper",                        // registered type name (str, required)
          "properties": { "text": "hi" },               // property bag (object, required)
          "inputs":     ["s1..."],                      // input socket ids, in order (list, required)
          "outputs":    ["s2..."],                      // output socket ids, in order (list, required)
          "isRoot":     false                           // optional, factory default when absent
        }
      },
      "sockets": {
        "s1...": {
          "id":       "s1...",
          "property": "text",                           // key in the owner's property bag
          "name":     "In",
          "type":     "Text",                           // "Produce" | "Consume" | "Text" | custom tag
          "editable": true,
          "allowMultipleConnections": false,
          "parentId": "a1b2...",                        // owning node id
          "isInput":  true                              // optional
        }
      },
      "connections": {
        "c1...": { "id": "c1...", "outputId": "s2...", "inputId": "s3..." }
      }
    }
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING, Union

from pydantic import BaseModel

if TYPE_CHECKING:
    from ..core.Graph import Graph


# ── Wire models ───────────────────────────────────────────────────────────────

class SerializedNode(BaseModel):
    id: str
    name: str
    type: str
    properties: Dict[str, Any]
    inputs: List[str]
    outputs: List[str]
    isRoot: Optional[bool] = None


class SerializedSocket(BaseModel):
    id: str
    property: str
    name: str
    type: str
    editable: bool
    allowMultipleConnections: bool
    parentId: str
    isInput: Optional[bool] = None


class SerializedConnection(BaseModel):
    id: str
    outputId: str
    inputId: str


class SerializedGraph(BaseModel):
    id: str
    nodes: Dict[str, SerializedNode]
    sockets: Dict[str, SerializedSocket]
    connections: Dict[str, SerializedConnection]


# ── Public helpers ────────────────────────────────────────────────────────────

def validate_document(data: Union[Dict[str, Any], SerializedGraph]) -> SerializedGraph:
    """
    Validate a parsed graph document.

    Raises:
        pydantic.ValidationError: On a missing or mistyped field.
    """
    if isinstance(data, SerializedGraph):
        return data
    return SerializedGraph.model_validate(data)


def save_document(graph: 'Graph', path: Union[str, Path]) -> Path:
    """Serialize *graph* and write it to *path* as UTF-8 JSON."""
    path = Path(path)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(graph.serialize(), fh, indent=2)
    return path


def load_document(path: Union[str, Path]) -> SerializedGraph:
    """
    Load and validate a graph document file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        pydantic.ValidationError: If the document structure is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    return validate_document(data)


__all__ = [
    "SerializedNode",
    "SerializedSocket",
    "SerializedConnection",
    "SerializedGraph",
    "validate_document",
    "save_document",
    "load_document",
]
