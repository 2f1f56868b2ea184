# src/datacanvas/core/graph/__init__.py
"""Canvas graph: immutable snapshot values and the store that replaces them."""

from datacanvas.core.graph.models import (
    DEFAULT_QUERY,
    Edge,
    Graph,
    GraphIntegrityError,
    Node,
    NodeData,
    SinkData,
    SourceData,
    TransformData,
)
from datacanvas.core.graph.store import ConnectionPolicy, GraphStore, Reconciler

__all__ = [
    "DEFAULT_QUERY",
    "ConnectionPolicy",
    "Edge",
    "Graph",
    "GraphIntegrityError",
    "GraphStore",
    "Node",
    "NodeData",
    "Reconciler",
    "SinkData",
    "SourceData",
    "TransformData",
]
