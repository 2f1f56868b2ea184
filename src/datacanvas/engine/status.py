"""One-line canvas summary for the status bar.

Recomputed from the snapshot on every change; never maintained
incrementally.
"""

from __future__ import annotations

from datacanvas.contracts.enums import NodeKind
from datacanvas.core.graph.models import Graph, TransformData

EMPTY_CANVAS_MESSAGE = "Drop a file to get started"


def summarize_status(graph: Graph) -> str:
    """Classify the canvas, first matching rule wins.

    1. no nodes                        -> "Drop a file to get started"
    2. files but no transforms         -> "<n> file(s) loaded — add a transform node"
    3. transforms but none has results -> "<n> transform node(s) — connect a file and run a query"
    4. otherwise                       -> non-zero counts of files, results, charts joined by " | "
    """
    if not graph.nodes:
        return EMPTY_CANVAS_MESSAGE

    files = len(graph.nodes_of_kind(NodeKind.SOURCE))
    transforms = graph.nodes_of_kind(NodeKind.TRANSFORM)
    charts = len(graph.nodes_of_kind(NodeKind.SINK))

    if files and not transforms:
        return f"{files} file(s) loaded — add a transform node"

    results = sum(1 for node in transforms if isinstance(node.data, TransformData) and node.data.last_result is not None)
    if transforms and not results:
        return f"{len(transforms)} transform node(s) — connect a file and run a query"

    parts = []
    if files:
        parts.append(f"{files} file(s)")
    if results:
        parts.append(f"{results} query result(s)")
    if charts:
        parts.append(f"{charts} chart(s)")
    return " | ".join(parts)
