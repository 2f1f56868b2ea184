"""What a newly created edge copies from its source node into its target.

Pure decision table over (source kind, target kind):

    source    -> transform : bind input_path and table_name to the file
    transform -> sink      : bind source_node_id, copy last_result if present
    any other pair         : nothing

A second inbound edge from another source overwrites the transform's
binding (last applied wins; there is no multi-input merge).
"""

from __future__ import annotations

import re
from typing import Any

from datacanvas.contracts.commands import UpdateNode
from datacanvas.core.graph.models import Node, SinkData, SourceData, TransformData
from datacanvas.core.logging import get_logger
from datacanvas.engine.charts import axis_defaults

logger = get_logger(__name__)

_PATH_SEPARATORS = re.compile(r"[\\/]+")


def derive_table_name(path: str) -> str:
    """Table name for a file: its base name without the final extension.

    Deliberately permissive. No lowercasing, quoting or character
    filtering; a name the SQL engine rejects is reported by the engine.

    Examples:
        /a/b/sales-2024.csv  -> sales-2024
        /x/report.final.json -> report.final
    """
    base = _PATH_SEPARATORS.split(path.rstrip("\\/"))[-1]
    stem, dot, _extension = base.rpartition(".")
    if dot and stem:
        return stem
    return base


def apply_connection_policy(source: Node, target: Node) -> UpdateNode | None:
    """Command that binds ``target`` to ``source``, or None for unrelated kinds.

    Applying the same command twice has no further effect, so parallel
    edges between one pair behave like a single edge.
    """
    match (source.data, target.data):
        case (SourceData(path=path), TransformData()):
            table_name = derive_table_name(path)
            logger.info("table_bound", transform_id=target.node_id, table_name=table_name, input_path=path)
            return UpdateNode(target.node_id, {"input_path": path, "table_name": table_name})

        case (TransformData(last_result=result), SinkData() as sink):
            patch: dict[str, Any] = {"source_node_id": source.node_id}
            if result is not None:
                patch["bound_result"] = result
                patch.update(axis_defaults(sink, result))
            return UpdateNode(target.node_id, patch)

        case _:
            return None
