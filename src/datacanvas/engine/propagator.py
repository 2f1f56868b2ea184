"""Keeps every sink's cached result equal to its bound transform's result.

Propagation is exactly one hop (transform -> sink): a sink's
source_node_id never names another sink, so a single pass over the sinks
reaches the fixed point. Patches are produced only for sinks that differ,
which makes a second pass over the patched graph produce nothing.
"""

from __future__ import annotations

from typing import Any

from datacanvas.contracts.commands import UpdateNode
from datacanvas.contracts.enums import NodeKind
from datacanvas.core.graph.models import Graph, SinkData, TransformData
from datacanvas.core.logging import get_logger
from datacanvas.engine.charts import axis_defaults

logger = get_logger(__name__)

_UNBIND: dict[str, Any] = {"source_node_id": None, "bound_result": None}


class ResultPropagator:
    """Reconciliation pass run by the GraphStore after every mutation.

    For each bound sink:
    1. If its transform is gone, or no edge joins the two any more, unbind
       the sink (clear source_node_id and bound_result).
    2. Otherwise, if bound_result differs structurally from the transform's
       last_result, copy last_result across.
    3. If they are equal, do nothing.
    """

    def reconcile(self, graph: Graph) -> list[UpdateNode]:
        """Patches that bring every sink in ``graph`` up to date."""
        commands: list[UpdateNode] = []
        for node in graph.nodes_of_kind(NodeKind.SINK):
            sink = node.data
            assert isinstance(sink, SinkData)
            if sink.source_node_id is None:
                continue

            producer = graph.get(sink.source_node_id)
            if (
                producer is None
                or not isinstance(producer.data, TransformData)
                or not graph.edges_between(sink.source_node_id, node.node_id)
            ):
                logger.debug("sink_unbound", sink_id=node.node_id, transform_id=sink.source_node_id)
                commands.append(UpdateNode(node.node_id, _UNBIND))
                continue

            result = producer.data.last_result
            if sink.bound_result == result:
                continue

            patch: dict[str, Any] = {"bound_result": result}
            patch.update(axis_defaults(sink, result))
            logger.debug("sink_refreshed", sink_id=node.node_id, transform_id=producer.node_id)
            commands.append(UpdateNode(node.node_id, patch))
        return commands
