"""Chart-facing helpers for sink nodes.

Turns a sink's cached result into plot records and decides which
placeholder, if any, the chart area shows.
"""

from __future__ import annotations

from typing import Any

from datacanvas.contracts.results import QueryResult
from datacanvas.contracts.types import Scalar
from datacanvas.core.graph.models import SinkData

NO_RESULT_MESSAGE = "Connect a SQL node with results"
NO_AXES_MESSAGE = "Select X and Y columns"


def axis_defaults(sink: SinkData, result: QueryResult | None) -> dict[str, Any]:
    """Axis fields to add to a patch that binds ``result`` to ``sink``.

    Only fills axes the user has not chosen: x becomes the first column and
    y the second, when there is one.
    """
    if result is None or sink.x_field is not None or not result.columns:
        return {}
    patch: dict[str, Any] = {"x_field": result.columns[0]}
    if len(result.columns) > 1 and sink.y_field is None:
        patch["y_field"] = result.columns[1]
    return patch


def chart_placeholder(sink: SinkData) -> str | None:
    """Empty-state message for the chart, or None when it can render."""
    result = sink.bound_result
    if result is None:
        return NO_RESULT_MESSAGE
    if sink.x_field not in result.columns or sink.y_field not in result.columns or not result.rows:
        return NO_AXES_MESSAGE
    return None


def chart_records(sink: SinkData) -> list[dict[str, Scalar]]:
    """Bound rows as ``{column: value}`` records; empty when nothing is bound."""
    if sink.bound_result is None:
        return []
    return sink.bound_result.records()
