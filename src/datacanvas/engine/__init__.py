"""Canvas engine: connection policy, result propagation, execution gate, status."""

from datacanvas.engine.charts import chart_placeholder, chart_records
from datacanvas.engine.connection_policy import apply_connection_policy, derive_table_name
from datacanvas.engine.gate import ExecutionGate, RunRequest, rewrite_placeholder
from datacanvas.engine.propagator import ResultPropagator
from datacanvas.engine.status import summarize_status
from datacanvas.engine.workspace import Workspace

__all__ = [
    "ExecutionGate",
    "ResultPropagator",
    "RunRequest",
    "Workspace",
    "apply_connection_policy",
    "chart_placeholder",
    "chart_records",
    "derive_table_name",
    "rewrite_placeholder",
    "summarize_status",
]
