# src/datacanvas/core/__init__.py
"""Core infrastructure: graph store, configuration, events, logging."""

from datacanvas.core.config import (
    CanvasSettings,
    DataCanvasSettings,
    LoggingSettings,
    load_settings,
)
from datacanvas.core.events import EventBus, EventBusProtocol, NullEventBus
from datacanvas.core.graph import (
    Edge,
    Graph,
    GraphStore,
    Node,
    SinkData,
    SourceData,
    TransformData,
)
from datacanvas.core.logging import configure_logging, get_logger

__all__ = [
    "CanvasSettings",
    "DataCanvasSettings",
    "Edge",
    "EventBus",
    "EventBusProtocol",
    "Graph",
    "GraphStore",
    "LoggingSettings",
    "Node",
    "NullEventBus",
    "SinkData",
    "SourceData",
    "TransformData",
    "configure_logging",
    "get_logger",
    "load_settings",
]
