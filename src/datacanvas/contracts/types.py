"""Semantic type aliases for compile-time type safety.

NewType creates distinct types that mypy treats as incompatible,
preventing accidental misuse of semantically different string values.
"""

from typing import NewType

NodeID = NewType("NodeID", str)
"""Unique node identifier on the canvas (e.g., 'transform-3')"""

EdgeID = NewType("EdgeID", str)
"""Unique edge identifier on the canvas (e.g., 'edge-7')"""

type Position = tuple[float, float]
"""Canvas coordinates (x, y) of a node."""

type Scalar = str | int | float | bool | None
"""A single cell value in a query result row."""
