"""Commands consumed by the GraphStore.

Components never hold references to node data they do not own. They
describe the change they want as a command and the store, as the single
writer, applies it against whatever snapshot is current at that moment.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from datacanvas.contracts.types import NodeID


@dataclass(frozen=True, slots=True)
class UpdateNode:
    """Shallow-merge ``patch`` into the data of node ``node_id``.

    Applying an UpdateNode for a node that no longer exists is a no-op.
    """

    node_id: NodeID
    patch: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "patch", MappingProxyType(dict(self.patch)))
