"""
Selection - Transient focus of the canvas.

Focus is either a set of nodes or a single connection, never both.
"""

from __future__ import annotations

from typing import Iterable

from gen_canvas.core.graph import ConnectionId, NodeId


class Selection:
    """Currently selected nodes, or the currently selected connection."""

    def __init__(self):
        self._node_ids: set[NodeId] = set()
        self._connection_id: ConnectionId | None = None

    @property
    def node_ids(self) -> frozenset[NodeId]:
        return frozenset(self._node_ids)

    @property
    def connection_id(self) -> ConnectionId | None:
        return self._connection_id

    def select_nodes(self, node_ids: Iterable[NodeId], additive: bool = False) -> None:
        """Replace (or extend) the node selection; clears connection focus."""
        if not additive:
            self._node_ids.clear()
        self._node_ids.update(node_ids)
        self._connection_id = None

    def select_connection(self, connection_id: ConnectionId) -> None:
        """Focus a connection; clears node selection."""
        self._node_ids.clear()
        self._connection_id = connection_id

    def discard_node(self, node_id: NodeId) -> None:
        self._node_ids.discard(node_id)

    def discard_connection(self, connection_id: ConnectionId) -> None:
        if self._connection_id == connection_id:
            self._connection_id = None

    def clear(self) -> None:
        self._node_ids.clear()
        self._connection_id = None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._node_ids

    def __len__(self) -> int:
        """Number of selected nodes."""
        return len(self._node_ids)

    def __bool__(self) -> bool:
        return bool(self._node_ids) or self._connection_id is not None

    def __repr__(self) -> str:
        return f"Selection(nodes={sorted(self._node_ids)!r}, connection={self._connection_id!r})"
