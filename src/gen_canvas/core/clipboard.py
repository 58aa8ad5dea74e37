"""
Clipboard - In-process copy and paste of node subgraphs.

Copying captures the selected nodes and only the connections running
between them. Pasting recreates them with fresh ids at a target point,
keeping their offsets relative to the copied set's top-left corner.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from typing import Iterable

from gen_canvas.core.geometry import Point2D
from gen_canvas.core.graph import Connection, Node, NodeGraph, NodeId, new_node_id


COPY_SUFFIX = "(Copy)"


@dataclass(frozen=True)
class ClipboardContents:
    """Detached copies of the nodes and internal edges that were copied."""
    nodes: tuple[Node, ...]
    connections: tuple[Connection, ...]

    @classmethod
    def capture(cls, graph: NodeGraph, node_ids: Iterable[NodeId]) -> ClipboardContents:
        ids = {nid for nid in node_ids if nid in graph}
        nodes = tuple(copy.deepcopy(n) for n in graph.nodes.values() if n.id in ids)
        connections = tuple(
            c for c in graph.connections
            if c.source_id in ids and c.target_id in ids
        )
        return cls(nodes=nodes, connections=connections)

    def __bool__(self) -> bool:
        return bool(self.nodes)


def copy_title(title: str) -> str:
    return title if title.endswith(COPY_SUFFIX) else f"{title} {COPY_SUFFIX}"


def instantiate(
    contents: ClipboardContents,
    target: Point2D,
) -> tuple[list[Node], list[Connection]]:
    """Fresh nodes and connections for one paste at ``target`` (world)."""
    min_x = min(n.x for n in contents.nodes)
    min_y = min(n.y for n in contents.nodes)

    id_map: dict[NodeId, NodeId] = {}
    nodes: list[Node] = []
    for node in contents.nodes:
        new_id = new_node_id()
        id_map[node.id] = new_id
        nodes.append(replace(
            node,
            id=new_id,
            x=target.x + node.x - min_x,
            y=target.y + node.y - min_y,
            title=copy_title(node.title),
        ))

    connections = [
        Connection.create(id_map[c.source_id], id_map[c.target_id])
        for c in contents.connections
    ]
    return nodes, connections
