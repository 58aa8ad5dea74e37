"""
Align - Line up a multi-selection along one side.

Selected nodes are first split into clusters of nodes that overlap along
the axis perpendicular to the alignment (a column for UP/DOWN, a row for
LEFT/RIGHT). Each cluster is then stacked against the selection's
bounding edge in its current order, with a fixed gap between nodes.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from gen_canvas.core.graph import Node
from gen_canvas.core.settings import CanvasSettings


class AlignDirection(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def is_vertical(self) -> bool:
        return self in (AlignDirection.UP, AlignDirection.DOWN)


def _overlaps(a: Node, b: Node, vertical: bool, threshold: float) -> bool:
    if vertical:
        overlap = min(a.x + a.width, b.x + b.width) - max(a.x, b.x)
    else:
        overlap = min(a.y + a.height, b.y + b.height) - max(a.y, b.y)
    return overlap > threshold


def clusters(nodes: Sequence[Node], vertical: bool, threshold: float) -> list[list[Node]]:
    """Connected components of the overlap relation, in first-seen order."""
    result: list[list[Node]] = []
    visited: set[str] = set()
    for node in nodes:
        if node.id in visited:
            continue
        visited.add(node.id)
        cluster = [node]
        queue = [node]
        while queue:
            current = queue.pop(0)
            for other in nodes:
                if other.id not in visited and _overlaps(current, other, vertical, threshold):
                    visited.add(other.id)
                    cluster.append(other)
                    queue.append(other)
        result.append(cluster)
    return result


def align_nodes(
    nodes: Sequence[Node],
    direction: AlignDirection,
    settings: CanvasSettings,
) -> None:
    """
    Align ``nodes`` in place.

    UP stacks each cluster downward from the topmost edge, DOWN upward
    from the bottommost edge; LEFT and RIGHT do the same horizontally.
    Ties in position are broken by id so the result is deterministic.
    """
    if len(nodes) < 2:
        return

    top = min(n.y for n in nodes)
    bottom = max(n.y + n.height for n in nodes)
    left = min(n.x for n in nodes)
    right = max(n.x + n.width for n in nodes)
    v_gap = settings.align_vertical_gap
    h_gap = settings.align_horizontal_gap

    for cluster in clusters(nodes, direction.is_vertical, settings.align_overlap_threshold):
        if direction is AlignDirection.UP:
            cluster.sort(key=lambda n: (n.y, n.id))
            cursor = top
            for node in cluster:
                node.y = cursor
                cursor += node.height + v_gap
        elif direction is AlignDirection.DOWN:
            cluster.sort(key=lambda n: (-n.y, n.id))
            cursor = bottom
            for node in cluster:
                node.y = cursor - node.height
                cursor -= node.height + v_gap
        elif direction is AlignDirection.LEFT:
            cluster.sort(key=lambda n: (n.x, n.id))
            cursor = left
            for node in cluster:
                node.x = cursor
                cursor += node.width + h_gap
        else:
            cluster.sort(key=lambda n: (-n.x, n.id))
            cursor = right
            for node in cluster:
                node.x = cursor - node.width
                cursor -= node.width + h_gap
