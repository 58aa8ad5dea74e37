"""
Drag State - What the in-progress pointer gesture means.

The interaction controller owns one DragState at a time. Everything a
gesture needs to commit or revert lives here, so ending a gesture is a
matter of dropping the state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from gen_canvas.core.geometry import CanvasTransform, Point2D, Rect
from gen_canvas.core.graph import GroupId, NodeId


class DragMode(Enum):
    """Interpretation assigned to an in-progress pointer gesture."""
    IDLE = auto()
    PAN = auto()
    MOVE_NODE = auto()
    CONNECT = auto()
    SELECT_MARQUEE = auto()
    RESIZE_GROUP = auto()


class ResizeDirection(Enum):
    """Which group edge/corner a resize handle drags."""
    EAST = "E"
    WEST = "W"
    SOUTH_EAST = "SE"


@dataclass
class DragState:
    """
    State of the active gesture.

    Attributes:
        mode: Current drag mode
        source_node_id: Output node of a connection being drawn
        temp_point: Live world-space endpoint of the connection preview
        last_screen: Screen position of the previous move (pan)
        start_world: World point under the pointer when the gesture began
        start_transform: Transform when the gesture began (pan revert)
        start_positions: Node positions when the gesture began
        start_group_bounds: Group frames when the gesture began
        resize_group_id: Group being resized
        resize_direction: Handle being dragged
        marquee_start: World-space corner where the marquee began
        marquee_end: World-space corner under the pointer
        marquee_additive: Keep the previous selection when the marquee ends
    """
    mode: DragMode = DragMode.IDLE
    source_node_id: NodeId | None = None
    temp_point: Point2D | None = None
    last_screen: Point2D | None = None
    start_world: Point2D | None = None
    start_transform: CanvasTransform | None = None
    start_positions: dict[NodeId, Point2D] = field(default_factory=dict)
    start_group_bounds: dict[GroupId, Rect] = field(default_factory=dict)
    resize_group_id: GroupId | None = None
    resize_direction: ResizeDirection | None = None
    marquee_start: Point2D | None = None
    marquee_end: Point2D | None = None
    marquee_additive: bool = False

    @classmethod
    def idle(cls) -> DragState:
        return cls()

    @property
    def marquee_rect(self) -> Rect | None:
        if self.marquee_start is None or self.marquee_end is None:
            return None
        return Rect.from_corners(self.marquee_start, self.marquee_end)
