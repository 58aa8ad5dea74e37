"""
Core module - Canvas model, geometry, and interaction engine.

This module provides the toolkit-independent building blocks for Gen Canvas:
- Geometry: Points, rects and the screen/world transform
- Graph: Nodes, connections and groups
- Managers: Connection protocol, grouping, minimap
- Interaction: The drag-mode state machine
- Session: The facade the UI talks to
"""

from gen_canvas.core.errors import (
    CanvasError,
    DegenerateGeometry,
    InvalidColor,
    InvalidReference,
    InvalidTransition,
)

from gen_canvas.core.geometry import (
    CanvasTransform,
    Point2D,
    Rect,
    Size2D,
    bounding_rect,
    centered_on,
    reset_zoom,
    screen_to_world,
    world_to_screen,
    zoom_at,
    zoom_to,
)

from gen_canvas.core.settings import (
    GROUP_PALETTE,
    CanvasSettings,
    DuplicatePolicy,
    GroupColorPolicy,
)

from gen_canvas.core.node_types import (
    NODE_KINDS,
    NodeCategory,
    NodeKind,
    NodeKindSpec,
    kind_spec,
    kinds_in_category,
)

from gen_canvas.core.graph import (
    Connection,
    ConnectionId,
    Group,
    GroupId,
    Node,
    NodeGraph,
    NodeId,
    new_connection_id,
    new_group_id,
    new_node_id,
)

from gen_canvas.core.selection import Selection

from gen_canvas.core.drag_state import (
    DragMode,
    DragState,
    ResizeDirection,
)

from gen_canvas.core.connections import (
    ConnectionCurve,
    ConnectionManager,
    control_offset,
)

from gen_canvas.core.grouping import (
    GroupManager,
    ToolbarAction,
    ToolbarPlacement,
)

from gen_canvas.core.minimap import (
    Minimap,
    MinimapLayout,
)

from gen_canvas.core.align import (
    AlignDirection,
    align_nodes,
)

from gen_canvas.core.clipboard import (
    ClipboardContents,
    instantiate,
)

from gen_canvas.core.interaction import (
    EventOutcome,
    HitKind,
    HitTarget,
    InteractionController,
    Modifiers,
    PointerButton,
    PointerDevice,
    PointerEvent,
    PointerPhase,
    QuickAddRequest,
)

from gen_canvas.core.session import (
    CanvasSession,
    CanvasSnapshot,
)


__all__ = [
    # errors.py
    "CanvasError",
    "DegenerateGeometry",
    "InvalidColor",
    "InvalidReference",
    "InvalidTransition",
    # geometry.py
    "CanvasTransform",
    "Point2D",
    "Rect",
    "Size2D",
    "bounding_rect",
    "centered_on",
    "reset_zoom",
    "screen_to_world",
    "world_to_screen",
    "zoom_at",
    "zoom_to",
    # settings.py
    "GROUP_PALETTE",
    "CanvasSettings",
    "DuplicatePolicy",
    "GroupColorPolicy",
    # node_types.py
    "NODE_KINDS",
    "NodeCategory",
    "NodeKind",
    "NodeKindSpec",
    "kind_spec",
    "kinds_in_category",
    # graph.py
    "Connection",
    "ConnectionId",
    "Group",
    "GroupId",
    "Node",
    "NodeGraph",
    "NodeId",
    "new_connection_id",
    "new_group_id",
    "new_node_id",
    # selection.py
    "Selection",
    # drag_state.py
    "DragMode",
    "DragState",
    "ResizeDirection",
    # connections.py
    "ConnectionCurve",
    "ConnectionManager",
    "control_offset",
    # grouping.py
    "GroupManager",
    "ToolbarAction",
    "ToolbarPlacement",
    # minimap.py
    "Minimap",
    "MinimapLayout",
    # align.py
    "AlignDirection",
    "align_nodes",
    # clipboard.py
    "ClipboardContents",
    "instantiate",
    # interaction.py
    "EventOutcome",
    "HitKind",
    "HitTarget",
    "InteractionController",
    "Modifiers",
    "PointerButton",
    "PointerDevice",
    "PointerEvent",
    "PointerPhase",
    "QuickAddRequest",
    # session.py
    "CanvasSession",
    "CanvasSnapshot",
]
