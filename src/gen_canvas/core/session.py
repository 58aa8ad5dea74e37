"""
Canvas Session - The engine facade the presentation layer talks to.

A CanvasSession owns one canvas: its graph, transform, selection and the
managers that mutate them. It exposes the read-only state renderers need
and the small set of mutation entry points collaborators call. Entry
points never raise CanvasError to the caller: a stale id or an
inapplicable action is logged and leaves the state unchanged.
"""

from __future__ import annotations

import copy
import functools
import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar

from gen_canvas.core.align import AlignDirection, align_nodes
from gen_canvas.core.clipboard import ClipboardContents, instantiate
from gen_canvas.core.connections import ConnectionManager
from gen_canvas.core.drag_state import DragState
from gen_canvas.core.errors import CanvasError, DegenerateGeometry, InvalidTransition
from gen_canvas.core.geometry import (
    CanvasTransform,
    Point2D,
    Size2D,
    centered_on,
    reset_zoom,
    zoom_at,
    zoom_to,
)
from gen_canvas.core.graph import (
    Connection,
    ConnectionId,
    Group,
    GroupId,
    Node,
    NodeGraph,
    NodeId,
)
from gen_canvas.core.grouping import GroupManager, ToolbarPlacement
from gen_canvas.core.interaction import (
    EventOutcome,
    InteractionController,
    Modifiers,
    PointerEvent,
    QuickAddRequest,
)
from gen_canvas.core.minimap import Minimap, MinimapLayout
from gen_canvas.core.node_types import NodeKind, kind_spec
from gen_canvas.core.selection import Selection
from gen_canvas.core.settings import CanvasSettings


logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[["CanvasSession"], None]


def _lenient(default: object = None):
    """
    Turn CanvasError into a logged no-op and notify listeners afterwards.

    Used on every public mutation entry point of CanvasSession.
    """
    def decorator(method: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(method)
        def wrapper(self: CanvasSession, *args, **kwargs):
            try:
                result = method(self, *args, **kwargs)
            except CanvasError as e:
                logger.warning("%s ignored: %s", method.__name__, e)
                return default
            self._notify()
            return result
        return wrapper
    return decorator


@dataclass(frozen=True)
class CanvasSnapshot:
    """Deep copy of the canvas state, safe to hand to asynchronous consumers."""
    nodes: tuple[Node, ...]
    connections: tuple[Connection, ...]
    groups: tuple[Group, ...]
    transform: CanvasTransform
    selected_node_ids: frozenset[NodeId]
    selected_connection_id: ConnectionId | None


class CanvasSession:
    """
    One canvas and everything needed to interact with it.

    Attributes:
        settings: Engine settings
        graph: Node/connection/group store
        selection: Current focus
        connection_manager: Connect gesture, removal, curve hit-testing
        group_manager: Grouping, colors, toolbar placement
        minimap: Overview layout and navigation
        interaction: Drag-mode state machine
        viewport: Screen size of the canvas widget
        clipboard: Last copied nodes, if any
    """

    def __init__(
        self,
        settings: CanvasSettings | None = None,
        viewport: Size2D | None = None,
    ):
        self.settings = settings or CanvasSettings()
        self.graph = NodeGraph()
        self.selection = Selection()
        self.connection_manager = ConnectionManager(self.graph, self.selection, self.settings)
        self.group_manager = GroupManager(self.graph, self.selection, self.settings)
        self.minimap = Minimap(self.settings)
        self.interaction = InteractionController(self)
        self.viewport = viewport or Size2D()
        self.clipboard: ClipboardContents | None = None
        self._transform = CanvasTransform()
        self._listeners: list[Listener] = []

    # --- Observers ---

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener(session)`` after every mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # --- Read-only state ---

    @property
    def transform(self) -> CanvasTransform:
        return self._transform

    @transform.setter
    def transform(self, value: CanvasTransform) -> None:
        if not all(math.isfinite(v) for v in (value.x, value.y, value.k)) or value.k <= 0:
            raise DegenerateGeometry(f"Refusing non-finite transform {value}")
        k = self.settings.clamp_zoom(value.k)
        self._transform = value if k == value.k else CanvasTransform(value.x, value.y, k)

    @property
    def nodes(self) -> list[Node]:
        """Nodes in draw order (bottom first)."""
        return list(self.graph.nodes.values())

    @property
    def connections(self) -> list[Connection]:
        """Renderable connections; dangling ones are excluded."""
        return self.graph.renderable_connections()

    @property
    def groups(self) -> list[Group]:
        return self.graph.groups

    @property
    def drag_state(self) -> DragState:
        return self.interaction.drag_state

    @property
    def quick_add_request(self) -> QuickAddRequest | None:
        return self.interaction.quick_add

    def visible_nodes(self, buffer_px: float | None = None) -> list[Node]:
        """Nodes intersecting the viewport grown by a screen-space buffer."""
        if self.viewport.is_empty:
            return self.nodes
        buffer_px = self.settings.cull_buffer_px if buffer_px is None else buffer_px
        view = self._transform.visible_world_rect(self.viewport).inflated(
            buffer_px / self._transform.k
        )
        return [n for n in self.nodes if n.bounds.intersects(view)]

    def toolbar(self) -> ToolbarPlacement | None:
        """Floating group toolbar for the current selection and transform."""
        return self.group_manager.toolbar_placement(self._transform)

    def minimap_layout(self) -> MinimapLayout:
        return self.minimap.layout(self.graph.nodes.values(), self._transform, self.viewport)

    def snapshot(self) -> CanvasSnapshot:
        """Deep copy of the current state."""
        return CanvasSnapshot(
            nodes=tuple(copy.deepcopy(self.nodes)),
            connections=tuple(self.graph.connections),
            groups=tuple(copy.deepcopy(self.graph.groups)),
            transform=self._transform,
            selected_node_ids=self.selection.node_ids,
            selected_connection_id=self.selection.connection_id,
        )

    # --- Input ---

    def handle_pointer(self, event: PointerEvent) -> EventOutcome:
        """Feed a normalized pointer event to the drag-mode state machine."""
        try:
            outcome = self.interaction.handle(event)
        except CanvasError as e:
            logger.warning("Pointer %s aborted: %s", event.phase.name, e)
            self.interaction.cancel()
            outcome = EventOutcome.of(False)
        self._notify()
        return outcome

    @_lenient(default=EventOutcome.of(False))
    def wheel(self, position: Point2D, delta_y: float) -> EventOutcome:
        return self.interaction.wheel(position, delta_y)

    @_lenient(default=EventOutcome.of(False))
    def pinch_begin(self, center: Point2D, distance: float) -> EventOutcome:
        return self.interaction.pinch_begin(center, distance)

    @_lenient(default=EventOutcome.of(False))
    def pinch_update(self, distance: float) -> EventOutcome:
        return self.interaction.pinch_update(distance)

    @_lenient(default=EventOutcome.of(False))
    def pinch_end(self) -> EventOutcome:
        return self.interaction.pinch_end()

    @_lenient(default=False)
    def key_press(self, key: str, modifiers: Modifiers = Modifiers.NONE) -> bool:
        return self.interaction.key_press(key, modifiers)

    # --- Viewport ---

    @_lenient()
    def set_viewport(self, viewport: Size2D) -> None:
        self.viewport = viewport

    @_lenient()
    def set_transform(self, transform: CanvasTransform) -> CanvasTransform:
        self.transform = transform
        return self._transform

    @_lenient()
    def zoom_at(self, factor: float, pivot: Point2D | None = None) -> CanvasTransform:
        self.transform = zoom_at(self._transform, factor, pivot or self._viewport_center(), self.settings)
        return self._transform

    @_lenient()
    def zoom_to(self, k: float, pivot: Point2D | None = None) -> CanvasTransform:
        self.transform = zoom_to(self._transform, k, pivot or self._viewport_center(), self.settings)
        return self._transform

    @_lenient()
    def reset_zoom(self) -> CanvasTransform:
        self.transform = reset_zoom(self._transform, self.viewport, self.settings)
        return self._transform

    @_lenient()
    def navigate(self, minimap_point: Point2D) -> CanvasTransform:
        """Recenter on the world point under a minimap click, keeping the zoom."""
        layout = self.minimap_layout()
        self.transform = self.minimap.navigate(minimap_point, layout, self._transform, self.viewport)
        return self._transform

    @_lenient()
    def drag_minimap(
        self,
        start_transform: CanvasTransform,
        dx: float,
        dy: float,
        layout: MinimapLayout,
    ) -> CanvasTransform:
        """Move the view by dragging the minimap frame from ``start_transform``."""
        self.transform = self.minimap.drag_viewport(start_transform, dx, dy, layout)
        return self._transform

    def _viewport_center(self) -> Point2D:
        return Point2D(self.viewport.width / 2, self.viewport.height / 2)

    # --- Nodes ---

    @_lenient()
    def add_node(self, kind: NodeKind, world_position: Point2D | None = None) -> Node:
        """
        Add a node of ``kind`` with its top-left at ``world_position``.

        Without a position the node is centered in the viewport.
        """
        node = Node.create(kind, world_position)
        if world_position is None:
            center = self._transform.screen_to_world(self._viewport_center())
            node.x = center.x - node.width / 2
            node.y = center.y - node.height / 2
        self.graph.add_node(node)
        logger.info("Added %s node %s", kind.value, node.id)
        return node

    @_lenient()
    def remove_node(self, node_id: NodeId) -> Node:
        self.graph.require_node(node_id)
        return self._remove_node(node_id)

    def _remove_node(self, node_id: NodeId) -> Node | None:
        incident = [c.id for c in self.graph.incident_connections(node_id)]
        node = self.graph.remove_node(node_id)
        self.selection.discard_node(node_id)
        for conn_id in incident:
            self.selection.discard_connection(conn_id)
            if self.connection_manager.hovered_id == conn_id:
                self.connection_manager.hovered_id = None
        return node

    @_lenient(default=False)
    def delete_selection(self) -> bool:
        """Delete the focused connection, or else every selected node."""
        conn_id = self.selection.connection_id
        if conn_id is not None:
            self.connection_manager.remove_connection(conn_id)
            return True
        selected = list(self.selection.node_ids)
        if not selected:
            return False
        for node_id in selected:
            self._remove_node(node_id)
        self.selection.clear()
        logger.info("Deleted %d node(s)", len(selected))
        return True

    @_lenient(default=False)
    def focus_selection(self) -> bool:
        """Center the selection in the viewport at 100% zoom."""
        bounds = self.graph.nodes_bounds(self.selection.node_ids)
        if bounds is None:
            raise InvalidTransition("Nothing selected to focus")
        self.transform = centered_on(bounds.center, self.viewport, 1.0)
        return True

    # --- Connections ---

    @_lenient()
    def remove_connection(self, connection_id: ConnectionId) -> Connection | None:
        return self.connection_manager.remove_connection(connection_id)

    @_lenient(default=False)
    def select_connection(self, connection_id: ConnectionId) -> bool:
        self.graph.require_connection(connection_id)
        return self.connection_manager.select_connection(connection_id)

    @_lenient()
    def connect(self, source_id: NodeId, target_id: NodeId) -> Connection | None:
        """Run the whole connect protocol in one call."""
        self.graph.require_node(source_id)
        self.connection_manager.start_connection(source_id)
        return self.connection_manager.complete_connection(target_id)

    @_lenient()
    def quick_add(self, kind: NodeKind) -> Node | None:
        """
        Answer a pending quick-add request.

        The new node is placed above the drop point and connected from
        the request's source node.
        """
        request = self.interaction.quick_add
        if request is None:
            raise InvalidTransition("No pending quick-add request")
        if not kind_spec(kind).accepts_input:
            raise InvalidTransition(f"{kind.value} nodes cannot take the pending connection")
        self.interaction.quick_add = None

        position = Point2D(request.world.x, request.world.y - self.settings.quick_add_offset)
        node = Node.create(kind, position)
        self.graph.add_node(node)
        if request.source_id in self.graph:
            self.connection_manager.start_connection(request.source_id)
            self.connection_manager.complete_connection(node.id)
        return node

    # --- Selection and grouping ---

    @_lenient()
    def select_nodes(self, node_ids: Iterable[NodeId], additive: bool = False) -> None:
        self.selection.select_nodes((nid for nid in node_ids if nid in self.graph), additive)

    @_lenient()
    def clear_selection(self) -> None:
        self.selection.clear()

    @_lenient()
    def group_selection(self) -> Group:
        group = self.group_manager.group(self.selection.node_ids)
        self.selection.select_nodes(group.member_ids)
        return group

    @_lenient()
    def group(self, node_ids: Iterable[NodeId]) -> Group:
        return self.group_manager.group(node_ids)

    @_lenient()
    def ungroup(self, group_id: GroupId) -> Group:
        group = self.group_manager.ungroup(group_id)
        if group.member_ids == self.selection.node_ids:
            self.selection.clear()
        return group

    @_lenient()
    def ungroup_selection(self) -> Group:
        group = self.group_manager.selected_group()
        if group is None:
            raise InvalidTransition("Selection is not exactly one group")
        self.group_manager.ungroup(group.id)
        self.selection.clear()
        return group

    @_lenient(default=False)
    def set_group_color(self, group_id: GroupId, color: str) -> bool:
        self.group_manager.set_group_color(group_id, color)
        return True

    @_lenient(default=False)
    def align(self, direction: AlignDirection) -> bool:
        """Align two or more selected nodes; group frames are left as they are."""
        nodes = [n for n in self.nodes if n.id in self.selection]
        if len(nodes) < 2:
            raise InvalidTransition("Align needs at least two selected nodes")
        align_nodes(nodes, direction, self.settings)
        logger.info("Aligned %d node(s) %s", len(nodes), direction.value)
        return True

    # --- Clipboard ---

    @_lenient(default=0)
    def copy_selection(self) -> int:
        """Copy the selected nodes and the connections between them."""
        contents = ClipboardContents.capture(self.graph, self.selection.node_ids)
        if not contents:
            raise InvalidTransition("Nothing selected to copy")
        self.clipboard = contents
        logger.info("Copied %d node(s)", len(contents.nodes))
        return len(contents.nodes)

    @_lenient()
    def paste(self, world_point: Point2D | None = None) -> list[Node]:
        """
        Paste the clipboard with its top-left corner at ``world_point``.

        Without a point the last pointer position is used, or the viewport
        center if the pointer was never seen. The pasted nodes become the
        selection.
        """
        if not self.clipboard:
            raise InvalidTransition("Clipboard is empty")
        if world_point is None:
            screen = self.interaction.last_pointer or self._viewport_center()
            world_point = self._transform.screen_to_world(screen)

        nodes, connections = instantiate(self.clipboard, world_point)
        for node in nodes:
            self.graph.add_node(node)
        for conn in connections:
            self.graph.add_connection(conn)
        self.selection.select_nodes(n.id for n in nodes)
        logger.info("Pasted %d node(s)", len(nodes))
        return nodes

    # --- Workflow ---

    @_lenient()
    def confirm_new(
        self,
        should_save: bool,
        save: Callable[[CanvasSnapshot], None] | None = None,
    ) -> None:
        """
        Start a new, empty workflow.

        When ``should_save`` is set, ``save`` receives a snapshot of the
        current state before anything is cleared.
        """
        if should_save and save is not None:
            save(self.snapshot())
        self.interaction.cancel()
        self.graph.clear()
        self.selection.clear()
        self.connection_manager.hovered_id = None
        self.group_manager.reset()
        self._transform = CanvasTransform()
        logger.info("Canvas cleared for a new workflow")

    @_lenient()
    def restore(self, snapshot: CanvasSnapshot) -> None:
        """Replace the canvas contents with a snapshot (dangling edges dropped)."""
        self.interaction.cancel()
        self.graph.load(
            copy.deepcopy(snapshot.nodes),
            snapshot.connections,
            copy.deepcopy(snapshot.groups),
        )
        self.graph.collect_garbage()
        self.transform = snapshot.transform
        self.selection.clear()
        self.selection.select_nodes(nid for nid in snapshot.selected_node_ids if nid in self.graph)
