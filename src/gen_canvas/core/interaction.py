"""
Interaction Controller - Drag-mode state machine for pointer gestures.

This module defines:
- PointerEvent: one normalized event for mouse, touch and pen input
- HitTarget: what lies under a screen point
- InteractionController: interprets gestures as pan, move, connect,
  marquee-select or group-resize

Host toolkits translate their native events into PointerEvent and feed
them to ``InteractionController.handle``. Whatever mode a gesture
entered, it ends on release (UP), on leaving the canvas (LEAVE) or on an
explicit cancel (CANCEL); no mode survives a release.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import TYPE_CHECKING

from gen_canvas.core.align import AlignDirection
from gen_canvas.core.drag_state import DragMode, DragState, ResizeDirection
from gen_canvas.core.geometry import CanvasTransform, Point2D, Rect, zoom_to
from gen_canvas.core.graph import ConnectionId, GroupId, NodeId

if TYPE_CHECKING:
    from gen_canvas.core.session import CanvasSession


logger = logging.getLogger(__name__)


class PointerPhase(Enum):
    """Lifecycle stage of a pointer gesture."""
    DOWN = auto()
    MOVE = auto()
    UP = auto()
    LEAVE = auto()   # Pointer left the canvas
    CANCEL = auto()  # Explicit abort (Escape, touchcancel)


class PointerDevice(Enum):
    MOUSE = auto()
    TOUCH = auto()
    PEN = auto()


class PointerButton(Enum):
    NONE = auto()
    PRIMARY = auto()
    MIDDLE = auto()
    SECONDARY = auto()


class Modifiers(Flag):
    """Keyboard state accompanying a pointer event."""
    NONE = 0
    SHIFT = auto()
    CTRL = auto()
    ALT = auto()
    SPACE = auto()


class HitKind(Enum):
    """Kinds of things a pointer can land on, in hit-test priority order."""
    DISCONNECT = auto()
    OUTPUT_ANCHOR = auto()
    RESIZE_HANDLE = auto()
    INPUT_ANCHOR = auto()
    NODE = auto()
    GROUP_FRAME = auto()
    CONNECTION = auto()
    CANVAS = auto()


@dataclass(frozen=True)
class HitTarget:
    """Result of hit-testing a screen point."""
    kind: HitKind
    node_id: NodeId | None = None
    group_id: GroupId | None = None
    connection_id: ConnectionId | None = None
    direction: ResizeDirection | None = None


CANVAS_HIT = HitTarget(HitKind.CANVAS)

_ALIGN_KEYS = {
    "arrowup": AlignDirection.UP,
    "arrowdown": AlignDirection.DOWN,
    "arrowleft": AlignDirection.LEFT,
    "arrowright": AlignDirection.RIGHT,
}


@dataclass(frozen=True)
class PointerEvent:
    """
    Device-independent pointer event.

    ``position`` is in screen space. ``target`` may be supplied by hosts
    that already know what was hit; otherwise the controller hit-tests.
    """
    phase: PointerPhase
    position: Point2D
    device: PointerDevice = PointerDevice.MOUSE
    button: PointerButton = PointerButton.PRIMARY
    buttons_down: bool = True
    modifiers: Modifiers = Modifiers.NONE
    target: HitTarget | None = None


@dataclass(frozen=True)
class EventOutcome:
    """
    How the host should treat the native event.

    Derived only from whether the engine consumed the event, so mouse
    and touch input get identical suppression.
    """
    handled: bool
    prevent_default: bool
    stop_propagation: bool

    @classmethod
    def of(cls, handled: bool) -> EventOutcome:
        return cls(handled=handled, prevent_default=handled, stop_propagation=handled)


@dataclass(frozen=True)
class QuickAddRequest:
    """A connection dropped on empty canvas, waiting for a node to be picked."""
    source_id: NodeId
    screen: Point2D
    world: Point2D


@dataclass
class _PinchState:
    center: Point2D
    distance: float
    transform: CanvasTransform


class InteractionController:
    """
    Drag-mode state machine.

    Reads and writes the session's transform and graph; connection
    gestures go through the session's ConnectionManager and group
    resizing through its GroupManager.
    """

    def __init__(self, session: CanvasSession):
        self._session = session
        self._drag = DragState.idle()
        self._pinch: _PinchState | None = None
        self.quick_add: QuickAddRequest | None = None
        self.last_pointer: Point2D | None = None

    @property
    def drag_state(self) -> DragState:
        if self._drag.mode is DragMode.CONNECT:
            return self._session.connection_manager.drag_state
        return self._drag

    @property
    def mode(self) -> DragMode:
        return self.drag_state.mode

    # --- Hit-testing ---

    def hit_test(self, screen: Point2D) -> HitTarget:
        """What lies under a screen point, highest priority first."""
        session = self._session
        t = session.transform
        settings = session.settings
        world = t.screen_to_world(screen)
        graph = session.graph

        button = session.connection_manager.disconnect_button_at(world, t.k)
        if button is not None:
            return HitTarget(HitKind.DISCONNECT, connection_id=button.id)

        anchor_radius = settings.anchor_radius_px / t.k
        nodes_top_first = list(graph.iter_nodes_topmost_first())
        for node in nodes_top_first:
            if node.output_anchor.distance_to(world) <= anchor_radius:
                return HitTarget(HitKind.OUTPUT_ANCHOR, node_id=node.id)

        handle_radius = settings.resize_handle_px / t.k
        for group in reversed(graph.groups):
            b = group.bounds
            handles = (
                (ResizeDirection.SOUTH_EAST, Point2D(b.right, b.bottom)),
                (ResizeDirection.EAST, Point2D(b.right, b.center.y)),
                (ResizeDirection.WEST, Point2D(b.left, b.center.y)),
            )
            for direction, point in handles:
                if point.distance_to(world) <= handle_radius:
                    return HitTarget(HitKind.RESIZE_HANDLE, group_id=group.id, direction=direction)

        for node in nodes_top_first:
            if node.accepts_input and node.input_anchor.distance_to(world) <= anchor_radius:
                return HitTarget(HitKind.INPUT_ANCHOR, node_id=node.id)

        for node in nodes_top_first:
            if node.bounds.contains(world):
                return HitTarget(HitKind.NODE, node_id=node.id)

        for group in reversed(graph.groups):
            if group.bounds.contains(world):
                return HitTarget(HitKind.GROUP_FRAME, group_id=group.id)

        conn = session.connection_manager.hit_test(world, t.k)
        if conn is not None:
            return HitTarget(HitKind.CONNECTION, connection_id=conn.id)

        return CANVAS_HIT

    # --- Pointer dispatch ---

    def handle(self, event: PointerEvent) -> EventOutcome:
        """Feed one normalized pointer event through the state machine."""
        if event.phase in (PointerPhase.DOWN, PointerPhase.MOVE, PointerPhase.UP):
            self.last_pointer = event.position
        if event.phase is PointerPhase.DOWN:
            return EventOutcome.of(self._on_down(event))
        if event.phase is PointerPhase.MOVE:
            return EventOutcome.of(self._on_move(event))
        if event.phase is PointerPhase.UP:
            return EventOutcome.of(self._on_up(event))
        if event.phase is PointerPhase.LEAVE:
            return EventOutcome.of(self._end_gesture(commit=True))
        return EventOutcome.of(self.cancel())

    def _on_down(self, event: PointerEvent) -> bool:
        if self.mode is not DragMode.IDLE:
            # A new press while a gesture is live: finish the old one first
            self._end_gesture(commit=True)
        self.quick_add = None

        target = event.target or self.hit_test(event.position)
        session = self._session
        selection = session.selection
        additive = Modifiers.SHIFT in event.modifiers
        logger.debug("Pointer down on %s (%s)", target.kind.name, event.device.name)

        if target.kind is HitKind.DISCONNECT:
            session.connection_manager.remove_connection(target.connection_id)
            return True

        if target.kind is HitKind.OUTPUT_ANCHOR:
            selection.discard_connection(selection.connection_id)
            world = session.transform.screen_to_world(event.position)
            state = session.connection_manager.start_connection(target.node_id, world)
            self._drag = DragState(mode=state.mode)
            return state.mode is DragMode.CONNECT

        if target.kind is HitKind.RESIZE_HANDLE:
            group = session.graph.require_group(target.group_id)
            selection.select_nodes(group.member_ids)
            self._drag = DragState(
                mode=DragMode.RESIZE_GROUP,
                start_world=session.transform.screen_to_world(event.position),
                resize_group_id=group.id,
                resize_direction=target.direction,
                start_group_bounds={group.id: group.bounds},
            )
            return True

        if target.kind in (HitKind.NODE, HitKind.INPUT_ANCHOR):
            self._select_for_press(target.node_id, additive)
            self._begin_move(event.position)
            return True

        if target.kind is HitKind.GROUP_FRAME:
            group = session.graph.require_group(target.group_id)
            selection.select_nodes(group.member_ids, additive=additive)
            self._begin_move(event.position)
            return True

        if target.kind is HitKind.CONNECTION:
            session.connection_manager.select_connection(target.connection_id)
            return True

        return self._begin_canvas_drag(event, additive)

    def _select_for_press(self, node_id: NodeId, additive: bool) -> None:
        session = self._session
        selection = session.selection
        group = session.graph.group_of(node_id)
        members = group.member_ids if group is not None else frozenset({node_id})

        if additive:
            if node_id in selection:
                for nid in members:
                    selection.discard_node(nid)
            else:
                selection.select_nodes(members, additive=True)
        elif node_id not in selection:
            selection.select_nodes(members)
        else:
            # Keep the multi-selection so it can be dragged together
            selection.discard_connection(selection.connection_id)

    def _begin_move(self, screen: Point2D) -> None:
        session = self._session
        graph = session.graph
        moving = session.group_manager.expand_to_groups(session.selection.node_ids)
        groups = session.group_manager.groups_of(moving)
        self._drag = DragState(
            mode=DragMode.MOVE_NODE,
            start_world=session.transform.screen_to_world(screen),
            start_positions={
                nid: Point2D(graph.get_node(nid).x, graph.get_node(nid).y)
                for nid in moving if nid in graph
            },
            start_group_bounds={g.id: g.bounds for g in groups},
        )
        graph.bring_to_front(moving)

    def _begin_canvas_drag(self, event: PointerEvent, additive: bool) -> bool:
        session = self._session
        settings = session.settings
        selection = session.selection

        if event.device is PointerDevice.TOUCH or event.button is PointerButton.MIDDLE:
            marquee = False
        elif Modifiers.SPACE in event.modifiers:
            marquee = False
        elif settings.empty_drag_selects:
            marquee = True
        else:
            marquee = additive

        if not additive:
            selection.clear()
        else:
            selection.discard_connection(selection.connection_id)

        if marquee:
            world = session.transform.screen_to_world(event.position)
            self._drag = DragState(
                mode=DragMode.SELECT_MARQUEE,
                marquee_start=world,
                marquee_end=world,
                marquee_additive=additive,
            )
        else:
            self._drag = DragState(
                mode=DragMode.PAN,
                last_screen=event.position,
                start_transform=session.transform,
            )
        logger.debug("Canvas drag started in %s", self._drag.mode.name)
        return True

    def _on_move(self, event: PointerEvent) -> bool:
        session = self._session
        mode = self.mode

        if mode is DragMode.IDLE:
            target = event.target or self.hit_test(event.position)
            hovered = target.connection_id if target.kind in (
                HitKind.CONNECTION, HitKind.DISCONNECT
            ) else None
            changed = hovered != session.connection_manager.hovered_id
            session.connection_manager.hovered_id = hovered
            return changed

        if not event.buttons_down:
            # Release happened somewhere we never heard about
            logger.debug("Ending stuck %s gesture", mode.name)
            return self._end_gesture(commit=True)

        world = session.transform.screen_to_world(event.position)
        drag = self._drag

        # Deltas are measured against the current transform; the zoom may
        # change mid-gesture
        if mode is DragMode.PAN:
            dx = event.position.x - drag.last_screen.x
            dy = event.position.y - drag.last_screen.y
            drag.last_screen = event.position
            session.transform = session.transform.panned(dx, dy)
        elif mode is DragMode.MOVE_NODE:
            self._apply_move(world.x - drag.start_world.x, world.y - drag.start_world.y)
        elif mode is DragMode.CONNECT:
            session.connection_manager.update_temp_endpoint(world)
        elif mode is DragMode.SELECT_MARQUEE:
            drag.marquee_end = world
        elif mode is DragMode.RESIZE_GROUP:
            session.group_manager.resize(
                drag.resize_group_id,
                drag.start_group_bounds[drag.resize_group_id],
                drag.resize_direction,
                world.x - drag.start_world.x,
                world.y - drag.start_world.y,
            )
        return True

    def _apply_move(self, dx: float, dy: float) -> None:
        graph = self._session.graph
        for nid, start in self._drag.start_positions.items():
            node = graph.get_node(nid)
            if node is not None:
                node.x = start.x + dx
                node.y = start.y + dy
        for gid, start_bounds in self._drag.start_group_bounds.items():
            group = graph.get_group(gid)
            if group is not None:
                group.bounds = start_bounds.translated(dx, dy)

    def _on_up(self, event: PointerEvent) -> bool:
        mode = self.mode
        if mode is DragMode.IDLE:
            return False

        session = self._session
        if mode is DragMode.CONNECT:
            target = event.target or self.hit_test(event.position)
            source_id = session.connection_manager.drag_state.source_node_id
            if target.node_id is not None and target.kind in (
                HitKind.NODE, HitKind.INPUT_ANCHOR, HitKind.OUTPUT_ANCHOR
            ):
                session.connection_manager.complete_connection(target.node_id)
            else:
                session.connection_manager.complete_connection(None)
                if target.kind is HitKind.CANVAS and source_id is not None:
                    self.quick_add = QuickAddRequest(
                        source_id=source_id,
                        screen=event.position,
                        world=session.transform.screen_to_world(event.position),
                    )
            self._finish()
            return True

        if mode is DragMode.SELECT_MARQUEE:
            self._drag.marquee_end = session.transform.screen_to_world(event.position)
            self._select_marquee(self._drag.marquee_rect, self._drag.marquee_additive)

        self._finish()
        return True

    def _select_marquee(self, rect: Rect | None, additive: bool) -> None:
        if rect is None:
            return
        hits = [n.id for n in self._session.graph.nodes.values() if n.bounds.intersects(rect)]
        self._session.selection.select_nodes(hits, additive=additive)

    # --- Ending gestures ---

    def _end_gesture(self, commit: bool) -> bool:
        """
        End whatever gesture is active without a drop target.

        With ``commit`` pan/move/resize keep their effect; connect and
        marquee are always discarded.
        """
        mode = self.mode
        if mode is DragMode.IDLE:
            return False
        if mode is DragMode.CONNECT:
            self._session.connection_manager.cancel_connection()
        elif not commit:
            self._revert()
        self._finish()
        return True

    def cancel(self) -> bool:
        """Explicit cancel: revert the gesture and drop temporary state."""
        had_quick_add = self.quick_add is not None
        self.quick_add = None
        self._pinch = None
        return self._end_gesture(commit=False) or had_quick_add

    def _revert(self) -> None:
        drag = self._drag
        session = self._session
        if drag.mode is DragMode.PAN and drag.start_transform is not None:
            session.transform = drag.start_transform
        elif drag.mode in (DragMode.MOVE_NODE, DragMode.RESIZE_GROUP):
            self._apply_move(0.0, 0.0)
        logger.debug("Reverted %s gesture", drag.mode.name)

    def _finish(self) -> None:
        logger.debug("Gesture %s ended", self.mode.name)
        self._drag = DragState.idle()
        self._session.graph.collect_garbage()

    # --- Wheel and pinch ---

    def wheel(self, position: Point2D, delta_y: float) -> EventOutcome:
        """Step the zoom by ``wheel_zoom_step`` around the pointer."""
        if delta_y == 0:
            return EventOutcome.of(False)
        session = self._session
        direction = -1 if delta_y > 0 else 1
        t = session.transform
        session.transform = zoom_to(
            t, t.k + direction * session.settings.wheel_zoom_step, position, session.settings
        )
        return EventOutcome.of(True)

    def pinch_begin(self, center: Point2D, distance: float) -> EventOutcome:
        """Two fingers down: any single-finger gesture gives way to the pinch."""
        self._end_gesture(commit=True)
        self._pinch = _PinchState(center, distance, self._session.transform)
        return EventOutcome.of(True)

    def pinch_update(self, distance: float) -> EventOutcome:
        pinch = self._pinch
        if pinch is None or pinch.distance <= 0:
            return EventOutcome.of(False)
        session = self._session
        k = pinch.transform.k * distance / pinch.distance
        session.transform = zoom_to(pinch.transform, k, pinch.center, session.settings)
        return EventOutcome.of(True)

    def pinch_end(self) -> EventOutcome:
        handled = self._pinch is not None
        self._pinch = None
        return EventOutcome.of(handled)

    @property
    def is_pinching(self) -> bool:
        return self._pinch is not None

    # --- Keyboard ---

    def key_press(self, key: str, modifiers: Modifiers = Modifiers.NONE) -> bool:
        """
        Keyboard shortcuts.

        Delete/Backspace delete the focus, Escape cancels, Ctrl+G groups,
        Ctrl+Shift+G ungroups, Ctrl+C/Ctrl+V copy and paste at the pointer,
        Ctrl+Arrow aligns the selection, F frames the selection.
        """
        session = self._session
        key = key.lower()
        ctrl = Modifiers.CTRL in modifiers

        if key == "escape":
            return self.cancel()
        if key in ("delete", "backspace"):
            return session.delete_selection()
        if ctrl and key == "g":
            if Modifiers.SHIFT in modifiers:
                return session.ungroup_selection() is not None
            return session.group_selection() is not None
        if ctrl and key == "c":
            return session.copy_selection() > 0
        if ctrl and key == "v":
            return bool(session.paste())
        if ctrl and key in _ALIGN_KEYS:
            return session.align(_ALIGN_KEYS[key])
        if not ctrl and key == "f":
            return session.focus_selection()
        return False
