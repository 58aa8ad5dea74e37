"""
Connection Manager - Edge creation protocol, curve geometry, hit-testing.

This module provides:
- ConnectionCurve: The cubic curve a connection is drawn as
- ConnectionManager: Owns the connect gesture and connection removal

Every connection is a cubic curve from the source's right-edge midpoint
to the target's left-edge midpoint. The horizontal control-point offset
is ``clamp(|dx| / 2, 24, 80)`` so curvature stays stable regardless of
node spacing. Hit-testing uses a wide invisible stroke, independent of
the thin visible one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from gen_canvas.core.drag_state import DragMode, DragState
from gen_canvas.core.geometry import Point2D
from gen_canvas.core.graph import Connection, ConnectionId, Node, NodeGraph, NodeId
from gen_canvas.core.selection import Selection
from gen_canvas.core.settings import CanvasSettings, DuplicatePolicy


logger = logging.getLogger(__name__)


def control_offset(dx: float, settings: CanvasSettings) -> float:
    """Horizontal control-point offset for a curve spanning ``dx``."""
    return min(settings.control_point_max, max(settings.control_point_min, abs(dx) / 2))


@dataclass(frozen=True)
class ConnectionCurve:
    """Cubic curve geometry of one connection, in world space."""
    start: Point2D
    control1: Point2D
    control2: Point2D
    end: Point2D
    offset: float

    @classmethod
    def between(cls, source: Node, target: Node, settings: CanvasSettings) -> ConnectionCurve:
        """Curve from ``source``'s output anchor to ``target``'s input anchor."""
        start = source.output_anchor
        end = target.input_anchor
        cp = control_offset(end.x - start.x, settings)
        return cls(
            start=start,
            control1=Point2D(start.x + cp, start.y),
            control2=Point2D(end.x - cp, end.y),
            end=end,
            offset=cp,
        )

    @property
    def midpoint(self) -> Point2D:
        """Where the disconnect affordance sits."""
        return Point2D((self.start.x + self.end.x) / 2, (self.start.y + self.end.y) / 2)

    def sample(self, count: int = 48) -> NDArray[np.float64]:
        """Sample ``count`` points (inclusive of both ends) as an (N, 2) array."""
        t = np.linspace(0.0, 1.0, max(count, 2))[:, None]
        p0 = np.array([self.start.x, self.start.y])
        p1 = np.array([self.control1.x, self.control1.y])
        p2 = np.array([self.control2.x, self.control2.y])
        p3 = np.array([self.end.x, self.end.y])
        u = 1.0 - t
        return u**3 * p0 + 3 * u**2 * t * p1 + 3 * u * t**2 * p2 + t**3 * p3

    def distance_to(self, point: Point2D, samples: int = 48) -> float:
        """Approximate shortest distance from ``point`` to the curve."""
        pts = self.sample(samples)
        a = pts[:-1]
        b = pts[1:]
        p = np.array([point.x, point.y])

        ab = b - a
        length_sq = np.einsum("ij,ij->i", ab, ab)
        # Zero-length segments project onto their start point
        safe = np.where(length_sq > 0, length_sq, 1.0)
        proj = np.clip(np.einsum("ij,ij->i", p - a, ab) / safe, 0.0, 1.0)
        proj = np.where(length_sq > 0, proj, 0.0)
        closest = a + proj[:, None] * ab
        return float(np.min(np.hypot(*(closest - p).T)))


class ConnectionManager:
    """
    Owns the connect gesture and mediates connection removal/selection.

    The gesture lives in ``drag_state`` between ``start_connection`` and
    ``complete_connection``/``cancel_connection``; both exits leave the
    manager idle.
    """

    def __init__(self, graph: NodeGraph, selection: Selection, settings: CanvasSettings):
        self._graph = graph
        self._selection = selection
        self._settings = settings
        self._drag = DragState.idle()
        self.hovered_id: ConnectionId | None = None

    @property
    def drag_state(self) -> DragState:
        return self._drag

    @property
    def is_connecting(self) -> bool:
        return self._drag.mode is DragMode.CONNECT

    # --- Connect gesture ---

    def start_connection(self, source_id: NodeId, world_point: Point2D | None = None) -> DragState:
        """Begin drawing a connection from a node's output anchor."""
        source = self._graph.get_node(source_id)
        if source is None:
            logger.warning("Ignoring connection start from unknown node %s", source_id)
            self._drag = DragState.idle()
            return self._drag

        self._drag = DragState(
            mode=DragMode.CONNECT,
            source_node_id=source_id,
            temp_point=world_point or source.output_anchor,
        )
        logger.debug("Connect started from %s", source_id)
        return self._drag

    def update_temp_endpoint(self, world_point: Point2D) -> None:
        """Record the live endpoint of the dashed preview edge."""
        if self.is_connecting:
            self._drag.temp_point = world_point

    def preview_segment(self) -> tuple[Point2D, Point2D] | None:
        """Straight preview from the source's output anchor to the pointer."""
        if not self.is_connecting or self._drag.temp_point is None:
            return None
        source = self._graph.get_node(self._drag.source_node_id)
        if source is None:
            return None
        return source.output_anchor, self._drag.temp_point

    def complete_connection(self, target_id: NodeId | None) -> Connection | None:
        """
        Finish the connect gesture on ``target_id``.

        Aborts (returning None) for self-loops, drops on empty canvas
        (``target_id`` None), vanished endpoints, and targets that don't
        accept input. An identical (source, target) pair follows the
        duplicate policy. The manager is idle afterwards in every case.
        """
        source_id = self._drag.source_node_id if self.is_connecting else None
        self._drag = DragState.idle()

        if source_id is None or target_id is None:
            return None
        if source_id == target_id:
            logger.debug("Rejected self-loop on %s", source_id)
            return None
        if source_id not in self._graph:
            return None
        target = self._graph.get_node(target_id)
        if target is None or not target.accepts_input:
            return None

        existing = self._graph.find_connections(source_id, target_id)
        policy = self._settings.duplicate_policy
        if existing and policy is DuplicatePolicy.REJECT:
            logger.debug("Duplicate connection %s -> %s rejected", source_id, target_id)
            return None
        if existing and policy is DuplicatePolicy.REPLACE:
            for conn in existing:
                self.remove_connection(conn.id)

        conn = Connection.create(source_id, target_id)
        self._graph.add_connection(conn)
        logger.info("Connected %s -> %s (%s)", source_id, target_id, conn.id)
        return conn

    def cancel_connection(self) -> None:
        """Abort the connect gesture without touching the graph."""
        self._drag = DragState.idle()

    # --- Removal and focus ---

    def remove_connection(self, connection_id: ConnectionId) -> Connection | None:
        """Delete a connection by id. Unknown ids are a no-op."""
        removed = self._graph.remove_connection(connection_id)
        self._selection.discard_connection(connection_id)
        if self.hovered_id == connection_id:
            self.hovered_id = None
        if removed is not None:
            logger.info("Removed connection %s", connection_id)
        return removed

    def select_connection(self, connection_id: ConnectionId) -> bool:
        """Focus a connection, clearing the node selection."""
        if self._graph.get_connection(connection_id) is None:
            return False
        self._selection.select_connection(connection_id)
        return True

    def affordance_visible(self, connection_id: ConnectionId) -> bool:
        """The disconnect button shows while hovered or selected."""
        return connection_id in (self.hovered_id, self._selection.connection_id)

    # --- Geometry ---

    def curve(self, connection: Connection) -> ConnectionCurve | None:
        """Curve of a connection, or None if it is dangling."""
        source = self._graph.get_node(connection.source_id)
        target = self._graph.get_node(connection.target_id)
        if source is None or target is None:
            return None
        return ConnectionCurve.between(source, target, self._settings)

    def curves(self) -> list[tuple[Connection, ConnectionCurve]]:
        """Renderable connections with their curves, in draw order."""
        result = []
        for conn in self._graph.renderable_connections():
            curve = self.curve(conn)
            if curve is not None:
                result.append((conn, curve))
        return result

    def hit_test(self, world_point: Point2D, zoom: float) -> Connection | None:
        """
        Connection under a world point, using the invisible hit stroke.

        The stroke width is in screen pixels, so the world tolerance
        shrinks as the canvas zooms in.
        """
        tolerance = self._settings.hit_stroke_px / 2 / zoom
        best: tuple[float, Connection] | None = None
        for conn, curve in self.curves():
            distance = curve.distance_to(world_point, self._settings.curve_samples)
            if distance <= tolerance and (best is None or distance < best[0]):
                best = (distance, conn)
        return best[1] if best else None

    def disconnect_button_at(self, world_point: Point2D, zoom: float) -> Connection | None:
        """Visible disconnect button under a world point, if any."""
        radius = self._settings.disconnect_button_px / 2 / zoom
        for conn, curve in self.curves():
            if not self.affordance_visible(conn.id):
                continue
            if curve.midpoint.distance_to(world_point) <= radius:
                return conn
        return None
