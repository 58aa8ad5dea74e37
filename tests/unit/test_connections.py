"""
Tests for the connection manager and curve geometry.
"""

import numpy as np
import pytest

from gen_canvas.core.connections import ConnectionCurve, ConnectionManager, control_offset
from gen_canvas.core.drag_state import DragMode
from gen_canvas.core.geometry import Point2D
from gen_canvas.core.graph import Connection, Node, NodeGraph, new_node_id
from gen_canvas.core.node_types import NodeKind
from gen_canvas.core.selection import Selection
from gen_canvas.core.settings import CanvasSettings, DuplicatePolicy


def box(x, y, w=100, h=50, kind=NodeKind.CREATIVE_DESC) -> Node:
    return Node(id=new_node_id(), kind=kind, x=x, y=y, width=w, height=h)


@pytest.fixture
def graph():
    return NodeGraph()


@pytest.fixture
def selection():
    return Selection()


@pytest.fixture
def pair(graph):
    a, b = box(0, 0), box(300, 0)
    graph.add_node(a)
    graph.add_node(b)
    return a, b


def make_manager(graph, selection, **overrides) -> ConnectionManager:
    return ConnectionManager(graph, selection, CanvasSettings(**overrides))


def connected(graph, selection, pair):
    manager = make_manager(graph, selection)
    manager.start_connection(pair[0].id)
    return manager, manager.complete_connection(pair[1].id)


class TestControlOffset:
    """Tests for the curve control-point clamp."""

    @pytest.mark.parametrize("dx, expected", [(0, 24), (10, 24), (-100, 50), (100, 50), (300, 80), (-5000, 80)])
    def test_clamped(self, dx, expected):
        assert control_offset(dx, CanvasSettings()) == expected


class TestConnectionCurve:
    """Tests for ConnectionCurve geometry."""

    def test_curve_between_pair(self, pair):
        a, b = pair
        curve = ConnectionCurve.between(a, b, CanvasSettings())
        assert curve.start == Point2D(100, 25)
        assert curve.end == Point2D(300, 25)
        assert curve.offset == 80
        assert curve.control1 == Point2D(180, 25)
        assert curve.control2 == Point2D(220, 25)
        assert curve.midpoint == Point2D(200, 25)

    def test_sample_includes_endpoints(self, pair):
        curve = ConnectionCurve.between(*pair, CanvasSettings())
        pts = curve.sample(16)
        assert pts.shape == (16, 2)
        np.testing.assert_allclose(pts[0], [100, 25])
        np.testing.assert_allclose(pts[-1], [300, 25])

    def test_distance_to(self, pair):
        curve = ConnectionCurve.between(*pair, CanvasSettings())
        assert curve.distance_to(Point2D(200, 35)) == pytest.approx(10)
        assert curve.distance_to(Point2D(200, 25)) == pytest.approx(0, abs=1e-9)

    def test_distance_past_the_end(self, pair):
        curve = ConnectionCurve.between(*pair, CanvasSettings())
        assert curve.distance_to(Point2D(310, 25)) == pytest.approx(10)


class TestConnectProtocol:
    """Tests for start/complete/cancel."""

    def test_connect_a_to_b(self, graph, selection, pair):
        a, b = pair
        manager = make_manager(graph, selection)

        state = manager.start_connection(a.id)
        assert state.mode is DragMode.CONNECT
        conn = manager.complete_connection(b.id)

        assert conn is not None
        assert (conn.source_id, conn.target_id) == (a.id, b.id)
        assert graph.connections == [conn]
        assert manager.curve(conn).offset == 80
        assert manager.drag_state.mode is DragMode.IDLE

    def test_self_loop_aborts(self, graph, selection, pair):
        a, _ = pair
        manager = make_manager(graph, selection)
        manager.start_connection(a.id)
        assert manager.complete_connection(a.id) is None
        assert graph.connections == []
        assert manager.drag_state.mode is DragMode.IDLE

    def test_drop_on_nothing_aborts(self, graph, selection, pair):
        manager = make_manager(graph, selection)
        manager.start_connection(pair[0].id)
        assert manager.complete_connection(None) is None
        assert not manager.is_connecting

    def test_target_vanished_mid_gesture(self, graph, selection, pair):
        a, b = pair
        manager = make_manager(graph, selection)
        manager.start_connection(a.id)
        graph.remove_node(b.id)
        assert manager.complete_connection(b.id) is None
        assert graph.connections == []

    def test_original_image_cannot_be_target(self, graph, selection, pair):
        upload = box(600, 0, kind=NodeKind.ORIGINAL_IMAGE)
        graph.add_node(upload)
        manager = make_manager(graph, selection)
        manager.start_connection(pair[0].id)
        assert manager.complete_connection(upload.id) is None

    def test_start_from_unknown_node_stays_idle(self, graph, selection):
        manager = make_manager(graph, selection)
        state = manager.start_connection(new_node_id())
        assert state.mode is DragMode.IDLE

    def test_cancel_leaves_graph_untouched(self, graph, selection, pair):
        manager = make_manager(graph, selection)
        manager.start_connection(pair[0].id)
        manager.update_temp_endpoint(Point2D(250, 80))
        assert manager.preview_segment() == (Point2D(100, 25), Point2D(250, 80))

        manager.cancel_connection()

        assert graph.connections == []
        assert manager.preview_segment() is None

    def test_complete_without_start(self, graph, selection, pair):
        manager = make_manager(graph, selection)
        assert manager.complete_connection(pair[1].id) is None


class TestDuplicatePolicy:
    """Tests for repeated (source, target) pairs."""

    def _connect_twice(self, graph, selection, pair, policy):
        a, b = pair
        manager = make_manager(graph, selection, duplicate_policy=policy)
        manager.start_connection(a.id)
        first = manager.complete_connection(b.id)
        manager.start_connection(a.id)
        second = manager.complete_connection(b.id)
        return first, second

    def test_reject(self, graph, selection, pair):
        first, second = self._connect_twice(graph, selection, pair, DuplicatePolicy.REJECT)
        assert second is None
        assert graph.connections == [first]

    def test_allow(self, graph, selection, pair):
        first, second = self._connect_twice(graph, selection, pair, DuplicatePolicy.ALLOW)
        assert len(graph.connections) == 2

    def test_replace(self, graph, selection, pair):
        first, second = self._connect_twice(graph, selection, pair, DuplicatePolicy.REPLACE)
        assert graph.connections == [second]
        assert second.id != first.id


class TestRemovalAndFocus:
    """Tests for removing and selecting connections."""

    def test_remove_is_idempotent(self, graph, selection, pair):
        manager, conn = connected(graph, selection, pair)
        manager.select_connection(conn.id)
        manager.hovered_id = conn.id

        assert manager.remove_connection(conn.id) == conn
        assert manager.remove_connection(conn.id) is None
        assert graph.connections == []
        assert selection.connection_id is None
        assert manager.hovered_id is None

    def test_select_connection_clears_nodes(self, graph, selection, pair):
        manager, conn = connected(graph, selection, pair)
        selection.select_nodes([pair[0].id])
        assert manager.select_connection(conn.id)
        assert selection.node_ids == frozenset()
        assert selection.connection_id == conn.id

    def test_select_unknown_connection(self, graph, selection):
        manager = make_manager(graph, selection)
        assert not manager.select_connection("missing")

    def test_curve_of_dangling_connection(self, graph, selection, pair):
        manager = make_manager(graph, selection)
        ghost = Connection.create(pair[0].id, new_node_id())
        assert manager.curve(ghost) is None


class TestHitTesting:
    """Tests for the invisible hit stroke and the disconnect button."""

    def test_hit_stroke_is_wider_than_visible_stroke(self, graph, selection, pair):
        manager, conn = connected(graph, selection, pair)
        # 9 px off the 2 px line still hits the 20 px stroke
        assert manager.hit_test(Point2D(200, 34), zoom=1.0) == conn
        assert manager.hit_test(Point2D(200, 40), zoom=1.0) is None

    def test_hit_tolerance_is_in_screen_pixels(self, graph, selection, pair):
        manager, conn = connected(graph, selection, pair)
        assert manager.hit_test(Point2D(200, 34), zoom=2.0) is None
        assert manager.hit_test(Point2D(200, 44), zoom=0.5) == conn

    def test_disconnect_button_only_when_visible(self, graph, selection, pair):
        manager, conn = connected(graph, selection, pair)
        assert not manager.affordance_visible(conn.id)
        assert manager.disconnect_button_at(Point2D(200, 25), zoom=1.0) is None

        manager.hovered_id = conn.id
        assert manager.affordance_visible(conn.id)
        assert manager.disconnect_button_at(Point2D(205, 25), zoom=1.0) == conn

    def test_selected_connection_shows_button(self, graph, selection, pair):
        manager, conn = connected(graph, selection, pair)
        manager.select_connection(conn.id)
        assert manager.disconnect_button_at(Point2D(200, 25), zoom=1.0) == conn
