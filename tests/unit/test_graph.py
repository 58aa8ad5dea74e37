"""
Tests for the graph module.
"""

import pytest

from gen_canvas.core.errors import InvalidReference
from gen_canvas.core.geometry import Point2D, Rect
from gen_canvas.core.graph import (
    Connection,
    Group,
    Node,
    NodeGraph,
    new_node_id,
)
from gen_canvas.core.node_types import NodeKind


def make_node(x=0.0, y=0.0, kind=NodeKind.CREATIVE_DESC) -> Node:
    return Node.create(kind, Point2D(x, y))


def make_group(*nodes: Node) -> Group:
    return Group.create([n.id for n in nodes], color="#E2E5E8", bounds=Rect(0, 0, 100, 100))


class TestNode:
    """Tests for Node dataclass."""

    def test_create_node(self):
        node = Node.create(NodeKind.TEXT_TO_IMAGE, Point2D(10, 20))
        assert node.kind is NodeKind.TEXT_TO_IMAGE
        assert (node.x, node.y) == (10, 20)
        assert (node.width, node.height) == (400, 400)
        assert node.title == "Text to Image"
        assert isinstance(node.id, str) and len(node.id) == 32

    def test_video_node_is_widescreen(self):
        node = Node.create(NodeKind.TEXT_TO_VIDEO)
        assert node.width / node.height == pytest.approx(16 / 9)

    def test_anchors(self):
        node = Node(id=new_node_id(), kind=NodeKind.CREATIVE_DESC, x=0, y=0, width=100, height=50)
        assert node.output_anchor == Point2D(100, 25)
        assert node.input_anchor == Point2D(0, 25)

    def test_original_image_accepts_no_input(self):
        assert not Node.create(NodeKind.ORIGINAL_IMAGE).accepts_input
        assert Node.create(NodeKind.TEXT_TO_IMAGE).accepts_input


class TestNodeGraph:
    """Tests for NodeGraph."""

    def test_create_empty_graph(self):
        graph = NodeGraph()
        assert len(graph) == 0
        assert graph.connections == []
        assert graph.groups == []

    def test_add_node(self):
        graph = NodeGraph()
        node = make_node()
        graph.add_node(node)
        assert node.id in graph
        assert graph.get_node(node.id) is node

    def test_removed_id_is_never_reused(self):
        graph = NodeGraph()
        node = make_node()
        graph.add_node(node)
        graph.remove_node(node.id)

        with pytest.raises(ValueError):
            graph.add_node(node)

    def test_remove_missing_node(self):
        assert NodeGraph().remove_node(new_node_id()) is None

    def test_require_node_raises(self):
        with pytest.raises(InvalidReference) as exc:
            NodeGraph().require_node(new_node_id())
        assert exc.value.kind == "node"
        assert isinstance(exc.value, KeyError)

    def test_add_connection(self):
        graph = NodeGraph()
        a, b = make_node(), make_node(500)
        graph.add_node(a)
        graph.add_node(b)

        conn = Connection.create(a.id, b.id)
        assert graph.add_connection(conn)
        assert graph.connections == [conn]
        assert graph.incident_connections(a.id) == [conn]

    def test_add_connection_invalid_source(self):
        graph = NodeGraph()
        b = make_node()
        graph.add_node(b)
        assert not graph.add_connection(Connection.create(new_node_id(), b.id))
        assert graph.connections == []

    def test_self_connection_prevented(self):
        graph = NodeGraph()
        a = make_node()
        graph.add_node(a)
        assert not graph.add_connection(Connection.create(a.id, a.id))

    def test_remove_node_removes_connections(self):
        graph = NodeGraph()
        a, b, c = make_node(), make_node(500), make_node(1000)
        for n in (a, b, c):
            graph.add_node(n)
        graph.add_connection(Connection.create(a.id, b.id))
        keep = Connection.create(b.id, c.id)
        graph.add_connection(keep)
        graph.add_connection(Connection.create(c.id, a.id))

        graph.remove_node(a.id)

        assert graph.connections == [keep]
        for conn in graph.connections:
            assert conn.source_id in graph and conn.target_id in graph

    def test_remove_connection_is_idempotent(self):
        graph = NodeGraph()
        a, b = make_node(), make_node(500)
        graph.add_node(a)
        graph.add_node(b)
        conn = Connection.create(a.id, b.id)
        graph.add_connection(conn)

        assert graph.remove_connection(conn.id) == conn
        assert graph.remove_connection(conn.id) is None
        assert graph.connections == []

    def test_find_connections(self):
        graph = NodeGraph()
        a, b = make_node(), make_node(500)
        graph.add_node(a)
        graph.add_node(b)
        conn = Connection.create(a.id, b.id)
        graph.add_connection(conn)
        assert graph.find_connections(a.id, b.id) == [conn]
        assert graph.find_connections(b.id, a.id) == []

    def test_bring_to_front(self):
        graph = NodeGraph()
        a, b, c = make_node(), make_node(), make_node()
        for n in (a, b, c):
            graph.add_node(n)
        graph.bring_to_front([a.id])
        assert list(graph.nodes) == [b.id, c.id, a.id]
        assert next(graph.iter_nodes_topmost_first()) is a

    def test_nodes_bounds(self):
        graph = NodeGraph()
        graph.add_node(make_node(0, 0))
        graph.add_node(make_node(1000, 500))
        assert graph.nodes_bounds() == Rect(0, 0, 1320, 740)
        assert NodeGraph().nodes_bounds() is None


class TestDanglingConnections:
    """Connections whose endpoints went away are skipped, then collected."""

    def _loaded_graph(self):
        graph = NodeGraph()
        a, b = make_node(), make_node(500)
        ghost = Connection.create(a.id, new_node_id())
        live = Connection.create(a.id, b.id)
        graph.load([a, b], [ghost, live])
        return graph, ghost, live

    def test_load_keeps_dangling_connection(self):
        graph, ghost, live = self._loaded_graph()
        assert ghost in graph.connections
        assert graph.is_dangling(ghost)

    def test_renderable_skips_dangling(self):
        graph, ghost, live = self._loaded_graph()
        assert graph.renderable_connections() == [live]

    def test_collect_garbage(self):
        graph, ghost, live = self._loaded_graph()
        assert graph.collect_garbage() == [ghost]
        assert graph.connections == [live]
        assert graph.collect_garbage() == []


class TestGroups:
    """Tests for group membership in NodeGraph."""

    def test_add_group(self):
        graph = NodeGraph()
        a, b = make_node(), make_node()
        graph.add_node(a)
        graph.add_node(b)
        group = make_group(a, b)

        assert graph.add_group(group)
        assert graph.group_of(a.id) is group
        assert graph.group_of(b.id) is group

    def test_group_needs_two_live_members(self):
        graph = NodeGraph()
        a = make_node()
        graph.add_node(a)
        group = Group.create([a.id, new_node_id()], color="#E2E5E8", bounds=Rect(0, 0, 1, 1))
        assert not graph.add_group(group)
        assert graph.groups == []

    def test_node_belongs_to_at_most_one_group(self):
        graph = NodeGraph()
        a, b, c = make_node(), make_node(), make_node()
        for n in (a, b, c):
            graph.add_node(n)
        first = make_group(a, b, c)
        graph.add_group(first)

        second = make_group(a, b)
        graph.add_group(second)

        assert graph.group_of(a.id) is second
        assert graph.group_of(b.id) is second
        # The first group dropped to a single member and dissolved
        assert graph.get_group(first.id) is None
        assert graph.group_of(c.id) is None

    def test_removing_member_dissolves_pair(self):
        graph = NodeGraph()
        a, b = make_node(), make_node()
        graph.add_node(a)
        graph.add_node(b)
        group = make_group(a, b)
        graph.add_group(group)

        graph.remove_node(a.id)

        assert graph.groups == []
        assert graph.group_of(b.id) is None

    def test_removing_member_shrinks_larger_group(self):
        graph = NodeGraph()
        a, b, c = make_node(), make_node(), make_node()
        for n in (a, b, c):
            graph.add_node(n)
        group = make_group(a, b, c)
        graph.add_group(group)

        graph.remove_node(c.id)

        assert group.member_ids == frozenset({a.id, b.id})

    def test_clear(self):
        graph = NodeGraph()
        a, b = make_node(), make_node()
        graph.add_node(a)
        graph.add_node(b)
        graph.add_group(make_group(a, b))
        graph.clear()
        assert len(graph) == 0
        assert graph.groups == []
        assert graph.group_of(a.id) is None
