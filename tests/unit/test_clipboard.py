"""
Tests for capturing and instantiating copied nodes.
"""

from gen_canvas.core.clipboard import ClipboardContents, copy_title, instantiate
from gen_canvas.core.geometry import Point2D
from gen_canvas.core.graph import Connection, Node, NodeGraph, new_node_id
from gen_canvas.core.node_types import NodeKind


def box(x, y, title="Prompt") -> Node:
    return Node(
        id=new_node_id(), kind=NodeKind.CREATIVE_DESC, x=x, y=y,
        width=100, height=50, title=title,
    )


def chain():
    graph = NodeGraph()
    a, b, c = box(100, 200), box(400, 250), box(800, 0)
    for node in (a, b, c):
        graph.add_node(node)
    graph.add_connection(Connection.create(a.id, b.id))
    graph.add_connection(Connection.create(b.id, c.id))
    return graph, a, b, c


class TestCapture:
    """Tests for ClipboardContents.capture."""

    def test_keeps_internal_edges_only(self):
        graph, a, b, _ = chain()
        contents = ClipboardContents.capture(graph, [a.id, b.id])
        assert [n.id for n in contents.nodes] == [a.id, b.id]
        assert [(c.source_id, c.target_id) for c in contents.connections] == [(a.id, b.id)]

    def test_copies_are_detached(self):
        graph, a, b, _ = chain()
        contents = ClipboardContents.capture(graph, [a.id])
        a.x = 999
        assert contents.nodes[0].x == 100

    def test_unknown_ids_are_skipped(self):
        graph, _, _, _ = chain()
        assert not ClipboardContents.capture(graph, [new_node_id()])


class TestInstantiate:
    """Tests for pasting clipboard contents."""

    def test_fresh_ids_and_relative_offsets(self):
        graph, a, b, _ = chain()
        contents = ClipboardContents.capture(graph, [a.id, b.id])

        nodes, connections = instantiate(contents, Point2D(0, 0))

        assert {n.id for n in nodes}.isdisjoint({a.id, b.id})
        assert [(n.x, n.y) for n in nodes] == [(0, 0), (300, 50)]
        assert [(c.source_id, c.target_id) for c in connections] == [(nodes[0].id, nodes[1].id)]

    def test_each_paste_gets_new_ids(self):
        graph, a, _, _ = chain()
        contents = ClipboardContents.capture(graph, [a.id])
        first, _ = instantiate(contents, Point2D(0, 0))
        second, _ = instantiate(contents, Point2D(0, 0))
        assert first[0].id != second[0].id

    def test_titles_get_copy_suffix(self):
        graph, a, _, _ = chain()
        nodes, _ = instantiate(ClipboardContents.capture(graph, [a.id]), Point2D(0, 0))
        assert nodes[0].title == "Prompt (Copy)"
        assert a.title == "Prompt"

    def test_copy_suffix_not_doubled(self):
        assert copy_title("Prompt (Copy)") == "Prompt (Copy)"
