"""
Tests for aligning a multi-selection.
"""

import pytest

from gen_canvas.core.align import AlignDirection, align_nodes, clusters
from gen_canvas.core.graph import Node
from gen_canvas.core.node_types import NodeKind
from gen_canvas.core.settings import CanvasSettings


def box(node_id, x, y, w=100, h=50) -> Node:
    return Node(id=node_id, kind=NodeKind.CREATIVE_DESC, x=x, y=y, width=w, height=h)


@pytest.fixture
def settings():
    return CanvasSettings()


class TestClusters:
    """Tests for grouping nodes by overlap."""

    def test_column_overlap(self):
        a, b, c = box("a", 0, 0), box("b", 50, 200), box("c", 400, 0)
        result = clusters([a, b, c], vertical=True, threshold=10)
        assert [[n.id for n in cl] for cl in result] == [["a", "b"], ["c"]]

    def test_overlap_must_exceed_threshold(self):
        a, b = box("a", 0, 0), box("b", 90, 200)
        assert len(clusters([a, b], vertical=True, threshold=10)) == 2
        assert len(clusters([a, b], vertical=True, threshold=5)) == 1

    def test_transitive(self):
        a, b, c = box("a", 0, 0), box("b", 80, 100), box("c", 160, 200)
        assert len(clusters([a, b, c], vertical=True, threshold=10)) == 1

    def test_row_overlap(self):
        a, b = box("a", 0, 0), box("b", 500, 30)
        assert len(clusters([a, b], vertical=False, threshold=10)) == 1
        assert len(clusters([a, b], vertical=True, threshold=10)) == 2


class TestAlignNodes:
    """Tests for stacking clusters against the selection edge."""

    def test_up_stacks_column(self, settings):
        a, b = box("a", 0, 100), box("b", 20, 400, h=80)
        align_nodes([b, a], AlignDirection.UP, settings)
        assert (a.y, b.y) == (100, 210)
        assert (a.x, b.x) == (0, 20)

    def test_down_stacks_from_bottom(self, settings):
        a, b = box("a", 0, 100), box("b", 20, 400, h=80)
        align_nodes([a, b], AlignDirection.DOWN, settings)
        # Bottom edge is 480
        assert b.y == 400
        assert a.y == 400 - 60 - 50

    def test_left_uses_horizontal_gap(self, settings):
        a, b = box("a", 50, 0), box("b", 500, 10)
        align_nodes([a, b], AlignDirection.LEFT, settings)
        assert (a.x, b.x) == (50, 170)

    def test_right(self, settings):
        a, b = box("a", 50, 0), box("b", 500, 10)
        align_nodes([a, b], AlignDirection.RIGHT, settings)
        assert b.x == 500
        assert a.x == 500 - 20 - 100

    def test_separate_columns_share_top(self, settings):
        a, b = box("a", 0, 100), box("b", 400, 300)
        align_nodes([a, b], AlignDirection.UP, settings)
        assert (a.y, b.y) == (100, 100)

    def test_ties_break_by_id(self, settings):
        b, a = box("b", 0, 0), box("a", 10, 0)
        align_nodes([b, a], AlignDirection.UP, settings)
        assert (a.y, b.y) == (0, 110)

    def test_single_node_is_untouched(self, settings):
        a = box("a", 7, 9)
        align_nodes([a], AlignDirection.LEFT, settings)
        assert (a.x, a.y) == (7, 9)

    def test_custom_gap(self):
        settings = CanvasSettings(align_vertical_gap=10)
        a, b = box("a", 0, 0), box("b", 0, 300)
        align_nodes([a, b], AlignDirection.UP, settings)
        assert b.y == 60
