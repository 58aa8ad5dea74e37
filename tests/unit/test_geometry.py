"""
Tests for the geometry module.
"""

import math

import pytest

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
from gen_canvas.core.settings import CanvasSettings


class TestPoint2D:
    """Tests for Point2D dataclass."""

    def test_default_values(self):
        p = Point2D()
        assert p.x == 0.0
        assert p.y == 0.0

    def test_addition(self):
        result = Point2D(10, 20) + Point2D(5, 10)
        assert result == Point2D(15, 30)

    def test_subtraction(self):
        result = Point2D(10, 20) - Point2D(5, 10)
        assert result == Point2D(5, 10)

    def test_distance(self):
        assert Point2D(0, 0).distance_to(Point2D(3, 4)) == 5.0


class TestRect:
    """Tests for Rect."""

    def test_from_corners_normalizes(self):
        r = Rect.from_corners(Point2D(10, 50), Point2D(-10, 20))
        assert r == Rect(-10, 20, 20, 30)

    def test_contains_is_inclusive(self):
        r = Rect(0, 0, 10, 10)
        assert r.contains(Point2D(10, 10))
        assert r.contains(Point2D(0, 5))
        assert not r.contains(Point2D(10.1, 5))

    def test_touching_edges_do_not_intersect(self):
        a = Rect(0, 0, 10, 10)
        assert not a.intersects(Rect(10, 0, 10, 10))
        assert a.intersects(Rect(9, 9, 10, 10))

    def test_union_and_inflate(self):
        r = Rect(0, 0, 10, 10).union(Rect(20, -5, 5, 5))
        assert r == Rect(0, -5, 25, 15)
        assert r.inflated(5) == Rect(-5, -10, 35, 25)

    def test_bounding_rect_of_nothing(self):
        assert bounding_rect([]) is None


class TestCanvasTransform:
    """Tests for the world <-> screen mapping."""

    def test_round_trip(self):
        t = CanvasTransform(37.5, -12.25, 1.3)
        for p in (Point2D(0, 0), Point2D(123.4, -56.7), Point2D(-1e4, 3e3)):
            back = world_to_screen(screen_to_world(p, t), t)
            assert back.is_close(p, tol=1e-6)

    def test_screen_to_world(self):
        t = CanvasTransform(300, 200, 1)
        assert screen_to_world(Point2D(400, 300), t) == Point2D(100, 100)

    def test_visible_world_rect(self):
        t = CanvasTransform(100, 50, 2)
        assert t.visible_world_rect(Size2D(800, 600)) == Rect(-50, -25, 400, 300)

    def test_panned(self):
        t = CanvasTransform(0, 0, 1).panned(50, 30)
        assert t == CanvasTransform(50, 30, 1)


class TestZoom:
    """Tests for anchor-preserving zoom."""

    def test_zoom_keeps_world_point_under_pivot(self):
        t = CanvasTransform(300, 200, 1)
        pivot = Point2D(400, 300)
        assert screen_to_world(pivot, t) == Point2D(100, 100)

        zoomed = zoom_to(t, 2.0, pivot)

        assert zoomed.k == 2.0
        assert screen_to_world(pivot, zoomed).is_close(Point2D(100, 100))
        assert zoomed.x == pytest.approx(200)
        assert zoomed.y == pytest.approx(100)

    @pytest.mark.parametrize("requested, expected", [(5.0, 2.0), (0.1, 0.4), (1.5, 1.5)])
    def test_zoom_is_clamped(self, requested, expected):
        zoomed = zoom_to(CanvasTransform(), requested, Point2D(10, 10))
        assert zoomed.k == pytest.approx(expected)

    def test_clamped_zoom_still_preserves_anchor(self):
        t = CanvasTransform(-40, 75, 1.7)
        pivot = Point2D(321, 123)
        before = screen_to_world(pivot, t)
        zoomed = zoom_at(t, 10.0, pivot)
        assert zoomed.k == 2.0
        assert screen_to_world(pivot, zoomed).is_close(before, tol=1e-9)

    def test_custom_limits(self):
        settings = CanvasSettings(min_zoom=0.1, max_zoom=8.0)
        assert zoom_to(CanvasTransform(), 5.0, Point2D(), settings).k == 5.0

    def test_non_finite_scale_is_ignored(self):
        t = CanvasTransform(1, 2, 1.5)
        assert zoom_to(t, math.nan, Point2D(5, 5)) is t
        assert zoom_to(t, math.inf, Point2D(5, 5)) is t

    def test_reset_zoom_anchors_on_viewport_center(self):
        t = CanvasTransform(10, 20, 2)
        reset = reset_zoom(t, Size2D(800, 600))
        assert reset == CanvasTransform(205, 160, 1)

    def test_reset_zoom_without_viewport_uses_origin(self):
        reset = reset_zoom(CanvasTransform(10, 20, 2))
        assert reset == CanvasTransform(5, 10, 1)

    def test_centered_on(self):
        t = centered_on(Point2D(100, 50), Size2D(800, 600), 1.0)
        assert t == CanvasTransform(300, 250, 1.0)
        assert t.world_to_screen(Point2D(100, 50)) == Point2D(400, 300)
