"""
Canvas Geometry - Points, rectangles and the pan/zoom transform.

This module defines the coordinate model shared by every other part of
the engine:
- Point2D / Size2D / Rect: plain value types
- CanvasTransform: the affine world <-> screen mapping (translate + scale)
- Pure helpers for anchor-preserving zoom, panning and recentering

World space is where node positions live. Screen space is viewport pixels.
``screen = world * k + (x, y)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from gen_canvas.core.settings import CanvasSettings


_DEFAULT_SETTINGS = CanvasSettings()


@dataclass(frozen=True)
class Point2D:
    """2D point in either world or screen space."""
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Point2D) -> Point2D:
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point2D) -> Point2D:
        return Point2D(self.x - other.x, self.y - other.y)

    def distance_to(self, other: Point2D) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_close(self, other: Point2D, tol: float = 1e-9) -> bool:
        return math.isclose(self.x, other.x, abs_tol=tol) and math.isclose(
            self.y, other.y, abs_tol=tol
        )


@dataclass(frozen=True)
class Size2D:
    """2D size for node and viewport dimensions."""
    width: float = 0.0
    height: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle (top-left origin)."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, a: Point2D, b: Point2D) -> Rect:
        """Normalized rectangle spanning two arbitrary corners."""
        return cls(min(a.x, b.x), min(a.y, b.y), abs(b.x - a.x), abs(b.y - a.y))

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point2D:
        return Point2D(self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, p: Point2D) -> bool:
        """Inclusive point containment."""
        return self.left <= p.x <= self.right and self.top <= p.y <= self.bottom

    def intersects(self, other: Rect) -> bool:
        """Strict overlap test (touching edges do not count)."""
        return (
            self.left < other.right and self.right > other.left
            and self.top < other.bottom and self.bottom > other.top
        )

    def union(self, other: Rect) -> Rect:
        left = min(self.left, other.left)
        top = min(self.top, other.top)
        return Rect(
            left, top,
            max(self.right, other.right) - left,
            max(self.bottom, other.bottom) - top,
        )

    def inflated(self, amount: float) -> Rect:
        return Rect(
            self.x - amount, self.y - amount,
            self.width + amount * 2, self.height + amount * 2,
        )

    def translated(self, dx: float, dy: float) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)


def bounding_rect(rects: Iterable[Rect]) -> Rect | None:
    """Union of all rectangles, or None when there are none."""
    result: Rect | None = None
    for rect in rects:
        result = rect if result is None else result.union(rect)
    return result


@dataclass(frozen=True)
class CanvasTransform:
    """
    Pan and zoom state of the canvas.

    ``x``/``y`` are the world-to-screen translation offset in pixels and
    ``k`` is the zoom scale. Instances are immutable; every operation
    returns a new transform.
    """
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def screen_to_world(self, p: Point2D) -> Point2D:
        """Convert screen coordinates to world coordinates."""
        return Point2D((p.x - self.x) / self.k, (p.y - self.y) / self.k)

    def world_to_screen(self, p: Point2D) -> Point2D:
        """Convert world coordinates to screen coordinates."""
        return Point2D(p.x * self.k + self.x, p.y * self.k + self.y)

    def world_rect_to_screen(self, rect: Rect) -> Rect:
        top_left = self.world_to_screen(Point2D(rect.x, rect.y))
        return Rect(top_left.x, top_left.y, rect.width * self.k, rect.height * self.k)

    def visible_world_rect(self, viewport: Size2D) -> Rect:
        """The world-space rectangle currently covered by the viewport."""
        return Rect(
            -self.x / self.k, -self.y / self.k,
            viewport.width / self.k, viewport.height / self.k,
        )

    def panned(self, dx: float, dy: float) -> CanvasTransform:
        return CanvasTransform(self.x + dx, self.y + dy, self.k)

    def with_offset(self, x: float, y: float) -> CanvasTransform:
        return CanvasTransform(x, y, self.k)


# --- Pure transform operations ---


def screen_to_world(p: Point2D, t: CanvasTransform) -> Point2D:
    """``world = (screen - (t.x, t.y)) / t.k``."""
    return t.screen_to_world(p)


def world_to_screen(p: Point2D, t: CanvasTransform) -> Point2D:
    """Inverse of :func:`screen_to_world`."""
    return t.world_to_screen(p)


def zoom_to(
    t: CanvasTransform,
    k: float,
    pivot: Point2D,
    settings: CanvasSettings = _DEFAULT_SETTINGS,
) -> CanvasTransform:
    """
    Set an absolute zoom scale, keeping ``pivot`` (screen) fixed.

    The requested scale is clamped to the settings' zoom range. The world
    point under ``pivot`` before the zoom is still under it afterwards.
    """
    if not math.isfinite(k):
        return t
    new_k = settings.clamp_zoom(k)
    world = t.screen_to_world(pivot)
    return CanvasTransform(pivot.x - world.x * new_k, pivot.y - world.y * new_k, new_k)


def zoom_at(
    t: CanvasTransform,
    factor: float,
    pivot: Point2D,
    settings: CanvasSettings = _DEFAULT_SETTINGS,
) -> CanvasTransform:
    """Multiply the zoom scale by ``factor`` around a screen pivot."""
    return zoom_to(t, t.k * factor, pivot, settings)


def reset_zoom(
    t: CanvasTransform,
    viewport: Size2D | None = None,
    settings: CanvasSettings = _DEFAULT_SETTINGS,
) -> CanvasTransform:
    """
    Return to 100% zoom.

    The reset is anchored on the viewport center: whatever world point is
    in the middle of the screen stays there. Without a known viewport the
    screen origin is used as the anchor.
    """
    if viewport is None or viewport.is_empty:
        pivot = Point2D(0.0, 0.0)
    else:
        pivot = Point2D(viewport.width / 2, viewport.height / 2)
    return zoom_to(t, 1.0, pivot, settings)


def centered_on(world_point: Point2D, viewport: Size2D, k: float) -> CanvasTransform:
    """Transform at scale ``k`` that puts ``world_point`` at the viewport center."""
    return CanvasTransform(
        viewport.width / 2 - world_point.x * k,
        viewport.height / 2 - world_point.y * k,
        k,
    )
