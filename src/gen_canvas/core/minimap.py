"""
Minimap - Downsampled overview of the canvas and click-to-navigate.

The overview covers the union of every node and the current viewport,
padded on all sides, so the viewport frame is always on the map even
when the user has panned far away from the nodes. The fit scale is then
constrained so the viewport frame's longest side stays between one fifth
of and the whole panel, and the offset is nudged so the frame never
leaves the panel.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from PIL import Image, ImageDraw

from gen_canvas.core.errors import DegenerateGeometry
from gen_canvas.core.geometry import (
    CanvasTransform,
    Point2D,
    Rect,
    Size2D,
    bounding_rect,
    centered_on,
)
from gen_canvas.core.graph import Node
from gen_canvas.core.settings import CanvasSettings


logger = logging.getLogger(__name__)

# Fallback world box when there is nothing to frame
DEFAULT_WORLD_BOX = Rect(-0.5, -0.5, 1.0, 1.0)


@dataclass(frozen=True)
class MinimapLayout:
    """World -> minimap mapping: ``mini = world * scale + offset``."""
    scale: float
    offset_x: float
    offset_y: float
    view_world: Rect

    def to_minimap(self, p: Point2D) -> Point2D:
        return Point2D(p.x * self.scale + self.offset_x, p.y * self.scale + self.offset_y)

    def to_world(self, p: Point2D) -> Point2D:
        return Point2D((p.x - self.offset_x) / self.scale, (p.y - self.offset_y) / self.scale)

    def rect_to_minimap(self, rect: Rect) -> Rect:
        top_left = self.to_minimap(Point2D(rect.x, rect.y))
        return Rect(top_left.x, top_left.y, rect.width * self.scale, rect.height * self.scale)

    @property
    def viewport_frame(self) -> Rect:
        """The main viewport drawn on the minimap."""
        return self.rect_to_minimap(self.view_world)


def _content_bounds(view_world: Rect, nodes: Iterable[Node]) -> Rect:
    rects = [n.bounds for n in nodes]
    if view_world.width > 0 and view_world.height > 0:
        rects.append(view_world)
    bounds = bounding_rect(rects)
    if bounds is None or bounds.width <= 0 or bounds.height <= 0:
        raise DegenerateGeometry("Nothing to frame on the minimap")
    return bounds


class Minimap:
    """Computes minimap layouts and maps minimap input back to the canvas."""

    def __init__(self, settings: CanvasSettings | None = None):
        self._settings = settings or CanvasSettings()

    @property
    def size(self) -> Size2D:
        return Size2D(self._settings.minimap_width, self._settings.minimap_height)

    def layout(
        self,
        nodes: Iterable[Node],
        transform: CanvasTransform,
        viewport: Size2D,
    ) -> MinimapLayout:
        """Compute the overview mapping for the current canvas state."""
        map_w = float(self._settings.minimap_width)
        map_h = float(self._settings.minimap_height)
        view_world = transform.visible_world_rect(viewport)

        try:
            bounds = _content_bounds(view_world, nodes)
        except DegenerateGeometry:
            logger.debug("Minimap has no content; using the default world box")
            bounds = DEFAULT_WORLD_BOX
        bounds = bounds.inflated(self._settings.minimap_padding)

        scale = min(map_w / bounds.width, map_h / bounds.height)

        map_longest = max(map_w, map_h)
        view_longest = max(view_world.width, view_world.height)
        if view_longest > 0:
            min_frame = map_longest / 5
            if view_longest * scale < min_frame:
                scale = min_frame / view_longest
            if view_longest * scale > map_longest:
                scale = map_longest / view_longest

        offset_x = (map_w - bounds.width * scale) / 2 - bounds.x * scale
        offset_y = (map_h - bounds.height * scale) / 2 - bounds.y * scale

        # Keep the viewport frame on the panel
        vp_left = view_world.x * scale + offset_x
        vp_top = view_world.y * scale + offset_y
        vp_right = vp_left + view_world.width * scale
        vp_bottom = vp_top + view_world.height * scale
        if vp_left < 0:
            offset_x -= vp_left
        elif vp_right > map_w:
            offset_x -= vp_right - map_w
        if vp_top < 0:
            offset_y -= vp_top
        elif vp_bottom > map_h:
            offset_y -= vp_bottom - map_h

        if not all(math.isfinite(v) for v in (scale, offset_x, offset_y)) or scale <= 0:
            raise DegenerateGeometry(f"Minimap layout is not finite (scale={scale})")
        return MinimapLayout(scale, offset_x, offset_y, view_world)

    def navigate(
        self,
        minimap_point: Point2D,
        layout: MinimapLayout,
        transform: CanvasTransform,
        viewport: Size2D,
    ) -> CanvasTransform:
        """Recenter the main view on the world point under a minimap click."""
        world = layout.to_world(minimap_point)
        return centered_on(world, viewport, transform.k)

    def drag_viewport(
        self,
        start_transform: CanvasTransform,
        dx: float,
        dy: float,
        layout: MinimapLayout,
    ) -> CanvasTransform:
        """Move the main view by dragging its frame ``(dx, dy)`` minimap pixels."""
        world_dx = dx / layout.scale
        world_dy = dy / layout.scale
        return start_transform.with_offset(
            start_transform.x - world_dx * start_transform.k,
            start_transform.y - world_dy * start_transform.k,
        )

    def render(
        self,
        nodes: Iterable[Node],
        layout: MinimapLayout,
        background: str = "#18181B",
        node_fill: str = "#52525B",
        frame_color: str = "#06B6D4",
    ) -> Image.Image:
        """Rasterize the overview panel (node boxes plus the viewport frame)."""
        width = self._settings.minimap_width
        height = self._settings.minimap_height
        image = Image.new("RGBA", (width, height), background)
        draw = ImageDraw.Draw(image)

        for node in nodes:
            r = layout.rect_to_minimap(node.bounds)
            if r.right < 0 or r.left > width or r.bottom < 0 or r.top > height:
                continue
            draw.rectangle(
                [r.left, r.top, max(r.left, r.right - 1), max(r.top, r.bottom - 1)],
                fill=node_fill,
            )

        frame = layout.viewport_frame
        draw.rectangle(
            [frame.left, frame.top, max(frame.left, frame.right - 1), max(frame.top, frame.bottom - 1)],
            outline=frame_color,
            width=2,
        )
        return image
