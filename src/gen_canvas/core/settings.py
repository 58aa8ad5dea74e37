"""
Canvas Settings - Tunable constants for the interaction engine.

Every magic number the engine uses lives here so that hosts can adjust
behaviour without touching the state machine. Settings round-trip through
plain dicts for whatever persistence layer the host uses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# Morandi-ish colored grays
GROUP_PALETTE: tuple[str, ...] = (
    "#E2E5E8",
    "#E8E5E2",
    "#D9D5D0",
    "#C8C5C1",
    "#E0E2E8",
    "#E6E3DD",
    "#E3E8E6",
)


class DuplicatePolicy(Enum):
    """What to do when a new connection repeats an existing (source, target) pair."""
    REJECT = "reject"
    ALLOW = "allow"
    REPLACE = "replace"


class GroupColorPolicy(Enum):
    """How a new group picks its initial palette color."""
    FIRST = "first"
    ROUND_ROBIN = "round_robin"


@dataclass
class CanvasSettings:
    """
    Engine-wide settings.

    Distances suffixed ``_px`` are screen pixels; everything else is in
    world units.
    """
    # Zoom
    min_zoom: float = 0.4
    max_zoom: float = 2.0
    wheel_zoom_step: float = 0.1

    # Connections
    control_point_min: float = 24.0
    control_point_max: float = 80.0
    hit_stroke_px: float = 20.0
    visible_stroke_px: float = 2.0
    curve_samples: int = 48
    anchor_radius_px: float = 12.0
    disconnect_button_px: float = 24.0
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REJECT

    # Grouping
    group_palette: tuple[str, ...] = field(default=GROUP_PALETTE)
    group_color_policy: GroupColorPolicy = GroupColorPolicy.ROUND_ROBIN
    group_padding: float = 40.0
    group_min_size: float = 100.0
    resize_handle_px: float = 16.0
    toolbar_margin_px: float = 60.0

    # Minimap
    minimap_width: int = 240
    minimap_height: int = 160
    minimap_padding: float = 500.0

    # Viewport
    cull_buffer_px: float = 200.0
    quick_add_offset: float = 200.0

    # Align
    align_horizontal_gap: float = 20.0
    align_vertical_gap: float = 60.0
    align_overlap_threshold: float = 10.0

    # Gestures
    empty_drag_selects: bool = False

    def clamp_zoom(self, k: float) -> float:
        """Clamp a zoom scale into the allowed range."""
        return max(self.min_zoom, min(self.max_zoom, k))

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "min_zoom": self.min_zoom,
            "max_zoom": self.max_zoom,
            "wheel_zoom_step": self.wheel_zoom_step,
            "control_point_min": self.control_point_min,
            "control_point_max": self.control_point_max,
            "hit_stroke_px": self.hit_stroke_px,
            "visible_stroke_px": self.visible_stroke_px,
            "curve_samples": self.curve_samples,
            "anchor_radius_px": self.anchor_radius_px,
            "disconnect_button_px": self.disconnect_button_px,
            "duplicate_policy": self.duplicate_policy.value,
            "group_palette": list(self.group_palette),
            "group_color_policy": self.group_color_policy.value,
            "group_padding": self.group_padding,
            "group_min_size": self.group_min_size,
            "resize_handle_px": self.resize_handle_px,
            "toolbar_margin_px": self.toolbar_margin_px,
            "minimap_width": self.minimap_width,
            "minimap_height": self.minimap_height,
            "minimap_padding": self.minimap_padding,
            "cull_buffer_px": self.cull_buffer_px,
            "quick_add_offset": self.quick_add_offset,
            "align_horizontal_gap": self.align_horizontal_gap,
            "align_vertical_gap": self.align_vertical_gap,
            "align_overlap_threshold": self.align_overlap_threshold,
            "empty_drag_selects": self.empty_drag_selects,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CanvasSettings:
        """Create settings from dictionary, falling back to defaults."""
        defaults = cls()
        return cls(
            min_zoom=data.get("min_zoom", defaults.min_zoom),
            max_zoom=data.get("max_zoom", defaults.max_zoom),
            wheel_zoom_step=data.get("wheel_zoom_step", defaults.wheel_zoom_step),
            control_point_min=data.get("control_point_min", defaults.control_point_min),
            control_point_max=data.get("control_point_max", defaults.control_point_max),
            hit_stroke_px=data.get("hit_stroke_px", defaults.hit_stroke_px),
            visible_stroke_px=data.get("visible_stroke_px", defaults.visible_stroke_px),
            curve_samples=data.get("curve_samples", defaults.curve_samples),
            anchor_radius_px=data.get("anchor_radius_px", defaults.anchor_radius_px),
            disconnect_button_px=data.get("disconnect_button_px", defaults.disconnect_button_px),
            duplicate_policy=DuplicatePolicy(
                data.get("duplicate_policy", defaults.duplicate_policy.value)
            ),
            group_palette=tuple(data.get("group_palette", defaults.group_palette)),
            group_color_policy=GroupColorPolicy(
                data.get("group_color_policy", defaults.group_color_policy.value)
            ),
            group_padding=data.get("group_padding", defaults.group_padding),
            group_min_size=data.get("group_min_size", defaults.group_min_size),
            resize_handle_px=data.get("resize_handle_px", defaults.resize_handle_px),
            toolbar_margin_px=data.get("toolbar_margin_px", defaults.toolbar_margin_px),
            minimap_width=data.get("minimap_width", defaults.minimap_width),
            minimap_height=data.get("minimap_height", defaults.minimap_height),
            minimap_padding=data.get("minimap_padding", defaults.minimap_padding),
            cull_buffer_px=data.get("cull_buffer_px", defaults.cull_buffer_px),
            quick_add_offset=data.get("quick_add_offset", defaults.quick_add_offset),
            align_horizontal_gap=data.get("align_horizontal_gap", defaults.align_horizontal_gap),
            align_vertical_gap=data.get("align_vertical_gap", defaults.align_vertical_gap),
            align_overlap_threshold=data.get("align_overlap_threshold", defaults.align_overlap_threshold),
            empty_drag_selects=data.get("empty_drag_selects", defaults.empty_drag_selects),
        )
