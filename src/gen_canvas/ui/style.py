"""
Canvas Style - Theme palettes for the Qt canvas.

Colors are grouped per theme so the canvas and minimap can switch
between dark and light without touching the engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtGui import QColor

from gen_canvas.core.node_types import NodeCategory


# Header colors by node category
CATEGORY_COLORS = {
    NodeCategory.INPUT: QColor("#4a9eff"),       # Blue
    NodeCategory.GENERATION: QColor("#a855f7"),  # Purple
    NodeCategory.TEXT: QColor("#22c55e"),        # Green
}


@dataclass(frozen=True)
class StyleContext:
    """Everything the painter needs to know about the active theme."""
    is_dark: bool
    background: str
    grid: str
    node_body: str
    node_border: str
    node_text: str
    connection: str
    accent: str
    minimap_background: str
    minimap_node: str
    minimap_frame: str

    def color(self, name: str) -> QColor:
        return QColor(getattr(self, name))

    def group_fill(self, color: str) -> QColor:
        """Translucent frame fill for a group tag color."""
        fill = QColor(color)
        fill.setAlpha(40 if self.is_dark else 90)
        return fill


DARK = StyleContext(
    is_dark=True,
    background="#0B0C0E",
    grid="#1A1D21",
    node_body="#18181B",
    node_border="#27272a",
    node_text="#E4E4E7",
    connection="#71717a",
    accent="#06b6d4",
    minimap_background="#18181B",
    minimap_node="#52525b",
    minimap_frame="#06b6d4",
)

LIGHT = StyleContext(
    is_dark=False,
    background="#F5F7FA",
    grid="#E4E4E7",
    node_body="#ffffff",
    node_border="#D9D5D0",
    node_text="#09090b",
    connection="#a1a1aa",
    accent="#0891b2",
    minimap_background="#ffffff",
    minimap_node="#D1D5DB",
    minimap_frame="#0891b2",
)


def style_for(is_dark: bool) -> StyleContext:
    return DARK if is_dark else LIGHT
