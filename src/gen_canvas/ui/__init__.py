"""
UI components.

This package provides the PySide6 presentation layer for the canvas engine.
"""

from gen_canvas.ui.canvas_widget import CanvasWidget, pil_to_qimage
from gen_canvas.ui.style import DARK, LIGHT, StyleContext, style_for

__all__ = [
    "CanvasWidget",
    "pil_to_qimage",
    "DARK",
    "LIGHT",
    "StyleContext",
    "style_for",
]
