"""
Gen Canvas - Infinite node-graph canvas for generation workflows.

The interaction engine lives in ``gen_canvas.core`` and has no Qt
dependency; ``gen_canvas.ui`` adapts it to PySide6.
"""

__version__ = "0.1.0"
