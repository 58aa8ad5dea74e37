"""
Canvas Errors - Failure taxonomy for the interaction engine.

None of these are fatal. Stores raise them from their ``require_*``
helpers; the session and the interaction controller catch ``CanvasError``
at their entry points, log it, and leave the state unchanged.
"""

from __future__ import annotations


class CanvasError(Exception):
    """Base class for recoverable canvas failures."""


class InvalidReference(CanvasError, KeyError):
    """An operation named a node, connection or group id that does not exist."""

    def __init__(self, kind: str, ref_id: str):
        super().__init__(f"Unknown {kind}: {ref_id}")
        self.kind = kind
        self.ref_id = ref_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidTransition(CanvasError):
    """An operation does not apply to the current selection or drag mode."""


class DegenerateGeometry(CanvasError):
    """A geometric computation had nothing (or zero area) to work with."""


class InvalidColor(CanvasError, ValueError):
    """A group color outside the fixed palette."""
