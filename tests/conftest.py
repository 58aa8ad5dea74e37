from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """
    Put `src/` on sys.path so tests can import `gen_canvas` without an
    editable install.
    """
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture
def session():
    """An empty canvas session with an 800x600 viewport."""
    # Imported lazily: src/ is only importable once pytest_configure ran
    from gen_canvas.core.geometry import Size2D
    from gen_canvas.core.session import CanvasSession

    return CanvasSession(viewport=Size2D(800, 600))
