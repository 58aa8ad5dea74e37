"""
Entry point for running Gen Canvas as a module.

Usage:
    python -m gen_canvas [--debug] [--empty-drag-selects]
"""

import sys

from gen_canvas.main import main

if __name__ == "__main__":
    sys.exit(main())
