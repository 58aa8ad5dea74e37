"""
Gen Canvas - Main Entry Point

This module provides the main entry point for the application.
"""

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Gen Canvas.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if sys.version_info < (3, 11):
        print("Error: Gen Canvas requires Python 3.11 or later")
        return 1

    parser = argparse.ArgumentParser(prog="gen-canvas", description="Node-graph canvas editor")
    parser.add_argument("--debug", action="store_true", help="Log gesture transitions")
    parser.add_argument("--empty-drag-selects", action="store_true",
                        help="Dragging on empty canvas draws a selection box instead of panning")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Import Qt here to avoid import overhead if just checking version
    from PySide6.QtWidgets import QApplication
    from PySide6.QtCore import Qt

    from gen_canvas import __version__
    from gen_canvas.core.settings import CanvasSettings
    from gen_canvas.ui.main_window import MainWindow

    # Must be set before the application object exists
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Gen Canvas")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("Gen Canvas")

    window = MainWindow(CanvasSettings(empty_drag_selects=args.empty_drag_selects))
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
