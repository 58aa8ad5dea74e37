"""
Main Window - The primary application window.

This module provides the main window for Gen Canvas: the menu bar, the
node palette toolbar and the canvas widget.
"""

from __future__ import annotations

import logging

from PySide6.QtCore import QSettings
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QFileDialog,
    QMainWindow,
    QMessageBox,
    QToolBar,
    QWidget,
)

from gen_canvas.core.align import AlignDirection
from gen_canvas.core.node_types import NODE_KINDS, NodeKind
from gen_canvas.core.session import CanvasSession, CanvasSnapshot
from gen_canvas.core.settings import CanvasSettings
from gen_canvas.ui.canvas_widget import CanvasWidget
from gen_canvas.ui.preview import PreviewDialog, media_type_for
from gen_canvas.ui.style import style_for


logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """
    The main application window for Gen Canvas.

    Contains:
    - Menu bar with File, Edit, View menus
    - Node palette toolbar (one action per node kind)
    - The canvas widget as central widget
    - Status bar
    """

    def __init__(self, settings: CanvasSettings | None = None, parent: QWidget | None = None):
        super().__init__(parent)

        self.setWindowTitle("Gen Canvas")
        self.setMinimumSize(1200, 800)

        self._qsettings = QSettings("GenCanvas", "GenCanvas")
        self._is_dark = self._qsettings.value("isDark", True, type=bool)
        self._saved_snapshot: CanvasSnapshot | None = None

        self._session = CanvasSession(settings)
        self._canvas = CanvasWidget(self._session, self)
        self._canvas.set_style(style_for(self._is_dark))
        self._canvas.status_message.connect(self._show_status)
        self.setCentralWidget(self._canvas)

        self._setup_menu_bar()
        self._setup_palette()
        self.statusBar().showMessage("Ready")

        geometry = self._qsettings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)

    @property
    def session(self) -> CanvasSession:
        return self._session

    def _setup_menu_bar(self) -> None:
        """Create and configure the menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")

        new_action = QAction("&New Workflow", self)
        new_action.setShortcut(QKeySequence.StandardKey.New)
        new_action.triggered.connect(self._on_new_workflow)
        file_menu.addAction(new_action)

        restore_action = QAction("&Restore Saved Workflow", self)
        restore_action.triggered.connect(self._on_restore_workflow)
        file_menu.addAction(restore_action)

        preview_action = QAction("&Preview Media...", self)
        preview_action.setShortcut(QKeySequence("Ctrl+P"))
        preview_action.triggered.connect(self._on_preview_media)
        file_menu.addAction(preview_action)

        file_menu.addSeparator()

        exit_action = QAction("E&xit", self)
        exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        edit_menu = menubar.addMenu("&Edit")

        group_action = QAction("&Group Selection", self)
        group_action.triggered.connect(lambda: self._session.group_selection())
        edit_menu.addAction(group_action)

        ungroup_action = QAction("&Ungroup Selection", self)
        ungroup_action.triggered.connect(lambda: self._session.ungroup_selection())
        edit_menu.addAction(ungroup_action)

        delete_action = QAction("&Delete Selection", self)
        delete_action.triggered.connect(lambda: self._session.delete_selection())
        edit_menu.addAction(delete_action)

        edit_menu.addSeparator()

        copy_action = QAction("&Copy", self)
        copy_action.triggered.connect(lambda: self._session.copy_selection())
        edit_menu.addAction(copy_action)

        paste_action = QAction("&Paste", self)
        paste_action.triggered.connect(lambda: self._session.paste())
        edit_menu.addAction(paste_action)

        align_menu = edit_menu.addMenu("&Align")
        for direction in AlignDirection:
            action = QAction(direction.name.title(), self)
            action.triggered.connect(
                lambda checked=False, d=direction: self._session.align(d)
            )
            align_menu.addAction(action)

        view_menu = menubar.addMenu("&View")

        reset_zoom_action = QAction("&Reset Zoom", self)
        reset_zoom_action.setShortcut(QKeySequence("Ctrl+0"))
        reset_zoom_action.triggered.connect(lambda: self._session.reset_zoom())
        view_menu.addAction(reset_zoom_action)

        zoom_in_action = QAction("Zoom &In", self)
        zoom_in_action.setShortcut(QKeySequence.StandardKey.ZoomIn)
        zoom_in_action.triggered.connect(lambda: self._zoom_step(1))
        view_menu.addAction(zoom_in_action)

        zoom_out_action = QAction("Zoom &Out", self)
        zoom_out_action.setShortcut(QKeySequence.StandardKey.ZoomOut)
        zoom_out_action.triggered.connect(lambda: self._zoom_step(-1))
        view_menu.addAction(zoom_out_action)

        view_menu.addSeparator()

        theme_action = QAction("&Dark Theme", self)
        theme_action.setCheckable(True)
        theme_action.setChecked(self._is_dark)
        theme_action.toggled.connect(self._on_theme_toggled)
        view_menu.addAction(theme_action)

    def _setup_palette(self) -> None:
        """One toolbar action per node kind; new nodes land mid-viewport."""
        toolbar = QToolBar("Nodes", self)
        toolbar.setObjectName("NodePalette")
        for spec in NODE_KINDS.values():
            action = QAction(spec.title, self)
            action.setToolTip(f"Add {spec.title} node")
            action.triggered.connect(lambda checked=False, kind=spec.kind: self._add_node(kind))
            toolbar.addAction(action)
        self.addToolBar(toolbar)

    # --- Action handlers ---

    def _add_node(self, kind: NodeKind) -> None:
        node = self._session.add_node(kind)
        if node is not None:
            self._show_status(f"Added {node.title}")

    def _zoom_step(self, direction: int) -> None:
        t = self._session.transform
        self._session.zoom_to(t.k + direction * self._session.settings.wheel_zoom_step)

    def _on_theme_toggled(self, checked: bool) -> None:
        self._is_dark = checked
        self._qsettings.setValue("isDark", checked)
        self._canvas.set_style(style_for(checked))

    def _on_new_workflow(self) -> None:
        """Ask whether to keep the current workflow, then clear the canvas."""
        answer = QMessageBox.question(
            self,
            "New Workflow",
            "Save the current workflow before starting a new one?",
            QMessageBox.StandardButton.Save
            | QMessageBox.StandardButton.Discard
            | QMessageBox.StandardButton.Cancel,
        )
        if answer == QMessageBox.StandardButton.Cancel:
            return
        self._session.confirm_new(
            answer == QMessageBox.StandardButton.Save,
            save=self._keep_snapshot,
        )
        self._show_status("New workflow")

    def _keep_snapshot(self, snapshot: CanvasSnapshot) -> None:
        self._saved_snapshot = snapshot
        logger.info("Kept workflow with %d node(s)", len(snapshot.nodes))

    def _on_restore_workflow(self) -> None:
        if self._saved_snapshot is None:
            self._show_status("No saved workflow")
            return
        self._session.restore(self._saved_snapshot)
        self._show_status("Workflow restored")

    def _on_preview_media(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Preview Media",
            "",
            "Media (*.png *.jpg *.jpeg *.webp *.gif *.mp4 *.webm *.mov *.mkv *.avi);;All Files (*)",
        )
        if not path:
            return
        dialog = PreviewDialog(path, media_type_for(path), self)
        dialog.exec()

    def _show_status(self, message: str) -> None:
        self.statusBar().showMessage(message, 3000)

    def closeEvent(self, event) -> None:
        """Save window geometry before closing."""
        self._qsettings.setValue("geometry", self.saveGeometry())
        self._canvas.detach()
        super().closeEvent(event)
