"""
Preview Dialog - Full-window preview of a produced image or video.

Closing is the only supported action: clicking anywhere, pressing
Escape or the close button all dismiss the dialog.
"""

from __future__ import annotations

import logging
from enum import Enum

from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QKeyEvent, QMouseEvent, QPixmap
from PySide6.QtMultimedia import QMediaPlayer
from PySide6.QtMultimediaWidgets import QVideoWidget
from PySide6.QtWidgets import QDialog, QLabel, QPushButton, QVBoxLayout, QWidget


logger = logging.getLogger(__name__)


class MediaType(Enum):
    IMAGE = "image"
    VIDEO = "video"


VIDEO_SUFFIXES = (".mp4", ".webm", ".mov", ".mkv", ".avi")


def media_type_for(url: str) -> MediaType:
    """Guess the media type of a URL from its suffix."""
    return MediaType.VIDEO if url.lower().endswith(VIDEO_SUFFIXES) else MediaType.IMAGE


class PreviewDialog(QDialog):
    """Modal preview of one media URL."""

    def __init__(self, url: str, media_type: MediaType, parent: QWidget | None = None):
        super().__init__(parent)
        self.setWindowTitle("Preview")
        self.setModal(True)
        self.setStyleSheet("background-color: rgba(0, 0, 0, 204);")
        self.resize(960, 720)

        self._player: QMediaPlayer | None = None

        layout = QVBoxLayout(self)
        close_button = QPushButton("Close")
        close_button.clicked.connect(self.close)
        layout.addWidget(close_button, alignment=Qt.AlignmentFlag.AlignRight)

        qurl = QUrl.fromUserInput(url)
        if media_type is MediaType.IMAGE:
            label = QLabel()
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            pixmap = QPixmap(qurl.toLocalFile() if qurl.isLocalFile() else url)
            if pixmap.isNull():
                logger.warning("Could not load preview image %s", url)
                label.setText("Preview unavailable")
            else:
                label.setPixmap(pixmap.scaled(
                    int(self.width() * 0.9), int(self.height() * 0.9),
                    Qt.AspectRatioMode.KeepAspectRatio,
                    Qt.TransformationMode.SmoothTransformation,
                ))
            layout.addWidget(label, 1)
        else:
            video = QVideoWidget()
            self._player = QMediaPlayer(self)
            self._player.setVideoOutput(video)
            self._player.setSource(qurl)
            layout.addWidget(video, 1)
            self._player.play()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        self.close()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Escape:
            self.close()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event) -> None:
        if self._player is not None:
            self._player.stop()
        super().closeEvent(event)
