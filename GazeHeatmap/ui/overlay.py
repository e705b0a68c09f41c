"""
Prediction marker: a transparent, always-on-top, click-through window that
covers the primary screen and draws a dot at the latest gaze estimate.
Shown only while the engine's prediction overlay option is on.
"""
from __future__ import annotations

from typing import Optional, Tuple

try:
    from PyQt6.QtCore import QPoint, Qt
    from PyQt6.QtGui import QColor, QGuiApplication, QPainter
    from PyQt6.QtWidgets import QWidget
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore


class PredictionOverlay(QWidget):
    RADIUS = 10

    def __init__(self):  # type: ignore[no-redef]
        super().__init__()
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        try:
            self.setGeometry(QGuiApplication.primaryScreen().geometry())
        except Exception:
            self.resize(1280, 720)
        self._gaze: Optional[Tuple[int, int]] = None

    def update_gaze(self, screen_xy: Tuple[float, float]) -> None:
        self._gaze = (int(screen_xy[0]), int(screen_xy[1]))
        self.update()

    def paintEvent(self, event):  # type: ignore[override]
        if self._gaze is None:
            return
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(QColor(255, 0, 0, 220))
        painter.setBrush(QColor(255, 0, 0, 90))
        x = self._gaze[0] - self.x()
        y = self._gaze[1] - self.y()
        painter.drawEllipse(QPoint(x, y), self.RADIUS, self.RADIUS)
        painter.end()
