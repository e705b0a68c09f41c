"""
Fullscreen calibration screen: nine click targets in a 3x3 grid (Pt1..Pt9,
row-major). Each click forwards to the CalibrationController; a target fades
in with each click (opacity 0.2 per click) and turns yellow once complete.
The centre target stays hidden until the other eight are done. During the
accuracy check only the centre target is shown.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

try:
    from PyQt6.QtCore import QPointF, Qt
    from PyQt6.QtGui import QColor, QPainter
    from PyQt6.QtWidgets import QWidget
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore

from GazeHeatmap.calibration.controller import (
    CENTER_TARGET,
    TARGET_NAMES,
    CalibrationController,
    CalibrationPhase,
)


def target_positions(width: int, height: int, margin_ratio: float = 0.08) -> Dict[str, Tuple[int, int]]:
    mx = int(width * margin_ratio)
    my = int(height * margin_ratio)
    xs = (mx, width // 2, width - mx)
    ys = (my, height // 2, height - my)
    out: Dict[str, Tuple[int, int]] = {}
    for i, name in enumerate(TARGET_NAMES):
        out[name] = (xs[i % 3], ys[i // 3])
    return out


def hit_target(positions: Dict[str, Tuple[int, int]], x: float, y: float, radius: float) -> Optional[str]:
    for name, (tx, ty) in positions.items():
        if (x - tx) ** 2 + (y - ty) ** 2 <= radius * radius:
            return name
    return None


class CalibrationScreen(QWidget):  # type: ignore[misc]
    def __init__(self, controller: CalibrationController, radius_px: int = 15):  # type: ignore[no-redef]
        super().__init__()
        self.controller = controller
        self.radius_px = radius_px
        self.positions: Dict[str, Tuple[int, int]] = {}
        try:
            self.setWindowFlags(Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint)
            self.setCursor(Qt.CursorShape.CrossCursor)
        except Exception:
            pass
        controller.on_phase_changed(self._on_phase)
        controller.on_accuracy_measured(lambda _r: self.update())

    def open(self) -> None:
        try:
            self.showFullScreen()
        except Exception:
            self.show()
        self._layout_targets()
        self.controller.start()
        self.update()

    def _on_phase(self, phase: CalibrationPhase) -> None:
        if phase in (CalibrationPhase.DONE, CalibrationPhase.IDLE):
            self.hide()
        else:
            self.update()

    def _layout_targets(self) -> None:
        self.positions = target_positions(self.width(), self.height())

    def resizeEvent(self, event):  # type: ignore[override]
        self._layout_targets()
        super().resizeEvent(event)

    def mousePressEvent(self, event):  # type: ignore[override]
        if self.controller.phase is not CalibrationPhase.CALIBRATING:
            return
        pos = event.position()
        visible = {n: p for n, p in self.positions.items() if self.controller.state.is_visible(n)}
        name = hit_target(visible, pos.x(), pos.y(), self.radius_px)
        if name is None:
            return
        g = event.globalPosition()
        if self.controller.click(name, g.x(), g.y()):
            self.update()

    def keyPressEvent(self, event):  # type: ignore[override]
        if event.key() == Qt.Key.Key_Escape:
            self.controller.cancel()
            return
        super().keyPressEvent(event)

    def paintEvent(self, event):  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(255, 255, 255))
        painter.setPen(QColor(0, 0, 0))
        phase = self.controller.phase
        if phase is CalibrationPhase.MEASURING_ACCURACY:
            painter.drawText(20, 30, "Please don't move your mouse and stare at the middle dot for the next 5 seconds.")
            cx, cy = self.positions.get(CENTER_TARGET, (self.width() // 2, self.height() // 2))
            painter.setBrush(QColor(255, 255, 0))
            painter.drawEllipse(QPointF(cx, cy), self.radius_px, self.radius_px)
        else:
            result = self.controller.result
            painter.drawText(20, 30, "Not yet Calibrated" if result is None else f"Accuracy | {result.score}%")
            state = self.controller.state
            for name, (x, y) in self.positions.items():
                if not state.is_visible(name):
                    continue
                color = QColor(255, 255, 0) if state.is_complete(name) else QColor(255, 0, 0)
                color.setAlphaF(state.opacity(name))
                painter.setBrush(color)
                painter.drawEllipse(QPointF(x, y), self.radius_px, self.radius_px)
        painter.end()
