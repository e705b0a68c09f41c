from __future__ import annotations

from typing import Tuple

try:
    from PyQt6.QtCore import pyqtSignal
    from PyQt6.QtWidgets import QDialog, QHBoxLayout, QLabel, QPushButton, QVBoxLayout
except Exception:  # pragma: no cover
    QDialog = object  # type: ignore
    pyqtSignal = lambda *a, **k: None  # type: ignore

from GazeHeatmap.calibration.accuracy import AccuracyResult, AccuracyStatus


def accuracy_message(result: AccuracyResult) -> str:
    if result.status is AccuracyStatus.MEASURED:
        return f"Your accuracy measure is {result.score}%"
    if result.status is AccuracyStatus.INSUFFICIENT_SAMPLES:
        return f"Not enough gaze samples to measure accuracy ({len(result.samples)} collected)"
    return "The gaze engine returned no data; accuracy unknown"


class AccuracyWindow(QDialog):  # type: ignore[misc]
    """Result of the fixation check with Accept / Recalibrate choices."""

    accepted_calibration = pyqtSignal()
    recalibrate = pyqtSignal()

    def __init__(self, result: AccuracyResult, viewport: Tuple[int, int], parent=None):  # type: ignore[no-redef]
        super().__init__(parent)
        self.setWindowTitle("Calculating measurement")
        self.result = result
        self.viewport = viewport
        self._decided = False
        self._build_ui()

    def _build_ui(self) -> None:
        v = QVBoxLayout()
        self.lbl_summary = QLabel(accuracy_message(self.result))
        v.addWidget(self.lbl_summary)
        if self.result.samples:
            try:
                from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas  # type: ignore

                from GazeHeatmap.analysis.plots import fig_accuracy_scatter

                v.addWidget(FigureCanvas(fig_accuracy_scatter(self.result.samples, self.viewport, self.result.score)), stretch=1)
            except Exception:
                pass

        bottom = QHBoxLayout()
        btn_recal = QPushButton("Recalibrate")
        btn_accept = QPushButton("Accept")
        bottom.addStretch(1)
        bottom.addWidget(btn_recal)
        bottom.addWidget(btn_accept)
        v.addLayout(bottom)
        self.setLayout(v)

        btn_accept.clicked.connect(self._on_accept)  # type: ignore[attr-defined]
        btn_recal.clicked.connect(self._on_recalibrate)  # type: ignore[attr-defined]

    def _on_accept(self):
        self._decided = True
        self.accepted_calibration.emit()
        self.close()

    def _on_recalibrate(self):
        self._decided = True
        self.recalibrate.emit()
        self.close()

    def closeEvent(self, event):  # type: ignore[override]
        # Closing without a choice counts as recalibrate
        if not self._decided:
            self._decided = True
            self.recalibrate.emit()
        super().closeEvent(event)
