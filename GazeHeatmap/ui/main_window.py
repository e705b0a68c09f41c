from __future__ import annotations

from typing import Optional

try:
    from PyQt6.QtCore import pyqtSignal
    from PyQt6.QtWidgets import (
        QHBoxLayout,
        QLabel,
        QMainWindow,
        QPushButton,
        QStatusBar,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore
    QMainWindow = object  # type: ignore
    pyqtSignal = lambda *a, **k: None  # type: ignore

from GazeHeatmap.capture.models import LiveStats
from GazeHeatmap.ui.browser_view import BrowserView
from GazeHeatmap.ui.heatmap_overlay import HeatmapOverlay


def format_stats(stats: Optional[LiveStats]) -> str:
    if stats is None:
        return "Gaze: -- | Mouse: -- | Pages: -- | Time: --"
    return (
        f"Gaze: {stats.gaze_count} | Mouse: {stats.mouse_count} | "
        f"Pages: {len(stats.pages_visited)} | Time: {stats.duration}s"
    )


class MainWindow(QMainWindow):  # type: ignore[misc]
    startRequested = pyqtSignal()
    stopRequested = pyqtSignal()
    calibrateRequested = pyqtSignal()
    exportRequested = pyqtSignal()
    loadRequested = pyqtSignal()
    replayRequested = pyqtSignal()

    def __init__(self):  # type: ignore[no-redef]
        super().__init__()
        self.setWindowTitle("GazeHeatmap")
        self.resize(1280, 860)
        self._build_ui()

    def _build_ui(self) -> None:
        central = QWidget()
        root = QVBoxLayout()

        bar = QHBoxLayout()
        self.btn_calibrate = QPushButton("Calibrate")
        self.btn_start = QPushButton("Start Session")
        self.btn_stop = QPushButton("Stop Session")
        self.btn_stop.setEnabled(False)
        self.btn_export = QPushButton("Export Session")
        self.btn_replay = QPushButton("Heatmap")
        self.lbl_calibrated = QLabel("Not calibrated")
        try:
            self.lbl_calibrated.setStyleSheet("color: #cc0000; font-weight: bold;")
        except Exception:
            pass
        for w in (self.btn_calibrate, self.btn_start, self.btn_stop, self.btn_export, self.btn_replay):
            bar.addWidget(w)
        bar.addStretch(1)
        bar.addWidget(self.lbl_calibrated)
        root.addLayout(bar)

        self.browser = BrowserView()
        root.addWidget(self.browser, stretch=1)
        self.heatmap = HeatmapOverlay(self.browser)

        self.stats_label = QLabel(format_stats(None))
        root.addWidget(self.stats_label)

        central.setLayout(root)
        self.setCentralWidget(central)
        self.setStatusBar(QStatusBar())

        self.btn_calibrate.clicked.connect(self.calibrateRequested)  # type: ignore[attr-defined]
        self.btn_start.clicked.connect(self.startRequested)  # type: ignore[attr-defined]
        self.btn_stop.clicked.connect(self.stopRequested)  # type: ignore[attr-defined]
        self.btn_export.clicked.connect(self.exportRequested)  # type: ignore[attr-defined]
        self.btn_replay.clicked.connect(self.replayRequested)  # type: ignore[attr-defined]
        self.heatmap.loadRequested.connect(self.loadRequested)  # type: ignore[attr-defined]

    def set_capturing(self, capturing: bool) -> None:
        self.btn_start.setEnabled(not capturing)
        self.btn_stop.setEnabled(capturing)

    def set_calibrated(self, calibrated: bool, score: Optional[int] = None) -> None:
        if calibrated:
            text = "Calibrated" if score is None else f"Calibrated ({score}%)"
            style = "color: #008800; font-weight: bold;"
        else:
            text, style = "Not calibrated", "color: #cc0000; font-weight: bold;"
        self.lbl_calibrated.setText(text)
        try:
            self.lbl_calibrated.setStyleSheet(style)
        except Exception:
            pass

    def show_stats(self, stats: Optional[LiveStats]) -> None:
        self.stats_label.setText(format_stats(stats))

    def show_message(self, text: str, timeout_ms: int = 5000) -> None:
        try:
            self.statusBar().showMessage(text, timeout_ms)
        except Exception:
            pass
