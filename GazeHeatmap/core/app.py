from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Tuple

try:
    from PyQt6.QtCore import QTimer
    from PyQt6.QtGui import QGuiApplication
    from PyQt6.QtWidgets import QApplication, QFileDialog, QMessageBox
except Exception:  # pragma: no cover
    QApplication = None  # type: ignore
    QTimer = None  # type: ignore

try:
    import cv2  # type: ignore
except Exception:
    cv2 = None

from GazeHeatmap.archive.session_io import export_filename, read_archive, save_archive
from GazeHeatmap.calibration.accuracy import AccuracyResult
from GazeHeatmap.calibration.controller import CalibrationController, CalibrationPhase
from GazeHeatmap.capture.models import SessionArchive
from GazeHeatmap.capture.pipeline import PointCapturePipeline
from GazeHeatmap.core.errors import MalformedArchive
from GazeHeatmap.core.logging_setup import configure_logging
from GazeHeatmap.core.settings import SettingsManager
from GazeHeatmap.engine.adapter import EngineOptions, GazeEngine, GazeEngineAdapter
from GazeHeatmap.engine.webcam_engine import WebcamGazeEngine
from GazeHeatmap.ui.accuracy_window import AccuracyWindow
from GazeHeatmap.ui.calibration_ui import CalibrationScreen
from GazeHeatmap.ui.main_window import MainWindow

logger = logging.getLogger(__name__)

STATS_INTERVAL_MS = 1000


class AppCore:
    def __init__(self, settings: Optional[SettingsManager] = None, engine: Optional[GazeEngine] = None) -> None:
        self.settings = settings or SettingsManager()
        configure_logging(self.settings.log_level())

        self.engine = engine or WebcamGazeEngine(
            camera_index=self.settings.camera_index(),
            fps=self.settings.camera_fps(),
            refit_every=self.settings.clicks_per_target(),
        )
        self.adapter = GazeEngineAdapter(self.engine)
        self.adapter.configure(
            EngineOptions(
                regression_algorithm=self.settings.regression_algorithm(),
                tracker_algorithm=self.settings.tracker_algorithm(),
            )
        )

        self.win = MainWindow()
        self.pipeline = PointCapturePipeline(
            self.adapter,
            self.win.browser,
            capacity=self.settings.buffer_capacity(),
            retain=self.settings.retain_count(),
            pointer_throttle_ms=self.settings.pointer_throttle_ms(),
        )
        self.win.browser.set_pointer_sink(self.pipeline.on_pointer_move)

        self.controller = CalibrationController(
            self.adapter,
            self._screen_size,
            clicks_per_target=self.settings.clicks_per_target(),
            measure_ms=self.settings.measure_ms(),
            accuracy_window=self.settings.accuracy_window(),
        )
        self.calibration_screen = CalibrationScreen(self.controller)
        self.controller.on_accuracy_measured(self._on_accuracy)
        self.controller.on_calibrated(self._on_calibrated)
        self.controller.on_phase_changed(self._on_calibration_phase)
        self._accuracy_window: Optional[AccuracyWindow] = None

        self.session_active = False
        self.last_archive: Optional[SessionArchive] = None
        self.replay_archive: Optional[SessionArchive] = None
        self._fresh_archive = False

        self.stats_timer = QTimer()
        self.stats_timer.setInterval(STATS_INTERVAL_MS)
        self.stats_timer.timeout.connect(self._update_stats)  # type: ignore[attr-defined]

        self.win.calibrateRequested.connect(self.start_calibration)  # type: ignore[attr-defined]
        self.win.startRequested.connect(self.start_session)  # type: ignore[attr-defined]
        self.win.stopRequested.connect(self.stop_session)  # type: ignore[attr-defined]
        self.win.exportRequested.connect(self.export_session)  # type: ignore[attr-defined]
        self.win.loadRequested.connect(self.load_session)  # type: ignore[attr-defined]
        self.win.replayRequested.connect(self.open_heatmap)  # type: ignore[attr-defined]

    def _screen_size(self) -> Tuple[int, int]:
        try:
            geom = QGuiApplication.primaryScreen().geometry()
            return int(geom.width()), int(geom.height())
        except Exception:
            return self.calibration_screen.width(), self.calibration_screen.height()

    # Engine / calibration ------------------------------------------------
    def _ensure_engine(self) -> bool:
        if self.adapter.ready:
            return True
        ok = self.adapter.start()
        if not ok:
            self.win.show_message("Gaze engine unavailable; only pointer movement will be recorded.")
        return ok

    def start_calibration(self) -> None:
        self._ensure_engine()
        if self.controller.phase is not CalibrationPhase.IDLE:
            self.controller.cancel()
        self.calibration_screen.open()

    def _on_calibration_phase(self, phase: CalibrationPhase) -> None:
        if phase is CalibrationPhase.CALIBRATING:
            self.win.set_calibrated(False)
        self._sync_capture()

    def _on_accuracy(self, result: AccuracyResult) -> None:
        win = AccuracyWindow(result, self._screen_size(), parent=self.calibration_screen)
        win.accepted_calibration.connect(self.controller.accept)  # type: ignore[attr-defined]
        win.recalibrate.connect(self.controller.reject)  # type: ignore[attr-defined]
        self._accuracy_window = win
        win.show()

    def _on_calibrated(self) -> None:
        score = self.controller.result.score if self.controller.result is not None else None
        self.win.set_calibrated(True, score)
        self.win.show_message("Calibration accepted; gaze tracking continues in the background.")
        self._sync_capture()

    # Session -------------------------------------------------------------
    def _sync_capture(self) -> None:
        """Record only while a session is active and calibration has been accepted."""
        if self.session_active and self.controller.calibrated:
            if not self.pipeline.is_capturing:
                self.pipeline.start_capture()
                logger.info("Capture running")
        elif self.pipeline.is_capturing:
            # suspended, not ended: the buffers are kept for the rest of the session
            self.pipeline.stop_capture()
            logger.info("Capture suspended until calibration is accepted")

    def start_session(self) -> None:
        self._ensure_engine()
        self.pipeline.clear()
        self.session_active = True
        self._sync_capture()
        self.win.set_capturing(True)
        self.stats_timer.start()
        self._update_stats()
        if not self.controller.calibrated:
            self.win.show_message("Calibrate to begin recording this session.")
        logger.info("Session started (calibrated=%s)", self.controller.calibrated)

    def stop_session(self) -> None:
        self.stats_timer.stop()
        self.session_active = False
        self._sync_capture()
        self.last_archive = self.pipeline.export()
        self._fresh_archive = True
        self.win.set_capturing(False)
        self.win.show_stats(self.pipeline.get_live_stats())
        info = self.last_archive.session_info
        self.win.show_message(f"Session stopped: {info.total_gaze_points} gaze, {info.total_mouse_points} mouse points")

    def _update_stats(self) -> None:
        self.win.show_stats(self.pipeline.get_live_stats())

    def export_session(self) -> None:
        archive = self.pipeline.export() if self.session_active else self.last_archive
        if archive is None:
            archive = self.pipeline.export()
        default = os.path.join(self.settings.export_directory(), export_filename())
        path, _ = QFileDialog.getSaveFileName(self.win, "Export Session", default, "JSON Files (*.json)")
        if not path:
            return
        try:
            save_archive(archive, path)
        except OSError as e:
            logger.error("Export failed: %s", e)
            QMessageBox.warning(self.win, "Export failed", str(e))
            return
        self.settings.set_export_directory(os.path.dirname(path))
        self.win.show_message(f"Session exported to {path}")

    # Replay --------------------------------------------------------------
    def load_session(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self.win, "Load Session", self.settings.export_directory(), "JSON Files (*.json)"
        )
        if not path:
            return
        try:
            archive = read_archive(path)
        except MalformedArchive as e:
            logger.warning("Rejected session file %s: %s", path, e)
            QMessageBox.warning(
                self.win, "Invalid session", f"Failed to load session data. Please check the file format.\n\n{e}"
            )
            return
        self.replay_archive = archive
        self._fresh_archive = False
        self.win.heatmap.set_archive(archive)
        self.win.heatmap.open_overlay()

    def open_heatmap(self) -> None:
        # The most recently stopped session replaces whatever was shown before
        if self._fresh_archive and self.last_archive is not None:
            self.replay_archive = self.last_archive
            self._fresh_archive = False
            self.win.heatmap.set_archive(self.last_archive)
        self.win.heatmap.open_overlay()

    def shutdown(self) -> None:
        self.stats_timer.stop()
        self.session_active = False
        self.pipeline.stop_capture()
        self.adapter.pause()
        try:
            self.settings.save()
        except OSError as e:
            logger.warning("Could not save settings: %s", e)


def main() -> int:
    if QApplication is None:
        print("PyQt6 is not installed. Please install dependencies.")
        return 1
    app = QApplication(sys.argv)
    core = AppCore()
    core.win.show()
    code = app.exec()
    try:
        core.shutdown()
        if cv2 is not None:
            cv2.destroyAllWindows()
    except Exception:
        pass
    return int(code)


if __name__ == "__main__":
    raise SystemExit(main())
