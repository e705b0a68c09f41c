"""
WebcamGazeEngine: the reference GazeEngine.

Each Qt timer tick reads one webcam frame, extracts iris features, and, once
the regressor has been trained from calibration clicks, emits a screen-space
gaze estimate through the sample callback. Everything runs on the GUI thread.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple

from GazeHeatmap.core.errors import EngineUnavailable
from GazeHeatmap.engine.adapter import EngineOptions, GazeCallback
from GazeHeatmap.engine.camera import Camera
from GazeHeatmap.engine.iris_features import IrisFeatureExtractor
from GazeHeatmap.engine.regression import GazeRegressor

try:
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None

try:
    from PyQt6.QtCore import QTimer
except Exception:  # pragma: no cover
    QTimer = None  # type: ignore

logger = logging.getLogger(__name__)

PREVIEW_WINDOW = "GazeHeatmap camera"
SUPPORTED_TRACKERS = ("facemesh",)
REFIT_EVERY = 5  # one calibration target's worth of clicks


class WebcamGazeEngine:
    def __init__(
        self,
        camera_index: int = 0,
        fps: int = 30,
        camera: Optional[Camera] = None,
        extractor_factory: Optional[Callable[[], IrisFeatureExtractor]] = None,
        refit_every: int = REFIT_EVERY,
    ) -> None:
        self.fps = max(1, int(fps))
        self.refit_every = max(1, int(refit_every))
        self.camera = camera or Camera(index=camera_index, target_fps=self.fps)
        self._extractor_factory = extractor_factory or IrisFeatureExtractor
        self.extractor: Optional[IrisFeatureExtractor] = None
        self.regressor: Optional[GazeRegressor] = None
        self.options = EngineOptions()
        self._callback: Optional[GazeCallback] = None
        self._timer = None
        self._overlay = None
        self._last_feature: Optional[Tuple[float, ...]] = None
        self._unfitted_clicks = 0

    # GazeEngine ---------------------------------------------------------
    def configure(self, options: EngineOptions) -> None:
        if options.tracker_algorithm not in SUPPORTED_TRACKERS:
            logger.warning("Tracker %r not supported; using facemesh", options.tracker_algorithm)
        if self.regressor is not None:
            self.regressor.set_algorithm(options.regression_algorithm)
        was_previewing = self.options.show_video_preview
        self.options = options
        if was_previewing and not options.show_video_preview:
            self._close_preview()
        self._sync_overlay()

    def set_sample_callback(self, callback: Optional[GazeCallback]) -> None:
        self._callback = callback

    def begin(self) -> None:
        if self._timer is not None:
            return
        if QTimer is None:
            raise EngineUnavailable("PyQt6 is required to drive the webcam engine.")
        try:
            self.regressor = GazeRegressor(self.options.regression_algorithm)
        except RuntimeError as e:
            raise EngineUnavailable(str(e)) from e
        self.extractor = self._extractor_factory()
        try:
            self.camera.open()
        except EngineUnavailable:
            self.extractor.close()
            self.extractor = None
            raise
        self._timer = QTimer()
        self._timer.timeout.connect(self._tick)
        self._timer.start(int(1000 / self.fps))
        self._sync_overlay()

    def pause(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        self.camera.close()
        if self.extractor is not None:
            self.extractor.close()
            self.extractor = None
        self._close_preview()
        if self._overlay is not None:
            self._overlay.hide()

    def accuracy(self) -> Optional[float]:
        """Training RMSE in pixels, or None before the first fit."""
        return None if self.regressor is None else self.regressor.rmse

    def record_click(self, x: float, y: float) -> None:
        if self.regressor is None or self._last_feature is None:
            logger.debug("Calibration click at (%.0f, %.0f) ignored: no eye features yet", x, y)
            return
        self.regressor.add(self._last_feature, (x, y))
        self._unfitted_clicks += 1
        # After the first fit, refit once per refit_every clicks
        if self._unfitted_clicks >= self.refit_every or not self.regressor.is_trained:
            if self.regressor.train():
                self._unfitted_clicks = 0

    # Frame loop ---------------------------------------------------------
    def _tick(self) -> None:
        frame = self.camera.read()
        if frame is None or self.extractor is None:
            return
        feats = self.extractor.process(frame, debug=self.options.show_video_preview)
        if self.options.show_video_preview and cv2 is not None:
            try:
                cv2.imshow(PREVIEW_WINDOW, frame)
                cv2.waitKey(1)
            except Exception:
                pass
        if feats is None:
            return
        self._last_feature = feats.vector()
        pred = self.regressor.predict(self._last_feature) if self.regressor is not None else None
        if pred is None:
            return
        if self._overlay is not None and self.options.show_prediction_overlay:
            self._overlay.update_gaze(pred)
        if self._callback is not None:
            self._callback(pred[0], pred[1], int(time.time() * 1000))

    def _sync_overlay(self) -> None:
        if self._timer is None:
            return
        if self.options.show_prediction_overlay:
            if self._overlay is None:
                from GazeHeatmap.ui.overlay import PredictionOverlay

                self._overlay = PredictionOverlay()
            self._overlay.show()
        elif self._overlay is not None:
            self._overlay.hide()

    def _close_preview(self) -> None:
        if cv2 is None:
            return
        try:
            cv2.destroyWindow(PREVIEW_WINDOW)
        except Exception:
            pass
