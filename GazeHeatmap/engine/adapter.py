"""
GazeEngineAdapter: the only way the rest of the app talks to a gaze estimator.

The engine is injected rather than looked up globally, so any object that
satisfies GazeEngine can be used (the webcam engine in the app, a fake in
tests). Starting never raises: an engine that is missing or fails to
initialise leaves the adapter "not ready", which dependents treat as a
source that simply produces no samples.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Protocol

from GazeHeatmap.core.errors import EngineUnavailable

logger = logging.getLogger(__name__)

GazeCallback = Callable[[float, float, int], None]  # (x, y, timestamp_ms)


@dataclass(frozen=True)
class EngineOptions:
    regression_algorithm: str = "ridge"
    tracker_algorithm: str = "facemesh"
    show_video_preview: bool = False
    show_prediction_overlay: bool = False


class GazeEngine(Protocol):
    def configure(self, options: EngineOptions) -> None: ...

    def begin(self) -> None:
        """Start producing samples. Raise EngineUnavailable when that is impossible."""
        ...

    def pause(self) -> None: ...

    def set_sample_callback(self, callback: Optional[GazeCallback]) -> None: ...

    def accuracy(self) -> Optional[float]: ...

    def record_click(self, x: float, y: float) -> None: ...


class GazeEngineAdapter:
    def __init__(self, engine: Optional[GazeEngine] = None) -> None:
        self._engine = engine
        self._options = EngineOptions()
        self._listeners: List[GazeCallback] = []
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def options(self) -> EngineOptions:
        return self._options

    def configure(self, options: EngineOptions) -> None:
        self._options = options
        if self._engine is None:
            return
        try:
            self._engine.configure(options)
        except Exception as e:
            logger.warning("Gaze engine rejected configuration: %s", e)

    def set_visuals(self, show_video_preview: bool, show_prediction_overlay: bool) -> None:
        self.configure(
            replace(
                self._options,
                show_video_preview=bool(show_video_preview),
                show_prediction_overlay=bool(show_prediction_overlay),
            )
        )

    def hide_visuals(self) -> None:
        self.set_visuals(False, False)

    def start(self) -> bool:
        if self._ready:
            return True
        if self._engine is None:
            logger.warning("No gaze engine available; tracking will produce no gaze samples")
            return False
        try:
            self._engine.set_sample_callback(self._dispatch)
            self._engine.configure(self._options)
            self._engine.begin()
        except EngineUnavailable as e:
            logger.warning("Gaze engine unavailable: %s", e)
            return False
        except Exception:
            logger.exception("Gaze engine failed to start")
            return False
        self._ready = True
        logger.info("Gaze engine ready")
        return True

    def pause(self) -> None:
        if self._engine is None or not self._ready:
            return
        try:
            self._engine.pause()
        except Exception as e:
            logger.warning("Gaze engine failed to pause: %s", e)
        self._ready = False

    # Sample listeners --------------------------------------------------
    def on_gaze_sample(self, callback: GazeCallback) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_gaze_listener(self, callback: GazeCallback) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def _dispatch(self, x: float, y: float, timestamp: int) -> None:
        # Copy: a listener may unsubscribe itself while being called
        for cb in list(self._listeners):
            try:
                cb(x, y, timestamp)
            except Exception:
                logger.exception("Gaze listener %r failed; sample skipped for it", cb)

    # Calibration -------------------------------------------------------
    def get_accuracy(self) -> Optional[float]:
        if self._engine is None or not self._ready:
            return None
        try:
            return self._engine.accuracy()
        except Exception as e:
            logger.debug("Engine accuracy unavailable: %s", e)
            return None

    def record_calibration_click(self, x: float, y: float) -> None:
        if self._engine is None or not self._ready:
            return
        try:
            self._engine.record_click(x, y)
        except Exception as e:
            logger.warning("Engine failed to record calibration click: %s", e)
