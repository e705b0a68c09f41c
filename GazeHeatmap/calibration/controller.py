"""
CalibrationController: 9-target click calibration followed by an accuracy
check, as an explicit state machine.

    IDLE -> CALIBRATING -> MEASURING_ACCURACY -> DONE
                 ^                 |
                 +---- reject -----+

It is advanced only by discrete events: start(), click(), the measurement
timer elapsing, accept()/reject(). Waiting is delegated to an injected
scheduler (a Qt single-shot timer in the app) so gaze capture keeps running
on the event loop during the pause and tests can fire the timer by hand.
"""
from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Tuple

from GazeHeatmap.calibration.accuracy import (
    ACCURACY_WINDOW,
    AccuracyResult,
    AccuracyStatus,
    compute_accuracy,
)
from GazeHeatmap.core.errors import InsufficientSamples
from GazeHeatmap.engine.adapter import GazeEngineAdapter

logger = logging.getLogger(__name__)

TARGET_NAMES: Tuple[str, ...] = tuple(f"Pt{i}" for i in range(1, 10))
CENTER_TARGET = "Pt5"
CLICKS_PER_TARGET = 5
MEASURE_MS = 5000

Scheduler = Callable[[int, Callable[[], None]], None]


def qt_single_shot(delay_ms: int, callback: Callable[[], None]) -> None:
    from PyQt6.QtCore import QTimer

    QTimer.singleShot(int(delay_ms), callback)


class CalibrationPhase(str, Enum):
    IDLE = "idle"
    CALIBRATING = "calibrating"
    MEASURING_ACCURACY = "measuring_accuracy"
    DONE = "done"


class CalibrationState:
    """Per-target saturating click counters."""

    def __init__(self, clicks_per_target: int = CLICKS_PER_TARGET) -> None:
        self.clicks_per_target = int(clicks_per_target)
        self.counts: Dict[str, int] = {name: 0 for name in TARGET_NAMES}

    def reset(self) -> None:
        for name in self.counts:
            self.counts[name] = 0

    def is_complete(self, name: str) -> bool:
        return self.counts[name] >= self.clicks_per_target

    @property
    def completed_count(self) -> int:
        return sum(1 for name in TARGET_NAMES if self.is_complete(name))

    @property
    def all_complete(self) -> bool:
        return self.completed_count == len(TARGET_NAMES)

    def increment(self, name: str) -> bool:
        if self.is_complete(name):
            return False
        self.counts[name] = min(self.clicks_per_target, self.counts[name] + 1)
        return True

    def opacity(self, name: str) -> float:
        # 0.2 at zero clicks, fully opaque at five
        return min(1.0, 0.2 * self.counts[name] + 0.2)

    def is_visible(self, name: str) -> bool:
        if name != CENTER_TARGET:
            return True
        others = sum(1 for n in TARGET_NAMES if n != CENTER_TARGET and self.is_complete(n))
        return others >= len(TARGET_NAMES) - 1


class CalibrationController:
    def __init__(
        self,
        adapter: GazeEngineAdapter,
        viewport_size: Callable[[], Tuple[int, int]],
        *,
        scheduler: Optional[Scheduler] = None,
        clicks_per_target: int = CLICKS_PER_TARGET,
        measure_ms: int = MEASURE_MS,
        accuracy_window: int = ACCURACY_WINDOW,
    ) -> None:
        self.adapter = adapter
        self.viewport_size = viewport_size
        self.scheduler = scheduler or qt_single_shot
        self.measure_ms = int(measure_ms)
        self.accuracy_window = int(accuracy_window)
        self.state = CalibrationState(clicks_per_target)
        self.phase = CalibrationPhase.IDLE
        self.result: Optional[AccuracyResult] = None
        self.calibrated = False
        self._window: Deque[Tuple[float, float]] = deque(maxlen=self.accuracy_window)
        self._measure_token = 0
        self._sample_error: Optional[Exception] = None
        self._phase_listeners: List[Callable[[CalibrationPhase], None]] = []
        self._accuracy_listeners: List[Callable[[AccuracyResult], None]] = []
        self._calibrated_listeners: List[Callable[[], None]] = []

    # Listener registration --------------------------------------------
    def on_phase_changed(self, cb: Callable[[CalibrationPhase], None]) -> None:
        self._phase_listeners.append(cb)

    def on_accuracy_measured(self, cb: Callable[[AccuracyResult], None]) -> None:
        self._accuracy_listeners.append(cb)

    def on_calibrated(self, cb: Callable[[], None]) -> None:
        self._calibrated_listeners.append(cb)

    def _set_phase(self, phase: CalibrationPhase) -> None:
        self.phase = phase
        logger.info("Calibration phase: %s", phase.value)
        for cb in list(self._phase_listeners):
            cb(phase)

    # Events ------------------------------------------------------------
    def start(self) -> None:
        if self.phase is not CalibrationPhase.IDLE:
            return
        self.state.reset()
        self.result = None
        self.calibrated = False
        self.adapter.set_visuals(True, True)
        self._set_phase(CalibrationPhase.CALIBRATING)

    def click(self, name: str, x: float, y: float) -> bool:
        """Register a click on target ``name`` at screen position (x, y)."""
        if self.phase is not CalibrationPhase.CALIBRATING:
            return False
        if name not in self.state.counts:
            raise KeyError(name)
        if not self.state.increment(name):
            return False
        self.adapter.record_calibration_click(x, y)
        if self.state.all_complete:
            self._begin_measurement()
        return True

    def _begin_measurement(self) -> None:
        self._window.clear()
        self._sample_error = None
        self._measure_token += 1
        token = self._measure_token
        self.adapter.on_gaze_sample(self._collect)
        self._set_phase(CalibrationPhase.MEASURING_ACCURACY)
        self.scheduler(self.measure_ms, lambda: self._on_measure_elapsed(token))

    def _collect(self, x: float, y: float, timestamp: int) -> None:
        try:
            self._window.append((float(x), float(y)))
        except (TypeError, ValueError) as e:
            self._sample_error = e

    def _on_measure_elapsed(self, token: int) -> None:
        if token != self._measure_token or self.phase is not CalibrationPhase.MEASURING_ACCURACY:
            return
        self.adapter.remove_gaze_listener(self._collect)
        self.result = self._measure()
        logger.info("Calibration accuracy: %s (%d%%)", self.result.status.value, self.result.score)
        for cb in list(self._accuracy_listeners):
            cb(self.result)

    def _measure(self) -> AccuracyResult:
        samples = tuple(self._window)
        if not self.adapter.ready or self._sample_error is not None:
            return AccuracyResult(AccuracyStatus.ENGINE_ERROR, 0, samples)
        try:
            score = compute_accuracy(samples, self.viewport_size(), self.accuracy_window)
        except InsufficientSamples as e:
            logger.warning("Accuracy undetermined: %s", e)
            return AccuracyResult(AccuracyStatus.INSUFFICIENT_SAMPLES, 0, samples)
        except Exception:
            logger.exception("Accuracy measurement failed")
            return AccuracyResult(AccuracyStatus.ENGINE_ERROR, 0, samples)
        return AccuracyResult(AccuracyStatus.MEASURED, score, samples)

    def accept(self) -> None:
        if self.phase is not CalibrationPhase.MEASURING_ACCURACY:
            return
        self._measure_token += 1
        self.adapter.remove_gaze_listener(self._collect)
        # Tracking continues, just without the camera preview and marker
        self.adapter.hide_visuals()
        self.calibrated = True
        self._set_phase(CalibrationPhase.DONE)
        for cb in list(self._calibrated_listeners):
            cb()

    def reject(self) -> None:
        if self.phase is not CalibrationPhase.MEASURING_ACCURACY:
            return
        self._measure_token += 1
        self.adapter.remove_gaze_listener(self._collect)
        self.state.reset()
        self.result = None
        self._set_phase(CalibrationPhase.CALIBRATING)

    def cancel(self) -> None:
        if self.phase is CalibrationPhase.IDLE:
            return
        self._measure_token += 1
        self.adapter.remove_gaze_listener(self._collect)
        self.adapter.hide_visuals()
        self.state.reset()
        self._set_phase(CalibrationPhase.IDLE)
