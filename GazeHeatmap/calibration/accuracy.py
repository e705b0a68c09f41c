"""
Accuracy scoring for the post-calibration fixation check.

The user stares at the viewport centre; each of the last N gaze estimates is
scored by its distance from the centre relative to half the viewport height,
and the scores are averaged.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np  # type: ignore

from GazeHeatmap.core.errors import InsufficientSamples

ACCURACY_WINDOW = 50
CENTER_TOLERANCE_PX = 1.0


class AccuracyStatus(str, Enum):
    MEASURED = "measured"
    INSUFFICIENT_SAMPLES = "insufficient_samples"
    ENGINE_ERROR = "engine_error"


@dataclass(frozen=True)
class AccuracyResult:
    status: AccuracyStatus
    score: int = 0
    samples: Tuple[Tuple[float, float], ...] = field(default_factory=tuple)

    @property
    def measured(self) -> bool:
        return self.status is AccuracyStatus.MEASURED


def sample_scores(samples: Sequence[Tuple[float, float]], viewport: Tuple[int, int]) -> np.ndarray:
    w, h = float(viewport[0]), float(viewport[1])
    half = h / 2.0
    pts = np.asarray(samples, dtype=float).reshape(-1, 2)
    dist = np.hypot(pts[:, 0] - w / 2.0, pts[:, 1] - half)
    if half <= 0:
        return np.where(dist <= CENTER_TOLERANCE_PX, 100.0, 0.0)
    linear = 100.0 - (dist / half) * 100.0
    return np.where(dist <= CENTER_TOLERANCE_PX, 100.0, np.where(dist <= half, linear, 0.0))


def compute_accuracy(
    samples: Sequence[Tuple[float, float]],
    viewport: Tuple[int, int],
    window: int = ACCURACY_WINDOW,
) -> int:
    """Return the 0-100 score of the most recent ``window`` samples.

    Raises InsufficientSamples when fewer than ``window`` are available; a
    partial window is never scored.
    """
    if len(samples) < window:
        raise InsufficientSamples(len(samples), window)
    recent: List[Tuple[float, float]] = list(samples)[-window:]
    mean = float(np.mean(sample_scores(recent, viewport)))
    # Round half up; np.round would round half to even
    return int(math.floor(mean + 0.5))
