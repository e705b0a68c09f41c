"""
Feature -> screen regression trained from calibration clicks.

'ridge': Standardize -> Polynomial(deg2) -> Ridge
'mlp':   Standardize -> MLPRegressor
Both predict (x, y) jointly as a multi-output regression.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

try:
    import numpy as np  # type: ignore
    from sklearn.linear_model import Ridge  # type: ignore
    from sklearn.neural_network import MLPRegressor  # type: ignore
    from sklearn.pipeline import Pipeline as SKPipeline  # type: ignore
    from sklearn.preprocessing import PolynomialFeatures, StandardScaler  # type: ignore
except Exception:  # pragma: no cover
    np = None  # type: ignore
    Ridge = None  # type: ignore
    MLPRegressor = None  # type: ignore
    SKPipeline = None  # type: ignore
    PolynomialFeatures = None  # type: ignore
    StandardScaler = None  # type: ignore

logger = logging.getLogger(__name__)

ALGORITHMS = ("ridge", "mlp")
MIN_TRAIN_SAMPLES = 6


@dataclass
class Sample:
    feature: Tuple[float, ...]
    screen_xy: Tuple[float, float]


def _build(algorithm: str):
    if algorithm == "ridge":
        return SKPipeline([
            ("scaler", StandardScaler()),
            ("poly", PolynomialFeatures(degree=2, include_bias=False)),
            ("ridge", Ridge(alpha=1.0)),
        ])
    if algorithm == "mlp":
        return SKPipeline([
            ("scaler", StandardScaler()),
            ("mlp", MLPRegressor(hidden_layer_sizes=(32, 32), activation="tanh", max_iter=800, random_state=42)),
        ])
    raise ValueError(f"unknown regression algorithm {algorithm!r}; expected one of {ALGORITHMS}")


class GazeRegressor:
    def __init__(self, algorithm: str = "ridge") -> None:
        if np is None or SKPipeline is None:
            raise RuntimeError("scikit-learn and numpy required for gaze regression")
        _build(algorithm)  # validate early
        self.algorithm = algorithm
        self.samples: List[Sample] = []
        self.model = None
        self.rmse: Optional[float] = None

    @property
    def is_trained(self) -> bool:
        return self.model is not None

    def set_algorithm(self, algorithm: str) -> None:
        if algorithm == self.algorithm:
            return
        _build(algorithm)
        self.algorithm = algorithm
        if self.samples:
            self.train()

    def add(self, feature: Sequence[float], screen_xy: Tuple[float, float]) -> None:
        self.samples.append(Sample(tuple(float(v) for v in feature), (float(screen_xy[0]), float(screen_xy[1]))))

    def train(self) -> bool:
        """Refit on all samples. Returns False while there are too few to fit."""
        if len(self.samples) < MIN_TRAIN_SAMPLES:
            return False
        X = np.asarray([s.feature for s in self.samples], dtype=float)
        Y = np.asarray([s.screen_xy for s in self.samples], dtype=float)
        model = _build(self.algorithm)
        model.fit(X, Y)
        err = np.asarray(model.predict(X)) - Y
        self.rmse = math.sqrt(float(np.mean(np.sum(err * err, axis=1))))
        self.model = model
        logger.debug("Trained %s regressor on %d samples (rmse %.1f px)", self.algorithm, len(self.samples), self.rmse)
        return True

    def predict(self, feature: Sequence[float]) -> Optional[Tuple[float, float]]:
        if self.model is None:
            return None
        pred = np.asarray(self.model.predict(np.asarray([feature], dtype=float)))[0]
        return float(pred[0]), float(pred[1])
