import pytest

from GazeHeatmap.calibration.accuracy import compute_accuracy, sample_scores
from GazeHeatmap.core.errors import InsufficientSamples

VIEWPORT = (1920, 1080)
CENTER = (960.0, 540.0)


def test_all_samples_at_center_score_100():
    assert compute_accuracy([CENTER] * 50, VIEWPORT) == 100


def test_samples_at_half_height_score_0():
    assert compute_accuracy([(960.0, 1080.0)] * 50, VIEWPORT) == 0
    assert compute_accuracy([(0.0, 0.0)] * 50, VIEWPORT) == 0


def test_quarter_height_scores_half():
    assert compute_accuracy([(960.0, 540.0 + 270.0)] * 50, VIEWPORT) == 50


def test_one_pixel_tolerance():
    scores = sample_scores([(961.0, 540.0), (962.0, 540.0)], VIEWPORT)
    assert scores[0] == 100.0
    assert scores[1] < 100.0


def test_insufficient_samples():
    with pytest.raises(InsufficientSamples) as ei:
        compute_accuracy([CENTER] * 49, VIEWPORT)
    assert ei.value.available == 49
    assert ei.value.required == 50


def test_only_most_recent_window_counts():
    samples = [(0.0, 0.0)] * 10 + [CENTER] * 50
    assert compute_accuracy(samples, VIEWPORT) == 100


def test_rounds_half_up():
    # 49 samples at 100 and one at 25 -> mean 98.5
    samples = [CENTER] * 49 + [(960.0, 540.0 + 405.0)]
    assert compute_accuracy(samples, VIEWPORT) == 99
