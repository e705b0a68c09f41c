import pytest

from GazeHeatmap.capture.buffer import PointBuffer
from GazeHeatmap.capture.models import PointKind, TrackingPoint, build_archive, session_duration


def _point(**kw):
    base = dict(
        x=10.0, y=20.0, timestamp=1, kind=PointKind.GAZE, page="/",
        scroll_x=0.0, scroll_y=0.0, viewport_width=1920, viewport_height=1080,
    )
    base.update(kw)
    return TrackingPoint(**base)


def test_absolute_coordinates_add_scroll():
    p = _point(x=100.0, y=50.0, scroll_x=0.0, scroll_y=400.0)
    assert (p.absolute_x, p.absolute_y) == (100.0, 450.0)


def test_session_duration_floors_seconds():
    assert session_duration(1_000, 4_999) == 3
    assert session_duration(5_000, 1_000) == 0


def test_build_archive_counts():
    a = build_archive((_point(),), (), ("/",), 0, 2_500)
    info = a.session_info
    assert info.total_gaze_points == 1
    assert info.total_mouse_points == 0
    assert info.duration == 2
    assert info.pages_visited == ("/",)


def test_buffer_rejects_bad_sizes():
    with pytest.raises(ValueError):
        PointBuffer(0, 0)
    with pytest.raises(ValueError):
        PointBuffer(10, 10)


def test_buffer_eviction_at_default_capacity():
    buf = PointBuffer()
    for i in range(50_001):
        buf.append(i)
    items = buf.snapshot()
    assert len(items) == 40_001
    assert items[0] == 10_000
    assert items[-1] == 50_000


def test_buffer_keeps_order_across_wraparound():
    buf = PointBuffer(10, 4)
    model = []
    for i in range(37):
        if len(model) == 10:
            del model[:6]
        model.append(i)
        buf.append(i)
        assert list(buf) == model


def test_buffer_clear():
    buf = PointBuffer(4, 2)
    for i in range(7):
        buf.append(i)
    buf.clear()
    assert len(buf) == 0
    buf.append("x")
    assert buf.snapshot() == ("x",)
