import pytest

from GazeHeatmap.capture.models import PointKind, TrackingPoint, build_archive
from GazeHeatmap.heatmap.renderer import (
    HeatmapFilters,
    HeatmapRenderer,
    RenderStatus,
    points_for_page,
    to_screen,
)


def _pt(kind, page, x, y, sy=0.0):
    return TrackingPoint(
        x=x, y=y, timestamp=0, kind=kind, page=page,
        scroll_x=0.0, scroll_y=sy, viewport_width=200, viewport_height=200,
    )


@pytest.fixture
def archive():
    gaze = (
        _pt(PointKind.GAZE, "/", 100.0, 100.0),
        _pt(PointKind.GAZE, "/b", 10.0, 10.0),
        _pt(PointKind.GAZE, "/", 100.0, 100.0, sy=200.0),
    )
    mouse = (_pt(PointKind.POINTER, "/b", 50.0, 50.0),)
    return build_archive(gaze, mouse, ("/", "/b"), 0, 1000)


def test_to_screen_subtracts_current_scroll():
    p = _pt(PointKind.GAZE, "/", 100.0, 50.0, sy=400.0)
    assert to_screen(p, (0.0, 300.0)) == (100.0, 150.0)


def test_working_set_filters_by_page(archive):
    r = HeatmapRenderer()
    gaze, mouse = r.working_set(archive, "/")
    assert len(gaze) == 2 and mouse == []
    gaze, mouse = r.working_set(archive, "/b")
    assert [p.x for p in gaze] == [10.0]
    assert [p.x for p in mouse] == [50.0]
    assert points_for_page(archive.gaze_points, "/b") == gaze
    assert r.working_set(archive, "/missing") == ([], [])


def test_working_set_respects_filters(archive):
    r = HeatmapRenderer()
    gaze, mouse = r.working_set(archive, "/b", HeatmapFilters(show_gaze=False))
    assert gaze == [] and len(mouse) == 1
    gaze, mouse = r.working_set(archive, "/b", HeatmapFilters(show_mouse=False))
    assert len(gaze) == 1 and mouse == []


def test_page_index_rebuilt_for_new_archive(archive):
    r = HeatmapRenderer()
    r.working_set(archive, "/")
    other = build_archive((_pt(PointKind.GAZE, "/", 1.0, 1.0),), (), ("/",), 0, 0)
    gaze, _ = r.working_set(other, "/")
    assert [p.x for p in gaze] == [1.0]


def _image(qapp, w=200, h=200):
    from PyQt6.QtGui import QImage

    return QImage(w, h, QImage.Format.Format_ARGB32_Premultiplied)


def test_render_statuses(qapp, archive):
    r = HeatmapRenderer()
    img = _image(qapp)
    assert r.render(img, None, "/").status is RenderStatus.NO_ARCHIVE
    empty = build_archive((), (), (), 0, 0)
    res = r.render(img, empty, "/")
    assert res.status is RenderStatus.EMPTY_SESSION
    assert img.pixelColor(100, 100).alpha() == 0


def test_render_draws_only_current_page(qapp, archive):
    r = HeatmapRenderer()
    img = _image(qapp)
    res = r.render(img, archive, "/", scroll=(0.0, 0.0))
    assert res.status is RenderStatus.RENDERED
    # the second "/" point sits at absolute y=300, beyond the blob margin
    assert (res.gaze_drawn, res.mouse_drawn) == (1, 0)
    assert img.pixelColor(100, 100).alpha() > 0
    assert img.pixelColor(5, 195).alpha() == 0


def test_render_applies_scroll_and_is_idempotent(qapp, archive):
    r = HeatmapRenderer()
    img = _image(qapp)
    r.render(img, archive, "/", scroll=(0.0, 200.0))
    first = img.pixelColor(100, 100).rgba()
    assert img.pixelColor(100, 100).alpha() > 0
    r.render(img, archive, "/", scroll=(0.0, 200.0))
    assert img.pixelColor(100, 100).rgba() == first


def test_render_with_filters_off(qapp, archive):
    r = HeatmapRenderer()
    img = _image(qapp)
    res = r.render(img, archive, "/", HeatmapFilters(show_gaze=False, show_mouse=False))
    assert res.status is RenderStatus.RENDERED
    assert img.pixelColor(100, 100).alpha() == 0
