import importlib.util

from GazeHeatmap.calibration.accuracy import AccuracyResult, AccuracyStatus
from GazeHeatmap.capture.models import LiveStats, PointKind, TrackingPoint, build_archive
from GazeHeatmap.heatmap.renderer import RenderStatus
from GazeHeatmap.ui.accuracy_window import accuracy_message
from GazeHeatmap.ui.calibration_ui import hit_target, target_positions
from GazeHeatmap.ui.main_window import format_stats


def test_core_app_discoverable():
    spec = importlib.util.find_spec("GazeHeatmap.core.app")
    assert spec is not None


def test_target_grid_is_row_major():
    pos = target_positions(1000, 800, margin_ratio=0.1)
    assert pos["Pt1"] == (100, 80)
    assert pos["Pt5"] == (500, 400)
    assert pos["Pt9"] == (900, 720)
    assert hit_target(pos, 505, 395, 15) == "Pt5"
    assert hit_target(pos, 300, 300, 15) is None


def test_accuracy_messages():
    assert accuracy_message(AccuracyResult(AccuracyStatus.MEASURED, 87)) == "Your accuracy measure is 87%"
    assert "Not enough" in accuracy_message(AccuracyResult(AccuracyStatus.INSUFFICIENT_SAMPLES))
    assert "no data" in accuracy_message(AccuracyResult(AccuracyStatus.ENGINE_ERROR))


def test_format_stats():
    assert format_stats(LiveStats(3, 4, ("/", "/cart"), 9)) == "Gaze: 3 | Mouse: 4 | Pages: 2 | Time: 9s"
    assert "--" in format_stats(None)


def test_browser_view_is_a_view_context(qapp):
    from GazeHeatmap.ui.browser_view import BrowserView

    view = BrowserView()
    seen = []
    view.pageChanged.connect(seen.append)
    view.resize(800, 600)
    assert view.current_page() == "/"
    view.navigate("/cart")
    assert view.current_page() == "/cart"
    assert seen == ["/cart"]
    view.navigate("/nowhere")
    assert view.current_page() == "/cart"
    assert view.viewport_size() == (800, 600)
    assert view.scroll_offset() == (0.0, 0.0)


def test_heatmap_overlay_opens_first_visited_page(qapp):
    from GazeHeatmap.ui.browser_view import BrowserView
    from GazeHeatmap.ui.heatmap_overlay import HeatmapOverlay

    view = BrowserView()
    view.resize(800, 600)
    overlay = HeatmapOverlay(view)
    view.show()
    overlay.open_overlay()
    assert overlay.last_result.status is RenderStatus.NO_ARCHIVE

    p = TrackingPoint(
        x=50.0, y=60.0, timestamp=0, kind=PointKind.GAZE, page="/checkout",
        scroll_x=0.0, scroll_y=0.0, viewport_width=800, viewport_height=600,
    )
    overlay.set_archive(build_archive((p,), (), ("/checkout", "/"), 0, 1000))
    assert view.current_page() == "/checkout"
    assert overlay.page == "/checkout"
    assert overlay.last_result.status is RenderStatus.RENDERED
    assert overlay.last_result.gaze_drawn == 1

    overlay.set_archive(build_archive((), (), (), 0, 0))
    assert overlay.last_result.status is RenderStatus.EMPTY_SESSION
    view.close()
