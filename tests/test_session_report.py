import pytest

from GazeHeatmap.analysis.session_report import main, page_counts
from GazeHeatmap.archive.session_io import write_archive
from GazeHeatmap.capture.models import PointKind, TrackingPoint, build_archive


def _pt(kind, page):
    return TrackingPoint(
        x=1.0, y=2.0, timestamp=0, kind=kind, page=page,
        scroll_x=0.0, scroll_y=0.0, viewport_width=800, viewport_height=600,
    )


@pytest.fixture
def archive():
    gaze = (_pt(PointKind.GAZE, "/"), _pt(PointKind.GAZE, "/"), _pt(PointKind.GAZE, "/cart"))
    mouse = (_pt(PointKind.POINTER, "/cart"),)
    return build_archive(gaze, mouse, ("/", "/cart"), 0, 12_000)


def test_page_counts(archive):
    assert page_counts(archive) == {"/": (2, 0), "/cart": (1, 1)}


def test_cli_prints_summary(tmp_path, archive, capsys):
    path = write_archive(archive, str(tmp_path), epoch_ms=1)
    assert main([path]) == 0
    out = capsys.readouterr().out
    assert "Duration:     12s" in out
    assert "/cart" in out


def test_cli_rejects_bad_file(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    assert main([str(bad)]) == 2
    assert "Invalid session file" in capsys.readouterr().out


def test_cli_writes_png(tmp_path, archive):
    pytest.importorskip("matplotlib")
    path = write_archive(archive, str(tmp_path), epoch_ms=2)
    png = tmp_path / "out.png"
    assert main([path, "--png", str(png), "--page", "/cart"]) == 0
    assert png.exists() and png.stat().st_size > 0


def test_cli_writes_page_counts_chart(tmp_path, archive, capsys):
    pytest.importorskip("matplotlib")
    path = write_archive(archive, str(tmp_path), epoch_ms=3)
    png = tmp_path / "counts.png"
    assert main([path, "--counts-png", str(png)]) == 0
    assert png.exists() and png.stat().st_size > 0
    assert str(png) in capsys.readouterr().out
