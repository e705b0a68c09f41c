import json
import logging

import pytest

from GazeHeatmap.archive.session_io import (
    archive_to_dict,
    dumps_archive,
    export_bytes,
    export_filename,
    import_archive,
    read_archive,
    write_archive,
)
from GazeHeatmap.capture.models import PointKind, TrackingPoint, build_archive
from GazeHeatmap.core.errors import MalformedArchive


def _pt(kind, page, x, y, ts, sy=0.0):
    return TrackingPoint(
        x=x, y=y, timestamp=ts, kind=kind, page=page,
        scroll_x=0.0, scroll_y=sy, viewport_width=1440, viewport_height=900,
    )


@pytest.fixture
def archive():
    gaze = (
        _pt(PointKind.GAZE, "/", 100.5, 200.25, 1_700_000_000_100),
        _pt(PointKind.GAZE, "/cart", 640.0, 80.0, 1_700_000_000_200, sy=350.0),
    )
    mouse = (_pt(PointKind.POINTER, "/", 12.0, 34.0, 1_700_000_000_150),)
    return build_archive(gaze, mouse, ("/", "/cart"), 1_700_000_000_000, 1_700_000_004_900)


def test_round_trip_is_identity(archive):
    assert import_archive(export_bytes(archive)) == archive
    assert import_archive(dumps_archive(archive)) == archive


def test_wire_format(archive):
    doc = json.loads(dumps_archive(archive))
    assert set(doc) == {"gazePoints", "mousePoints", "sessionInfo"}
    g = doc["gazePoints"][1]
    assert g["type"] == "gaze"
    assert g["absoluteY"] == 430.0
    assert doc["mousePoints"][0]["type"] == "mouse"
    assert doc["sessionInfo"]["duration"] == 4
    assert doc["sessionInfo"]["pagesVisited"] == ["/", "/cart"]
    assert '\n  "gazePoints"' in dumps_archive(archive)


def test_export_filename():
    assert export_filename(1_700_000_000_000) == "webgazer-session-1700000000000.json"
    assert export_filename().startswith("webgazer-session-")


def test_write_and_read(tmp_path, archive):
    path = write_archive(archive, str(tmp_path), epoch_ms=42)
    assert path.endswith("webgazer-session-42.json")
    assert read_archive(path) == archive


def test_read_missing_file(tmp_path):
    with pytest.raises(MalformedArchive):
        read_archive(str(tmp_path / "nope.json"))


def _doc(archive):
    return archive_to_dict(archive)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("gazePoints"),
        lambda d: d.__setitem__("mousePoints", {}),
        lambda d: d["gazePoints"][0].__setitem__("x", "100"),
        lambda d: d["gazePoints"][0].__setitem__("y", True),
        lambda d: d["gazePoints"][0].pop("page"),
        lambda d: d["gazePoints"][0].__setitem__("timestamp", 1.5),
        lambda d: d["gazePoints"][0].__setitem__("type", "mouse"),
        lambda d: d["mousePoints"][0].__setitem__("type", "blink"),
        lambda d: d["sessionInfo"].pop("startTime"),
        lambda d: d["sessionInfo"].__setitem__("pagesVisited", "/"),
        lambda d: d.__setitem__("sessionInfo", []),
    ],
)
def test_malformed_documents_rejected(archive, mutate):
    doc = _doc(archive)
    mutate(doc)
    with pytest.raises(MalformedArchive):
        import_archive(json.dumps(doc))


def test_not_json_or_not_object():
    with pytest.raises(MalformedArchive):
        import_archive("{not json")
    with pytest.raises(MalformedArchive):
        import_archive("[]")
    with pytest.raises(MalformedArchive):
        import_archive(b"\xff\xfe")


def test_accepts_kind_spelling_and_recomputes_absolute(archive):
    doc = _doc(archive)
    rec = doc["mousePoints"][0]
    rec.pop("type")
    rec["kind"] = "pointer"
    rec["absoluteX"] = -999
    loaded = import_archive(doc)
    assert loaded.mouse_points[0].kind is PointKind.POINTER
    assert loaded.mouse_points[0].absolute_x == 12.0


def test_total_mismatch_warns_but_loads(archive, caplog):
    doc = _doc(archive)
    doc["sessionInfo"]["totalGazePoints"] = 99
    with caplog.at_level(logging.WARNING, logger="GazeHeatmap.archive.session_io"):
        loaded = import_archive(doc)
    assert len(loaded.gaze_points) == 2
    assert loaded.session_info.total_gaze_points == 99
    assert "differ" in caplog.text
