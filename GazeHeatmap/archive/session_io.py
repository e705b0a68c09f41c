"""
Session artifact (de)serialization.

The on-disk format is the browser recorder's JSON document:
``gazePoints``/``mousePoints`` arrays of point records and a
``sessionInfo`` object, camelCase keys throughout. Import validates the whole
document before building anything, so a corrupt file never yields a partial
session.
"""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from GazeHeatmap.capture.models import PointKind, SessionArchive, SessionInfo, TrackingPoint
from GazeHeatmap.core.errors import MalformedArchive

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "webgazer-session-"
REQUIRED_KEYS = ("gazePoints", "mousePoints", "sessionInfo")
INFO_KEYS = ("startTime", "endTime", "duration", "totalGazePoints", "totalMousePoints", "pagesVisited")

# Wire spelling of PointKind; the web recorder calls pointer samples "mouse"
_KIND_TO_WIRE = {PointKind.GAZE: "gaze", PointKind.POINTER: "mouse"}
_WIRE_TO_KIND = {"gaze": PointKind.GAZE, "mouse": PointKind.POINTER, "pointer": PointKind.POINTER}


def export_filename(epoch_ms: Optional[int] = None) -> str:
    if epoch_ms is None:
        epoch_ms = int(time.time() * 1000)
    return f"{FILENAME_PREFIX}{int(epoch_ms)}.json"


# Export --------------------------------------------------------------------
def point_to_dict(p: TrackingPoint) -> Dict[str, Any]:
    return {
        "x": p.x,
        "y": p.y,
        "timestamp": p.timestamp,
        "type": _KIND_TO_WIRE[p.kind],
        "page": p.page,
        "scrollX": p.scroll_x,
        "scrollY": p.scroll_y,
        "viewportWidth": p.viewport_width,
        "viewportHeight": p.viewport_height,
        "absoluteX": p.absolute_x,
        "absoluteY": p.absolute_y,
    }


def archive_to_dict(archive: SessionArchive) -> Dict[str, Any]:
    info = archive.session_info
    return {
        "gazePoints": [point_to_dict(p) for p in archive.gaze_points],
        "mousePoints": [point_to_dict(p) for p in archive.mouse_points],
        "sessionInfo": {
            "startTime": info.start_time,
            "endTime": info.end_time,
            "duration": info.duration,
            "totalGazePoints": info.total_gaze_points,
            "totalMousePoints": info.total_mouse_points,
            "pagesVisited": list(info.pages_visited),
        },
    }


def dumps_archive(archive: SessionArchive) -> str:
    return json.dumps(archive_to_dict(archive), indent=2)


def export_bytes(archive: SessionArchive) -> bytes:
    return dumps_archive(archive).encode("utf-8")


def save_archive(archive: SessionArchive, path: str) -> str:
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps_archive(archive))
    logger.info(
        "Exported session to %s (%d gaze, %d pointer points)",
        path,
        archive.session_info.total_gaze_points,
        archive.session_info.total_mouse_points,
    )
    return path


def write_archive(archive: SessionArchive, directory: str, epoch_ms: Optional[int] = None) -> str:
    """Write ``archive`` under ``directory`` using the standard file name. Returns the path."""
    return save_archive(archive, os.path.join(directory, export_filename(epoch_ms)))


# Import --------------------------------------------------------------------
def _number(rec: Mapping[str, Any], key: str, where: str) -> Union[int, float]:
    v = rec.get(key)
    # bool is an int subclass but never a valid coordinate
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise MalformedArchive(f"{where}: '{key}' must be a number, got {type(v).__name__}")
    return v


def _integer(rec: Mapping[str, Any], key: str, where: str) -> int:
    v = _number(rec, key, where)
    if isinstance(v, float):
        if not v.is_integer():
            raise MalformedArchive(f"{where}: '{key}' must be an integer")
        v = int(v)
    return v


def point_from_dict(rec: Any, default_kind: PointKind, where: str) -> TrackingPoint:
    if not isinstance(rec, Mapping):
        raise MalformedArchive(f"{where}: point record must be an object")
    raw_kind = rec.get("type", rec.get("kind"))
    if raw_kind is None:
        kind = default_kind
    else:
        kind = _WIRE_TO_KIND.get(str(raw_kind).lower())  # type: ignore[assignment]
        if kind is None:
            raise MalformedArchive(f"{where}: unknown point type {raw_kind!r}")
        if kind is not default_kind:
            raise MalformedArchive(f"{where}: {kind.value} point in the {default_kind.value} list")
    page = rec.get("page")
    if not isinstance(page, str):
        raise MalformedArchive(f"{where}: 'page' must be a string")
    # absoluteX/Y are derived; they are recomputed rather than trusted
    return TrackingPoint(
        x=_number(rec, "x", where),
        y=_number(rec, "y", where),
        timestamp=_integer(rec, "timestamp", where),
        kind=kind,
        page=page,
        scroll_x=_number(rec, "scrollX", where),
        scroll_y=_number(rec, "scrollY", where),
        viewport_width=_integer(rec, "viewportWidth", where),
        viewport_height=_integer(rec, "viewportHeight", where),
    )


def _points(doc: Mapping[str, Any], key: str, kind: PointKind) -> Tuple[TrackingPoint, ...]:
    items = doc[key]
    if not isinstance(items, list):
        raise MalformedArchive(f"'{key}' must be an array")
    return tuple(point_from_dict(rec, kind, f"{key}[{i}]") for i, rec in enumerate(items))


def _session_info(raw: Any) -> SessionInfo:
    if not isinstance(raw, Mapping):
        raise MalformedArchive("'sessionInfo' must be an object")
    missing = [k for k in INFO_KEYS if k not in raw]
    if missing:
        raise MalformedArchive(f"sessionInfo is missing {', '.join(missing)}")
    pages = raw["pagesVisited"]
    if not isinstance(pages, list) or not all(isinstance(p, str) for p in pages):
        raise MalformedArchive("'sessionInfo.pagesVisited' must be an array of strings")
    return SessionInfo(
        start_time=_integer(raw, "startTime", "sessionInfo"),
        end_time=_integer(raw, "endTime", "sessionInfo"),
        duration=_integer(raw, "duration", "sessionInfo"),
        total_gaze_points=_integer(raw, "totalGazePoints", "sessionInfo"),
        total_mouse_points=_integer(raw, "totalMousePoints", "sessionInfo"),
        pages_visited=tuple(pages),
    )


def import_archive(raw: Union[str, bytes, bytearray, Mapping[str, Any]]) -> SessionArchive:
    """Parse a session document. Raises MalformedArchive on any structural problem."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedArchive(f"session file is not UTF-8 text: {e}") from e
    if isinstance(raw, str):
        try:
            doc = json.loads(raw)
        except ValueError as e:
            raise MalformedArchive(f"session file is not valid JSON: {e}") from e
    else:
        doc = raw
    if not isinstance(doc, Mapping):
        raise MalformedArchive("session document must be a JSON object")
    missing = [k for k in REQUIRED_KEYS if k not in doc]
    if missing:
        raise MalformedArchive(f"session document is missing {', '.join(missing)}")

    gaze = _points(doc, "gazePoints", PointKind.GAZE)
    mouse = _points(doc, "mousePoints", PointKind.POINTER)
    info = _session_info(doc["sessionInfo"])
    if info.total_gaze_points != len(gaze) or info.total_mouse_points != len(mouse):
        logger.warning(
            "Session totals (%d gaze, %d pointer) differ from point lists (%d, %d)",
            info.total_gaze_points,
            info.total_mouse_points,
            len(gaze),
            len(mouse),
        )
    return SessionArchive(gaze_points=gaze, mouse_points=mouse, session_info=info)


def read_archive(path: str) -> SessionArchive:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise MalformedArchive(f"cannot read {path}: {e}") from e
    archive = import_archive(data)
    logger.info("Loaded session %s (%d pages)", os.path.basename(path), len(archive.session_info.pages_visited))
    return archive


