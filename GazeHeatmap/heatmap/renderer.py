"""
Heatmap replay: draws an archive's points for one page as radial gradient
blobs, gaze in warm colours and pointer in cool ones, composited with the
screen blend mode so overlapping blobs brighten.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from GazeHeatmap.capture.models import SessionArchive, TrackingPoint

try:
    from PyQt6.QtCore import QPointF, Qt
    from PyQt6.QtGui import QBrush, QColor, QImage, QPainter, QRadialGradient
except Exception:  # pragma: no cover
    QImage = None  # type: ignore

logger = logging.getLogger(__name__)

# (stop, (r, g, b, alpha 0..1))
Stops = Tuple[Tuple[float, Tuple[int, int, int, float]], ...]

GAZE_RADIUS = 60
GAZE_STOPS: Stops = (
    (0.0, (255, 0, 0, 1.0)),
    (0.2, (255, 50, 0, 0.95)),
    (0.5, (255, 150, 0, 0.85)),
    (0.8, (255, 255, 0, 0.7)),
    (1.0, (255, 255, 0, 0.3)),
)
POINTER_RADIUS = 50
POINTER_STOPS: Stops = (
    (0.0, (59, 130, 246, 1.0)),
    (0.2, (34, 211, 238, 0.9)),
    (0.5, (100, 180, 255, 0.8)),
    (0.8, (147, 197, 253, 0.65)),
    (1.0, (200, 230, 255, 0.35)),
)


class RenderStatus(str, Enum):
    NO_ARCHIVE = "no_archive"
    EMPTY_SESSION = "empty_session"
    RENDERED = "rendered"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class HeatmapFilters:
    show_gaze: bool = True
    show_mouse: bool = True


@dataclass(frozen=True)
class RenderResult:
    status: RenderStatus
    gaze_drawn: int = 0
    mouse_drawn: int = 0


def to_screen(point: TrackingPoint, scroll: Tuple[float, float]) -> Tuple[float, float]:
    return point.absolute_x - scroll[0], point.absolute_y - scroll[1]


def points_for_page(points: Sequence[TrackingPoint], page: str) -> List[TrackingPoint]:
    return [p for p in points if p.page == page]


class HeatmapRenderer:
    def __init__(self) -> None:
        self._archive: Optional[SessionArchive] = None
        self._index: Dict[str, Tuple[List[TrackingPoint], List[TrackingPoint]]] = {}

    def _page_index(self, archive: SessionArchive) -> Dict[str, Tuple[List[TrackingPoint], List[TrackingPoint]]]:
        # Built once per archive object; page switches only look up
        if archive is not self._archive:
            index: Dict[str, Tuple[List[TrackingPoint], List[TrackingPoint]]] = {}
            for p in archive.gaze_points:
                index.setdefault(p.page, ([], []))[0].append(p)
            for p in archive.mouse_points:
                index.setdefault(p.page, ([], []))[1].append(p)
            self._archive = archive
            self._index = index
        return self._index

    def working_set(
        self,
        archive: SessionArchive,
        page: str,
        filters: HeatmapFilters = HeatmapFilters(),
    ) -> Tuple[List[TrackingPoint], List[TrackingPoint]]:
        """Return the (gaze, pointer) points that would be drawn for ``page``."""
        gaze, mouse = self._page_index(archive).get(page, ([], []))
        return (list(gaze) if filters.show_gaze else [], list(mouse) if filters.show_mouse else [])

    def render(
        self,
        target: "QImage",
        archive: Optional[SessionArchive],
        page: str,
        filters: HeatmapFilters = HeatmapFilters(),
        scroll: Tuple[float, float] = (0.0, 0.0),
    ) -> RenderResult:
        if QImage is None:
            logger.warning("PyQt6 unavailable; heatmap not rendered")
            return RenderResult(RenderStatus.SKIPPED)
        try:
            target.fill(Qt.GlobalColor.transparent)
        except Exception:
            logger.exception("Cannot clear heatmap target")
            return RenderResult(RenderStatus.SKIPPED)
        if archive is None:
            return RenderResult(RenderStatus.NO_ARCHIVE)
        if not archive.session_info.pages_visited:
            return RenderResult(RenderStatus.EMPTY_SESSION)

        gaze, mouse = self.working_set(archive, page, filters)
        painter = QPainter(target)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Screen)
            w, h = target.width(), target.height()
            g = self._draw_points(painter, gaze, scroll, GAZE_RADIUS, GAZE_STOPS, w, h)
            m = self._draw_points(painter, mouse, scroll, POINTER_RADIUS, POINTER_STOPS, w, h)
        except Exception:
            logger.exception("Heatmap paint failed for page %s", page)
            return RenderResult(RenderStatus.SKIPPED)
        finally:
            painter.end()
        logger.debug("Rendered %s: %d gaze, %d pointer blobs", page, g, m)
        return RenderResult(RenderStatus.RENDERED, g, m)

    @staticmethod
    def _draw_points(painter, points, scroll, radius: int, stops: Stops, w: int, h: int) -> int:
        drawn = 0
        for p in points:
            x, y = to_screen(p, scroll)
            if x < -radius or y < -radius or x > w + radius or y > h + radius:
                continue
            center = QPointF(x, y)
            grad = QRadialGradient(center, float(radius))
            for at, (r, g, b, a) in stops:
                grad.setColorAt(at, QColor(r, g, b, int(round(a * 255))))
            painter.setBrush(QBrush(grad))
            painter.drawEllipse(center, float(radius), float(radius))
            drawn += 1
        return drawn
