"""
PointCapturePipeline: turns engine gaze samples and raw pointer moves into
tagged TrackingPoints held in two bounded buffers.

Everything runs on the GUI event loop. Gaze and pointer capture write to
disjoint buffers and share a single ``_capturing`` flag, so stopping turns
both off at once and nothing is appended after stop_capture() returns.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from GazeHeatmap.capture.buffer import PointBuffer
from GazeHeatmap.capture.context import ViewContext
from GazeHeatmap.capture.models import (
    LiveStats,
    PointKind,
    SessionArchive,
    TrackingPoint,
    build_archive,
    session_duration,
)
from GazeHeatmap.engine.adapter import GazeEngineAdapter

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class PointCapturePipeline:
    def __init__(
        self,
        adapter: GazeEngineAdapter,
        context: ViewContext,
        *,
        capacity: int = 50000,
        retain: int = 40000,
        pointer_throttle_ms: int = 50,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.adapter = adapter
        self.context = context
        self.pointer_throttle_ms = int(pointer_throttle_ms)
        self._clock = clock or now_ms
        self._gaze: PointBuffer[TrackingPoint] = PointBuffer(capacity, retain)
        self._mouse: PointBuffer[TrackingPoint] = PointBuffer(capacity, retain)
        self._pages: Dict[str, None] = {}  # insertion-ordered set
        self._capturing = False
        self._start_ms = self._clock()
        self._last_pointer_ms: Optional[int] = None

    @property
    def is_capturing(self) -> bool:
        return self._capturing

    @property
    def start_time(self) -> int:
        return self._start_ms

    # Lifecycle ---------------------------------------------------------
    def start_capture(self) -> None:
        if self._capturing:
            return
        self._capturing = True
        self._last_pointer_ms = None
        self.adapter.on_gaze_sample(self._on_gaze_sample)
        if not self.adapter.ready:
            logger.info("Capture started without a ready gaze engine; recording pointer only")

    def stop_capture(self) -> SessionArchive:
        if self._capturing:
            self._capturing = False
            self.adapter.remove_gaze_listener(self._on_gaze_sample)
            logger.info("Capture stopped: %d gaze, %d pointer points", len(self._gaze), len(self._mouse))
        return self.export()

    def clear(self) -> None:
        self._gaze.clear()
        self._mouse.clear()
        self._pages.clear()
        self._last_pointer_ms = None
        self._start_ms = self._clock()

    # Sample intake -----------------------------------------------------
    def _on_gaze_sample(self, x: float, y: float, timestamp: int) -> None:
        if not self._capturing:
            return
        try:
            vx, vy = self.context.to_viewport(float(x), float(y))
            self._gaze.append(self._make_point(vx, vy, int(timestamp), PointKind.GAZE))
        except Exception:
            logger.exception("Dropping gaze sample (%r, %r)", x, y)
            return
        n = len(self._gaze)
        if n % 100 == 0:
            logger.debug("Tracking: %d gaze points, %d pointer points", n, len(self._mouse))

    def on_pointer_move(self, x: float, y: float) -> bool:
        """Record a pointer position in viewport coordinates. Returns True if kept."""
        if not self._capturing:
            return False
        now = self._clock()
        if self._last_pointer_ms is not None and now - self._last_pointer_ms < self.pointer_throttle_ms:
            return False
        self._last_pointer_ms = now
        try:
            self._mouse.append(self._make_point(float(x), float(y), now, PointKind.POINTER))
        except Exception:
            logger.exception("Dropping pointer sample (%r, %r)", x, y)
            return False
        return True

    def _make_point(self, x: float, y: float, timestamp: int, kind: PointKind) -> TrackingPoint:
        page = self.context.current_page()
        sx, sy = self.context.scroll_offset()
        vw, vh = self.context.viewport_size()
        self._pages.setdefault(page, None)
        return TrackingPoint(
            x=x,
            y=y,
            timestamp=timestamp,
            kind=kind,
            page=page,
            scroll_x=float(sx),
            scroll_y=float(sy),
            viewport_width=int(vw),
            viewport_height=int(vh),
        )

    # Read side ---------------------------------------------------------
    def get_live_stats(self) -> LiveStats:
        return LiveStats(
            gaze_count=len(self._gaze),
            mouse_count=len(self._mouse),
            pages_visited=tuple(self._pages),
            duration=session_duration(self._start_ms, self._clock()),
        )

    def export(self) -> SessionArchive:
        return build_archive(
            self._gaze.snapshot(),
            self._mouse.snapshot(),
            tuple(self._pages),
            self._start_ms,
            self._clock(),
        )
