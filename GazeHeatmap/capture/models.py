"""
Capture data models: one observation, the frozen session summary and the
immutable archive snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class PointKind(str, Enum):
    GAZE = "gaze"
    POINTER = "pointer"


@dataclass(frozen=True)
class TrackingPoint:
    x: float
    y: float
    timestamp: int  # ms since epoch
    kind: PointKind
    page: str
    scroll_x: float
    scroll_y: float
    viewport_width: int
    viewport_height: int

    @property
    def absolute_x(self) -> float:
        return self.x + self.scroll_x

    @property
    def absolute_y(self) -> float:
        return self.y + self.scroll_y


@dataclass(frozen=True)
class SessionInfo:
    start_time: int
    end_time: int
    duration: int  # whole seconds
    total_gaze_points: int
    total_mouse_points: int
    pages_visited: Tuple[str, ...]


@dataclass(frozen=True)
class SessionArchive:
    gaze_points: Tuple[TrackingPoint, ...]
    mouse_points: Tuple[TrackingPoint, ...]
    session_info: SessionInfo


@dataclass(frozen=True)
class LiveStats:
    gaze_count: int
    mouse_count: int
    pages_visited: Tuple[str, ...]
    duration: int


def session_duration(start_ms: int, end_ms: int) -> int:
    return max(0, int(end_ms - start_ms) // 1000)


def build_archive(
    gaze_points: Tuple[TrackingPoint, ...],
    mouse_points: Tuple[TrackingPoint, ...],
    pages_visited: Tuple[str, ...],
    start_ms: int,
    end_ms: int,
) -> SessionArchive:
    """Freeze a SessionInfo from the given point-in-time copies."""
    info = SessionInfo(
        start_time=int(start_ms),
        end_time=int(end_ms),
        duration=session_duration(start_ms, end_ms),
        total_gaze_points=len(gaze_points),
        total_mouse_points=len(mouse_points),
        pages_visited=tuple(pages_visited),
    )
    return SessionArchive(gaze_points=tuple(gaze_points), mouse_points=tuple(mouse_points), session_info=info)
