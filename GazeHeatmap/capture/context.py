"""
View context: where the visitor currently is (route, scroll, viewport).

The capture pipeline reads this at the moment each sample arrives. The Qt
browser view implements it for the running app; StaticViewContext is a plain
mutable stand-in for headless use and tests.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple


class ViewContext(Protocol):
    def current_page(self) -> str: ...

    def scroll_offset(self) -> Tuple[float, float]: ...

    def viewport_size(self) -> Tuple[int, int]: ...

    def to_viewport(self, x: float, y: float) -> Tuple[float, float]:
        """Map a screen position reported by the gaze engine to viewport coordinates."""
        ...


@dataclass
class StaticViewContext:
    page: str = "/"
    scroll_x: float = 0.0
    scroll_y: float = 0.0
    width: int = 1920
    height: int = 1080
    origin_x: float = 0.0  # viewport top-left on screen
    origin_y: float = 0.0

    def current_page(self) -> str:
        return self.page

    def scroll_offset(self) -> Tuple[float, float]:
        return (self.scroll_x, self.scroll_y)

    def viewport_size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def to_viewport(self, x: float, y: float) -> Tuple[float, float]:
        return (x - self.origin_x, y - self.origin_y)
