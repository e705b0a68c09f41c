"""
Webcam frame source using OpenCV VideoCapture.

The engine polls read() from a Qt timer, so unlike a blocking capture loop
this never sleeps: a frame that is not ready simply yields None.
"""
from __future__ import annotations

import logging
import os
from typing import List, Optional

from GazeHeatmap.core.errors import EngineUnavailable

try:
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None

logger = logging.getLogger(__name__)


class Camera:
    def __init__(self, index: int = 0, width: int = 1280, height: int = 720, target_fps: int = 30) -> None:
        self.index = int(index)
        self.width = width
        self.height = height
        self.target_fps = max(1, int(target_fps))
        self.cap = None

    def _backends(self) -> List[int]:
        # GAZEHEATMAP_CAMERA_BACKEND = dshow|msmf|v4l2|any
        preferred = (os.environ.get("GAZEHEATMAP_CAMERA_BACKEND", "") or "").strip().lower()
        names = {"dshow": "CAP_DSHOW", "msmf": "CAP_MSMF", "v4l2": "CAP_V4L2", "any": "CAP_ANY"}
        out: List[int] = []
        if preferred in names:
            be = getattr(cv2, names[preferred], None)
            if be is not None:
                out.append(be)
        anyb = getattr(cv2, "CAP_ANY", 0)
        if anyb not in out:
            out.append(anyb)
        return out

    def open(self) -> None:
        if cv2 is None:
            raise EngineUnavailable("OpenCV (cv2) is not installed.")
        for be in self._backends():
            try:
                cap = cv2.VideoCapture(self.index, be)
            except Exception as e:
                logger.debug("VideoCapture(%d, %s) failed: %s", self.index, be, e)
                continue
            if cap is not None and cap.isOpened():
                self.cap = cap
                break
            if cap is not None:
                cap.release()
        if self.cap is None:
            raise EngineUnavailable(
                f"No camera detected at index {self.index}. "
                "Close other apps using the camera and check camera permissions."
            )
        try:
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            self.cap.set(cv2.CAP_PROP_FPS, float(self.target_fps))
        except Exception:
            pass
        try:
            actual_w = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_h = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            if actual_w > 0 and actual_h > 0:
                self.width, self.height = actual_w, actual_h
        except Exception:
            pass
        logger.info("Camera %d opened at %dx%d", self.index, self.width, self.height)

    def read(self) -> Optional[object]:  # BGR numpy array or None
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok or frame is None:
            return None
        return frame

    def close(self) -> None:
        if self.cap is not None:
            try:
                self.cap.release()
            finally:
                self.cap = None

    @property
    def is_open(self) -> bool:
        return bool(self.cap is not None and getattr(self.cap, "isOpened", lambda: False)())
