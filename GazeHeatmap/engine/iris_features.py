"""
Iris feature extraction with MediaPipe FaceMesh (refine_landmarks=True).

For each eye the iris centre is normalised inside the eyelid bounding box, so
a frame yields four numbers (right nx, ny, left nx, ny) that the regression
maps to screen coordinates. Returns None whenever a face or eye is not found.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from GazeHeatmap.core.errors import EngineUnavailable

try:
    import cv2  # type: ignore
    import mediapipe as mp  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore
    mp = None  # type: ignore


RIGHT_IRIS_IDX = [474, 475, 476, 477]
RIGHT_EYE_LANDMARKS = [33, 133, 159, 145]
LEFT_IRIS_IDX = [469, 470, 471, 472]
LEFT_EYE_LANDMARKS = [362, 263, 386, 374]
EYE_MARGIN_PX = 2


@dataclass
class EyeFeatures:
    iris_center: Tuple[float, float]
    eyelid_box: Tuple[int, int, int, int]
    nx: float
    ny: float


@dataclass
class IrisFeatures:
    right: EyeFeatures
    left: EyeFeatures

    def vector(self) -> Tuple[float, float, float, float]:
        return (self.right.nx, self.right.ny, self.left.nx, self.left.ny)


def gather_points(pts, indices: List[int], w: int, h: int) -> List[Tuple[float, float]]:
    out: List[Tuple[float, float]] = []
    for i in indices:
        try:
            p = pts[i]
        except IndexError:
            continue
        out.append((p.x * w, p.y * h))
    return out


def normalise_eye(
    iris: List[Tuple[float, float]], lids: List[Tuple[float, float]], w: int, h: int
) -> Optional[EyeFeatures]:
    """Position of the iris centre inside the eyelid box, each axis clipped to [0, 1]."""
    if len(iris) < 2 or len(lids) < 2:
        return None
    cx = sum(p[0] for p in iris) / len(iris)
    cy = sum(p[1] for p in iris) / len(iris)
    xs = [p[0] for p in lids]
    ys = [p[1] for p in lids]
    x1 = max(0, int(min(xs)) - EYE_MARGIN_PX)
    y1 = max(0, int(min(ys)) - EYE_MARGIN_PX)
    x2 = min(w - 1, int(max(xs)) + EYE_MARGIN_PX)
    y2 = min(h - 1, int(max(ys)) + EYE_MARGIN_PX)
    box_w = x2 - x1
    box_h = y2 - y1
    if box_w <= 0 or box_h <= 0:
        return None
    nx = float(max(0.0, min(1.0, (cx - x1) / box_w)))
    ny = float(max(0.0, min(1.0, (cy - y1) / box_h)))
    return EyeFeatures(iris_center=(cx, cy), eyelid_box=(x1, y1, x2, y2), nx=nx, ny=ny)


class IrisFeatureExtractor:
    def __init__(self) -> None:
        if mp is None or cv2 is None:
            raise EngineUnavailable("mediapipe and OpenCV are required for gaze tracking.")
        self._mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )

    def process(self, frame, debug: bool = False) -> Optional[IrisFeatures]:
        h, w = frame.shape[:2]
        res = self._mesh.process(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
        if not res.multi_face_landmarks:
            return None
        pts = res.multi_face_landmarks[0].landmark
        right = normalise_eye(
            gather_points(pts, RIGHT_IRIS_IDX, w, h), gather_points(pts, RIGHT_EYE_LANDMARKS, w, h), w, h
        )
        left = normalise_eye(
            gather_points(pts, LEFT_IRIS_IDX, w, h), gather_points(pts, LEFT_EYE_LANDMARKS, w, h), w, h
        )
        if right is None or left is None:
            return None
        feats = IrisFeatures(right=right, left=left)
        if debug:
            draw_debug(frame, feats)
        return feats

    def close(self) -> None:
        try:
            self._mesh.close()
        except Exception:
            pass


def draw_debug(frame, feats: IrisFeatures) -> None:
    if cv2 is None:
        return
    for eye in (feats.right, feats.left):
        x1, y1, x2, y2 = eye.eyelid_box
        cx, cy = eye.iris_center
        cv2.rectangle(frame, (x1, y1), (x2, y2), (0, 255, 0), 1)
        cv2.circle(frame, (int(cx), int(cy)), 2, (0, 0, 255), -1)
