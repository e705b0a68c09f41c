"""
Settings manager for GazeHeatmap.

Loads/saves JSON settings from GazeHeatmap/settings.json (or the path in
GAZEHEATMAP_SETTINGS) and exposes typed helpers.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "engine": {
        "regression": "ridge",
        "tracker": "facemesh",
        "camera_index": 0,
        "fps": 30,
    },
    "capture": {
        "buffer_capacity": 50000,
        "retain_count": 40000,
        "pointer_throttle_ms": 50,
    },
    "calibration": {
        "clicks_per_target": 5,
        "measure_ms": 5000,
        "accuracy_window": 50,
    },
    "export": {"directory": ""},
    "logging": {"level": "INFO"},
}


class SettingsManager:
    def __init__(self, path: Optional[str] = None) -> None:
        here = os.path.dirname(os.path.abspath(__file__))
        self._root = os.path.dirname(here)
        env_path = (os.environ.get("GAZEHEATMAP_SETTINGS", "") or "").strip()
        self.path = path or env_path or os.path.join(self._root, "settings.json")
        self.data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.path):
            self.data = copy.deepcopy(DEFAULTS)
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                self.data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read settings %s (%s); using defaults", self.path, e)
            self.data = copy.deepcopy(DEFAULTS)

    def save(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.data, f, indent=2)

    def _get(self, section: str, key: str) -> Any:
        v = self.data.get(section, {}).get(key)
        if v is None:
            v = DEFAULTS[section][key]
        return v

    def _set(self, section: str, key: str, value: Any) -> None:
        self.data.setdefault(section, {})[key] = value

    # Engine ------------------------------------------------------------
    def regression_algorithm(self) -> str:
        return str(self._get("engine", "regression"))

    def tracker_algorithm(self) -> str:
        return str(self._get("engine", "tracker"))

    def camera_index(self) -> int:
        return int(self._get("engine", "camera_index"))

    def set_camera_index(self, idx: int) -> None:
        self._set("engine", "camera_index", int(idx))

    def camera_fps(self) -> int:
        return int(self._get("engine", "fps"))

    # Capture -----------------------------------------------------------
    def buffer_capacity(self) -> int:
        return int(self._get("capture", "buffer_capacity"))

    def retain_count(self) -> int:
        return int(self._get("capture", "retain_count"))

    def pointer_throttle_ms(self) -> int:
        return int(self._get("capture", "pointer_throttle_ms"))

    # Calibration -------------------------------------------------------
    def clicks_per_target(self) -> int:
        return int(self._get("calibration", "clicks_per_target"))

    def measure_ms(self) -> int:
        return int(self._get("calibration", "measure_ms"))

    def accuracy_window(self) -> int:
        return int(self._get("calibration", "accuracy_window"))

    # Export ------------------------------------------------------------
    def export_directory(self) -> str:
        d = str(self._get("export", "directory") or "")
        return d or os.path.expanduser("~")

    def set_export_directory(self, path: str) -> None:
        self._set("export", "directory", str(path))

    # Logging -----------------------------------------------------------
    def log_level(self) -> str:
        return str(self._get("logging", "level"))
