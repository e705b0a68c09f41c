"""
Error taxonomy for the tracking/replay subsystem.

None of these are fatal to the host: engine problems degrade to "no samples",
archive problems are reported to the caller before any live state changes,
and a short accuracy window degrades to an undetermined score.
"""
from __future__ import annotations


class GazeHeatmapError(Exception):
    """Base class for all subsystem errors."""


class EngineUnavailable(GazeHeatmapError):
    """The gaze engine is missing or failed to initialise."""


class MalformedArchive(GazeHeatmapError):
    """A session document does not have the expected structure."""


class InsufficientSamples(GazeHeatmapError):
    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"{available} gaze samples available, {required} required")
        self.available = int(available)
        self.required = int(required)
