"""
Scripted landmark source for tests and dry runs without a camera.
"""
from typing import Any, Iterable, List, Optional

from .types import DetectedHand


class ScriptedLandmarkSource:
    """Mock landmark source that replays a fixed sequence of detections."""

    def __init__(self, frames: Optional[Iterable[List[DetectedHand]]] = None,
                 load_failures: int = 0, detect_error: Optional[Exception] = None):
        """
        Initialize the scripted source.

        Args:
            frames: Per-call detection results; once exhausted, detect() returns no hands
            load_failures: Number of load() calls that raise before one succeeds
            detect_error: If set, detect() raises this instead of returning hands
        """
        self.frames = list(frames or [])
        self.load_failures = load_failures
        self.detect_error = detect_error
        self.load_count = 0
        self.detect_count = 0
        self.close_count = 0
        self.loaded = False

    def load(self) -> None:
        self.load_count += 1
        if self.load_count <= self.load_failures:
            raise RuntimeError(f"Scripted load failure #{self.load_count}")
        self.loaded = True

    def detect(self, frame: Any) -> List[DetectedHand]:
        self.detect_count += 1
        if self.detect_error is not None:
            raise self.detect_error
        if self.detect_count <= len(self.frames):
            return self.frames[self.detect_count - 1]
        return []

    def close(self) -> None:
        self.close_count += 1
        self.loaded = False

    def reset_counters(self) -> None:
        """Reset call counters for testing."""
        self.load_count = 0
        self.detect_count = 0
        self.close_count = 0
