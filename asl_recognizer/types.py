"""
Type definitions for the ASL alphabet recognition system.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .errors import PreconditionViolation


NUM_HAND_LANDMARKS = 21


class Finger(Enum):
    """The five fingers, in anatomical order."""
    THUMB = 0
    INDEX = 1
    MIDDLE = 2
    RING = 3
    PINKY = 4


class FingerCurl(Enum):
    """Discretized flexion of a finger, ordered from straight to fully bent."""
    NO_CURL = 0
    HALF_CURL = 1
    FULL_CURL = 2


class FingerDirection(Enum):
    """
    Pointing direction of a finger, one value per 45 degree octant.

    Values run counter-clockwise starting at horizontal right, so the
    circular distance between two values is their octant distance.
    """
    HORIZONTAL_RIGHT = 0
    DIAGONAL_UP_RIGHT = 1
    VERTICAL_UP = 2
    DIAGONAL_UP_LEFT = 3
    HORIZONTAL_LEFT = 4
    DIAGONAL_DOWN_LEFT = 5
    VERTICAL_DOWN = 6
    DIAGONAL_DOWN_RIGHT = 7


@dataclass(frozen=True)
class Landmark:
    """A single hand keypoint. Depth defaults to 0 when the detector omits it."""
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class FingerPose:
    """Observed curl and direction of one finger."""
    curl: FingerCurl
    direction: FingerDirection
    curl_angle_deg: Optional[float] = None  # angle at the middle joint
    direction_angle_deg: Optional[float] = None  # 0 = right, 90 = up


@dataclass(frozen=True)
class PoseDescriptor:
    """Per-finger curl and direction summary of one hand in one frame."""
    fingers: Mapping[Finger, FingerPose]

    def __post_init__(self):
        object.__setattr__(self, "fingers", MappingProxyType(dict(self.fingers)))
        missing = [finger.name for finger in Finger if finger not in self.fingers]
        if missing:
            raise PreconditionViolation(f"Pose descriptor is missing fingers: {', '.join(missing)}")

    def __getitem__(self, finger: Finger) -> FingerPose:
        return self.fingers[finger]

    @classmethod
    def from_pairs(cls, pairs: Mapping[Finger, Tuple[FingerCurl, FingerDirection]]) -> "PoseDescriptor":
        """Build a descriptor from plain (curl, direction) pairs."""
        return cls({finger: FingerPose(curl, direction) for finger, (curl, direction) in pairs.items()})

    def describe(self) -> str:
        return ", ".join(
            f"{finger.name.lower()}={self.fingers[finger].curl.name}/{self.fingers[finger].direction.name}"
            for finger in Finger
        )


@dataclass(frozen=True)
class GestureTemplate:
    """Expected curl and direction of every finger for one letter."""
    name: str
    curls: Mapping[Finger, FingerCurl]
    directions: Mapping[Finger, FingerDirection]

    def __post_init__(self):
        object.__setattr__(self, "curls", MappingProxyType(dict(self.curls)))
        object.__setattr__(self, "directions", MappingProxyType(dict(self.directions)))
        for finger in Finger:
            if finger not in self.curls or finger not in self.directions:
                raise ValueError(f"Template {self.name!r} does not define {finger.name}")


@dataclass(frozen=True)
class MatchResult:
    """Confidence of one template against one pose descriptor."""
    name: str
    confidence: float  # [0, 1]

    @property
    def score(self) -> float:
        """Confidence on the 0-10 scale used by fingerpose-style estimators."""
        return self.confidence * 10.0


@dataclass(frozen=True)
class RecognitionEvent:
    """A letter accepted by a recognition session."""
    text: str
    confidence: float
    timestamp: float  # seconds, session clock
    landmarks: Optional[Sequence[Landmark]] = field(default=None, repr=False)
    handedness: Optional[str] = None


@dataclass
class SessionStats:
    """Aggregate statistics over a session's history."""
    total_recognitions: int
    average_confidence: float
    unique_letters: int


@dataclass
class DetectedHand:
    """One hand as reported by a landmark source."""
    landmarks: Sequence[Any]
    handedness: Optional[str] = None  # "Left" / "Right" when known


@runtime_checkable
class LandmarkSource(Protocol):
    """Abstract protocol for hand landmark detectors."""

    def load(self) -> None:
        """Acquire the underlying model. May raise; callers retry."""
        ...

    def detect(self, frame: Any) -> List[DetectedHand]:
        """Detect hands in a frame, returning zero or more hands."""
        ...

    def close(self) -> None:
        """Release the underlying model."""
        ...


def to_landmark(point: Any) -> Landmark:
    """
    Convert one keypoint into a Landmark.

    Accepts Landmark objects, (x, y) / (x, y, z) sequences, mappings with
    'x', 'y' and optional 'z' keys, and objects exposing x/y/z attributes
    (such as MediaPipe's NormalizedLandmark). Coordinates must be finite.
    """
    try:
        if isinstance(point, Landmark):
            landmark = point
        elif isinstance(point, Mapping):
            z = point.get('z')
            landmark = Landmark(float(point['x']), float(point['y']), float(z) if z is not None else 0.0)
        elif hasattr(point, 'x') and hasattr(point, 'y'):
            z = getattr(point, 'z', None)
            landmark = Landmark(float(point.x), float(point.y), float(z) if z is not None else 0.0)
        else:
            coords = [float(c) if c is not None else 0.0 for c in point]
            if len(coords) == 2:
                landmark = Landmark(coords[0], coords[1])
            elif len(coords) == 3:
                landmark = Landmark(coords[0], coords[1], coords[2])
            else:
                raise PreconditionViolation(f"Landmark must have 2 or 3 coordinates, got {len(coords)}")
    except (KeyError, TypeError, ValueError) as exc:
        raise PreconditionViolation(f"Cannot read landmark from {point!r}") from exc

    if not all(math.isfinite(c) for c in (landmark.x, landmark.y, landmark.z)):
        raise PreconditionViolation(f"Landmark has non-finite coordinates: {landmark}")
    return landmark


def to_landmarks(points: Sequence[Any]) -> List[Landmark]:
    """Convert a sequence of keypoints into Landmarks."""
    try:
        return [to_landmark(point) for point in points]
    except TypeError as exc:
        raise PreconditionViolation(f"Hand landmarks must be a sequence, got {type(points).__name__}") from exc

