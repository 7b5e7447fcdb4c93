"""
Pose descriptor construction: raw hand landmarks to per-finger curl and direction.
"""
import math
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from .errors import PreconditionViolation
from .types import (
    NUM_HAND_LANDMARKS,
    Finger,
    FingerCurl,
    FingerDirection,
    FingerPose,
    PoseDescriptor,
    to_landmarks,
)


# Landmark indices (MediaPipe order) for each finger: base, middle, tip.
# The thumb uses CMC/MCP/TIP, the other fingers MCP/PIP/TIP.
FINGER_JOINTS: Dict[Finger, Tuple[int, int, int]] = {
    Finger.THUMB: (1, 2, 4),
    Finger.INDEX: (5, 6, 8),
    Finger.MIDDLE: (9, 10, 12),
    Finger.RING: (13, 14, 16),
    Finger.PINKY: (17, 18, 20),
}

NO_CURL_START_LIMIT = 130.0
HALF_CURL_START_LIMIT = 60.0

OCTANT_DEG = 360.0 / len(FingerDirection)


def joint_angle(start: np.ndarray, mid: np.ndarray, end: np.ndarray) -> float:
    """
    Angle in degrees at `mid` between the segments towards `start` and `end`.

    A straight finger reads close to 180, a fully folded one close to 0.
    Degenerate (zero-length) segments read as straight.
    """
    v1 = start - mid
    v2 = end - mid
    norm = np.linalg.norm(v1) * np.linalg.norm(v2)
    if norm == 0:
        return 180.0
    cosine = float(np.clip(np.dot(v1, v2) / norm, -1.0, 1.0))
    return math.degrees(math.acos(cosine))


def pointing_angle(base: np.ndarray, tip: np.ndarray) -> float:
    """Angle in degrees of the base->tip vector in the image plane, 0 = right, 90 = up."""
    dx = float(tip[0] - base[0])
    dy = float(tip[1] - base[1])
    # Image y grows downward
    return math.degrees(math.atan2(-dy, dx)) % 360.0


def quantize_direction(angle_deg: float) -> FingerDirection:
    """Snap an angle to the nearest of the eight octant directions."""
    octant = int(round((angle_deg % 360.0) / OCTANT_DEG)) % len(FingerDirection)
    return FingerDirection(octant)


class PoseDescriptorBuilder:
    """
    Converts 21 hand landmarks into a PoseDescriptor.

    Curl comes from the angle at each finger's middle joint, compared against
    two ordered limits; direction from the base->tip vector, quantized to the
    nearest octant. Depth is used for curl but not for direction.
    """

    def __init__(self, no_curl_start_limit: float = NO_CURL_START_LIMIT,
                 half_curl_start_limit: float = HALF_CURL_START_LIMIT):
        """
        Args:
            no_curl_start_limit: Joint angles above this read as NO_CURL
            half_curl_start_limit: Joint angles above this (and not above the
                no-curl limit) read as HALF_CURL; anything lower is FULL_CURL
        """
        if half_curl_start_limit >= no_curl_start_limit:
            raise ValueError("half_curl_start_limit must be below no_curl_start_limit")
        self.no_curl_start_limit = no_curl_start_limit
        self.half_curl_start_limit = half_curl_start_limit

    @classmethod
    def from_config(cls, cfg) -> "PoseDescriptorBuilder":
        return cls(
            no_curl_start_limit=cfg.descriptor.no_curl_start_limit,
            half_curl_start_limit=cfg.descriptor.half_curl_start_limit,
        )

    def classify_curl(self, angle_deg: float) -> FingerCurl:
        if angle_deg > self.no_curl_start_limit:
            return FingerCurl.NO_CURL
        if angle_deg > self.half_curl_start_limit:
            return FingerCurl.HALF_CURL
        return FingerCurl.FULL_CURL

    def build(self, hand_landmarks: Sequence[Any]) -> PoseDescriptor:
        """
        Build the descriptor for one hand.

        Args:
            hand_landmarks: At least 21 keypoints in MediaPipe order

        Returns:
            PoseDescriptor covering all five fingers
        """
        landmarks = to_landmarks(hand_landmarks)
        if len(landmarks) < NUM_HAND_LANDMARKS:
            raise PreconditionViolation(
                f"Expected {NUM_HAND_LANDMARKS} hand landmarks, got {len(landmarks)}"
            )

        points = np.array([(lm.x, lm.y, lm.z) for lm in landmarks[:NUM_HAND_LANDMARKS]], dtype=float)

        fingers = {}
        for finger, (base_idx, mid_idx, tip_idx) in FINGER_JOINTS.items():
            base, mid, tip = points[base_idx], points[mid_idx], points[tip_idx]
            curl_angle = joint_angle(base, mid, tip)
            direction_angle = pointing_angle(base, tip)
            fingers[finger] = FingerPose(
                curl=self.classify_curl(curl_angle),
                direction=quantize_direction(direction_angle),
                curl_angle_deg=curl_angle,
                direction_angle_deg=direction_angle,
            )

        return PoseDescriptor(fingers)
