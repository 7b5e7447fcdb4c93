"""
Hand landmark detection using MediaPipe.
"""
import logging
import cv2
import mediapipe as mp
import numpy as np
from typing import List, Optional, Sequence

from .types import DetectedHand, Landmark

logger = logging.getLogger(__name__)


class HandsTracker:
    """Landmark source backed by MediaPipe Hands."""

    def __init__(self, max_num_hands: int = 2, min_detection_conf: float = 0.7,
                 min_tracking_conf: float = 0.5, model_complexity: int = 1):
        """
        Initialize the hands tracker. The model itself is created by load().

        Args:
            max_num_hands: Maximum number of hands to detect
            min_detection_conf: Minimum confidence for hand detection
            min_tracking_conf: Minimum confidence for hand tracking
            model_complexity: MediaPipe model complexity (0 or 1)
        """
        self.max_num_hands = max_num_hands
        self.min_detection_conf = min_detection_conf
        self.min_tracking_conf = min_tracking_conf
        self.model_complexity = model_complexity
        self.mp_hands = mp.solutions.hands
        self.mp_drawing = mp.solutions.drawing_utils
        self.hands = None

    @classmethod
    def from_config(cls, cfg) -> "HandsTracker":
        return cls(
            max_num_hands=cfg.mediapipe.max_num_hands,
            min_detection_conf=cfg.mediapipe.min_detection_confidence,
            min_tracking_conf=cfg.mediapipe.min_tracking_confidence,
            model_complexity=cfg.mediapipe.model_complexity,
        )

    def load(self) -> None:
        """Create the MediaPipe Hands model."""
        if self.hands is not None:
            return
        logger.info("Loading MediaPipe Hands model...")
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=self.max_num_hands,
            min_detection_confidence=self.min_detection_conf,
            min_tracking_confidence=self.min_tracking_conf,
            model_complexity=self.model_complexity
        )

    def detect(self, frame_bgr: np.ndarray) -> List[DetectedHand]:
        """
        Process a frame and return every detected hand.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            Hands with 21 normalized (x, y, z) landmarks each, in detection order
        """
        if self.hands is None:
            raise RuntimeError("HandsTracker.load() must be called before detect()")

        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        frame_rgb.flags.writeable = False
        results = self.hands.process(frame_rgb)

        hands: List[DetectedHand] = []
        if not results.multi_hand_landmarks:
            return hands

        handedness_list = results.multi_handedness or []
        for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
            landmarks = [Landmark(lm.x, lm.y, lm.z) for lm in hand_landmarks.landmark]
            label = None
            if i < len(handedness_list):
                label = handedness_list[i].classification[0].label
            hands.append(DetectedHand(landmarks=landmarks, handedness=label))

        return hands

    def close(self) -> None:
        """Release the MediaPipe model."""
        if self.hands is not None:
            self.hands.close()
            self.hands = None

    def draw_landmarks(self, frame: np.ndarray, landmarks: Sequence[Landmark],
                       color: Optional[tuple] = None) -> np.ndarray:
        """
        Draw hand landmarks and finger bones on the frame.

        Args:
            frame: Input frame
            landmarks: Normalized landmarks in [0..1] range
            color: BGR color for the joints

        Returns:
            Frame with landmarks drawn
        """
        height, width = frame.shape[:2]
        color = color or (0, 255, 0)

        points = [(int(lm.x * width), int(lm.y * height)) for lm in landmarks]
        for start, end in self.mp_hands.HAND_CONNECTIONS:
            if start < len(points) and end < len(points):
                cv2.line(frame, points[start], points[end], (255, 255, 255), 1)
        for px, py in points:
            cv2.circle(frame, (px, py), 3, color, -1)

        return frame
