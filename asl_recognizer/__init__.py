"""
ASL Alphabet Recognizer

Classifies static American Sign Language letters from 21-point hand landmarks
and keeps a running history of recognized letters.
"""

__version__ = "0.1.0"

from .types import (
    Finger,
    FingerCurl,
    FingerDirection,
    Landmark,
    FingerPose,
    PoseDescriptor,
    GestureTemplate,
    MatchResult,
    RecognitionEvent,
    SessionStats,
    DetectedHand,
    LandmarkSource,
)
from .errors import RecognizerError, PreconditionViolation, CollaboratorFailure
from .config import load_config, Cfg
from .pose import PoseDescriptorBuilder
from .vocabulary import ASL_ALPHABET, GestureVocabulary, templates
from .matcher import GestureMatcher
from .session import RecognitionSession, SessionState
from .source_mock import ScriptedLandmarkSource

__all__ = [
    "Finger",
    "FingerCurl",
    "FingerDirection",
    "Landmark",
    "FingerPose",
    "PoseDescriptor",
    "GestureTemplate",
    "MatchResult",
    "RecognitionEvent",
    "SessionStats",
    "DetectedHand",
    "LandmarkSource",
    "RecognizerError",
    "PreconditionViolation",
    "CollaboratorFailure",
    "load_config",
    "Cfg",
    "PoseDescriptorBuilder",
    "ASL_ALPHABET",
    "GestureVocabulary",
    "templates",
    "GestureMatcher",
    "RecognitionSession",
    "SessionState",
    "ScriptedLandmarkSource",
]
