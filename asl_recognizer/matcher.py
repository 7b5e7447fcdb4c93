"""
Gesture matcher: scores a pose descriptor against every template in a vocabulary.
"""
from typing import List, Optional

from .types import Finger, FingerCurl, FingerDirection, GestureTemplate, MatchResult, PoseDescriptor
from .vocabulary import ASL_ALPHABET, GestureVocabulary


# Credit by ordinal distance between observed and expected curl band
CURL_AGREEMENT = (1.0, 0.5, 0.0)
# Credit by circular octant distance between observed and expected direction
DIRECTION_AGREEMENT = (1.0, 0.5, 0.0, 0.0, 0.0)


def curl_distance(a: FingerCurl, b: FingerCurl) -> int:
    return abs(a.value - b.value)


def direction_distance(a: FingerDirection, b: FingerDirection) -> int:
    """Number of octants between two directions, going the short way round (0-4)."""
    n = len(FingerDirection)
    diff = abs(a.value - b.value) % n
    return min(diff, n - diff)


class GestureMatcher:
    """
    Ranks the templates of a vocabulary against a pose descriptor.

    Each finger scores a weighted sum of curl agreement and direction
    agreement; the template's confidence is the mean over the five fingers.
    """

    def __init__(self, vocabulary: GestureVocabulary = ASL_ALPHABET,
                 curl_weight: float = 0.5, direction_weight: float = 0.5,
                 min_confidence: float = 0.0):
        """
        Args:
            vocabulary: Templates to match against, in tie-break order
            curl_weight: Share of a finger's score given to curl agreement
            direction_weight: Share of a finger's score given to direction agreement
            min_confidence: Results below this confidence are dropped
        """
        if curl_weight < 0 or direction_weight < 0 or curl_weight + direction_weight <= 0:
            raise ValueError("Matcher weights must be non-negative and not both zero")
        self.vocabulary = vocabulary
        total = curl_weight + direction_weight
        self.curl_weight = curl_weight / total
        self.direction_weight = direction_weight / total
        self.min_confidence = min_confidence

    @classmethod
    def from_config(cls, cfg, vocabulary: GestureVocabulary = ASL_ALPHABET) -> "GestureMatcher":
        return cls(
            vocabulary=vocabulary,
            curl_weight=cfg.matcher.curl_weight,
            direction_weight=cfg.matcher.direction_weight,
            min_confidence=cfg.matcher.min_confidence,
        )

    def finger_score(self, template: GestureTemplate, descriptor: PoseDescriptor, finger: Finger) -> float:
        observed = descriptor[finger]
        curl_credit = CURL_AGREEMENT[curl_distance(observed.curl, template.curls[finger])]
        direction_credit = DIRECTION_AGREEMENT[direction_distance(observed.direction, template.directions[finger])]
        return self.curl_weight * curl_credit + self.direction_weight * direction_credit

    def score(self, template: GestureTemplate, descriptor: PoseDescriptor) -> float:
        """Confidence in [0, 1] that `descriptor` shows `template`."""
        total = sum(self.finger_score(template, descriptor, finger) for finger in Finger)
        return min(1.0, max(0.0, total / len(Finger)))

    def estimate(self, descriptor: PoseDescriptor, min_confidence: Optional[float] = None) -> List[MatchResult]:
        """
        Score every template and rank the results.

        Args:
            descriptor: Pose of the hand to classify
            min_confidence: Overrides the matcher's minimum confidence

        Returns:
            MatchResults, best first; ties keep vocabulary order
        """
        floor = self.min_confidence if min_confidence is None else min_confidence
        results = [MatchResult(template.name, self.score(template, descriptor)) for template in self.vocabulary]
        # sorted() is stable, so equal confidences keep registration order
        ranked = sorted(results, key=lambda result: result.confidence, reverse=True)
        return [result for result in ranked if result.confidence >= floor]

    def best(self, descriptor: PoseDescriptor) -> Optional[MatchResult]:
        ranked = self.estimate(descriptor)
        return ranked[0] if ranked else None
