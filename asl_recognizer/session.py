"""
Recognition session: turns a stream of hand frames into accepted letters.
"""
import logging
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, List, Optional, Sequence, Tuple, TypeVar

from .errors import CollaboratorFailure, PreconditionViolation
from .matcher import GestureMatcher
from .pose import PoseDescriptorBuilder
from .types import (
    NUM_HAND_LANDMARKS,
    DetectedHand,
    Landmark,
    LandmarkSource,
    RecognitionEvent,
    SessionStats,
    to_landmarks,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionState(Enum):
    IDLE = "idle"
    ARMED = "armed"


class Outcome(Enum):
    """What happened to the last classified frame. Diagnostics only."""
    NO_HAND = "no_hand"
    COOLDOWN = "cooldown"
    NO_MATCH = "no_match"
    ACCEPTED = "accepted"


def retry_call(fn: Callable[[], T], attempts: int = 3, delay_s: float = 1.0,
               sleep: Callable[[float], None] = time.sleep, description: str = "operation") -> T:
    """
    Call `fn`, retrying with a fixed delay when it raises.

    Args:
        fn: Zero-argument callable to run
        attempts: Total number of tries, at least 1
        delay_s: Seconds to wait between tries
        sleep: Sleep function (injectable for tests)
        description: Used in log messages

    Returns:
        Whatever `fn` returns. The last exception is re-raised once attempts run out.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt >= attempts:
                raise
            logger.warning(f"⚠️  {description} attempt {attempt} failed ({exc}); retrying in {delay_s:.1f}s")
            sleep(delay_s)
    raise AssertionError("unreachable")


class RecognitionSession:
    """
    Classifies hand frames into letters with a cooldown and a bounded history.

    Lifecycle: start() arms the session, stop() idles it, dispose() also
    releases the landmark source. classify() is only valid while armed.

    Calls to classify() and recognize_frame() must be serialized by the
    caller; the session does not guard against overlapping calls.
    """

    def __init__(self,
                 builder: Optional[PoseDescriptorBuilder] = None,
                 matcher: Optional[GestureMatcher] = None,
                 acceptance_threshold: float = 0.7,
                 cooldown_ms: float = 500,
                 history_size: int = 20,
                 source: Optional[LandmarkSource] = None,
                 clock: Callable[[], float] = time.monotonic,
                 load_attempts: int = 3,
                 load_delay_ms: float = 1000,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            builder: Pose descriptor builder (default thresholds if None)
            matcher: Gesture matcher (built-in alphabet if None)
            acceptance_threshold: Top match must exceed this confidence to be accepted
            cooldown_ms: Minimum time between two accepted events
            history_size: Number of accepted events kept, oldest evicted first
            source: Optional landmark source for recognize_frame()
            clock: Monotonic clock in seconds, read once per classified frame
            load_attempts: Tries when loading the landmark source
            load_delay_ms: Delay between load tries
            sleep: Sleep function used between load tries
        """
        if history_size < 1:
            raise ValueError("history_size must be at least 1")
        self.builder = builder or PoseDescriptorBuilder()
        self.matcher = matcher or GestureMatcher()
        self.acceptance_threshold = acceptance_threshold
        self.cooldown_ms = cooldown_ms
        self.history_size = history_size
        self.source = source
        self.clock = clock
        self.load_attempts = load_attempts
        self.load_delay_ms = load_delay_ms
        self.sleep = sleep

        self.state = SessionState.IDLE
        self.last_outcome: Optional[Outcome] = None
        self.last_hands: List[DetectedHand] = []
        self._history: Deque[RecognitionEvent] = deque(maxlen=history_size)
        self._last_accepted_at: Optional[float] = None
        self._source_loaded = False

    @classmethod
    def from_config(cls, cfg, source: Optional[LandmarkSource] = None,
                    clock: Callable[[], float] = time.monotonic, matcher: Optional[GestureMatcher] = None,
                    sleep: Callable[[float], None] = time.sleep) -> "RecognitionSession":
        """Wire a session from a loaded configuration."""
        return cls(
            builder=PoseDescriptorBuilder.from_config(cfg),
            matcher=matcher or GestureMatcher.from_config(cfg),
            acceptance_threshold=cfg.recognition.acceptance_threshold,
            cooldown_ms=cfg.recognition.cooldown_ms,
            history_size=cfg.recognition.history_size,
            source=source,
            clock=clock,
            load_attempts=cfg.loader.attempts,
            load_delay_ms=cfg.loader.delay_ms,
            sleep=sleep,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_armed(self) -> bool:
        return self.state is SessionState.ARMED

    def start(self) -> None:
        """
        Arm the session, resetting history and cooldown.

        Loads the landmark source first, if one is attached. When loading
        fails after all retries, raises CollaboratorFailure and stays idle.
        """
        if self.source is not None and not self._source_loaded:
            try:
                retry_call(
                    self.source.load,
                    attempts=self.load_attempts,
                    delay_s=self.load_delay_ms / 1000.0,
                    sleep=self.sleep,
                    description="Landmark model load",
                )
            except Exception as exc:
                logger.error(f"❌ Landmark model failed to load after {self.load_attempts} attempts: {exc}")
                raise CollaboratorFailure(f"Landmark source failed to load: {exc}") from exc
            self._source_loaded = True
            logger.info("✅ Landmark model loaded")

        self._reset()
        self.state = SessionState.ARMED
        logger.info("▶️  Recognition session started")

    def stop(self) -> None:
        """Idle the session. History is kept until the next start() or clear()."""
        if self.state is SessionState.ARMED:
            logger.info("⏹️  Recognition session stopped")
        self.state = SessionState.IDLE

    def clear(self) -> None:
        """Empty the history and reset the cooldown; the state is unchanged."""
        self._reset()

    def dispose(self) -> None:
        """Stop the session and release the landmark source."""
        self.stop()
        self._reset()
        if self.source is not None and self._source_loaded:
            self._source_loaded = False
            try:
                self.source.close()
            except Exception as exc:
                logger.error(f"❌ Landmark source failed to close: {exc}")
                raise CollaboratorFailure(f"Landmark source failed to close: {exc}") from exc
            logger.info("🧹 Landmark source released")

    def __enter__(self) -> "RecognitionSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _reset(self) -> None:
        self._history.clear()
        self._last_accepted_at = None
        self.last_outcome = None
        self.last_hands = []

    def _require_armed(self, operation: str) -> None:
        if self.state is not SessionState.ARMED:
            raise PreconditionViolation(f"{operation}() called while session is {self.state.value}; call start() first")

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def in_cooldown(self, t_now: float) -> bool:
        """True if an event was accepted less than cooldown_ms before t_now."""
        if self._last_accepted_at is None:
            return False
        return (t_now - self._last_accepted_at) * 1000.0 < self.cooldown_ms

    def classify(self, hand: Any = None, t_now: Optional[float] = None) -> Optional[RecognitionEvent]:
        """
        Classify one frame's hand.

        Args:
            hand: None (no hand), a sequence of 21 landmarks, a DetectedHand,
                or a list of DetectedHands (only the first is used)
            t_now: Frame time in seconds; read from the session clock if None

        Returns:
            RecognitionEvent if a letter was accepted, None otherwise
            (no hand, cooldown, or no confident match)
        """
        self._require_armed("classify")
        landmarks, handedness = self._select_hand(hand)
        t = self.clock() if t_now is None else t_now

        if landmarks is None:
            return self._skip(Outcome.NO_HAND)

        if self.in_cooldown(t):
            return self._skip(Outcome.COOLDOWN)

        descriptor = self.builder.build(landmarks)
        ranked = self.matcher.estimate(descriptor)
        if not ranked or ranked[0].confidence <= self.acceptance_threshold:
            best = f"{ranked[0].name} ({ranked[0].confidence:.2f})" if ranked else "none"
            logger.debug(f"No confident match, best {best}: {descriptor.describe()}")
            return self._skip(Outcome.NO_MATCH)

        top = ranked[0]
        event = RecognitionEvent(
            text=top.name,
            confidence=top.confidence,
            timestamp=t,
            landmarks=tuple(landmarks),
            handedness=handedness,
        )
        self._history.append(event)
        self._last_accepted_at = t
        self.last_outcome = Outcome.ACCEPTED
        logger.info(f"🔤 Recognized '{event.text}' (confidence {event.confidence:.2f})")
        return event

    def recognize_frame(self, frame: Any, t_now: Optional[float] = None) -> Optional[RecognitionEvent]:
        """
        Detect hands in a frame with the attached source and classify the first one.

        The detected hands are kept in `last_hands` for display. Detector
        errors and unreadable hand data from the source are raised as
        CollaboratorFailure.
        """
        self._require_armed("recognize_frame")
        if self.source is None:
            raise PreconditionViolation("recognize_frame() requires a landmark source")

        try:
            hands = list(self.source.detect(frame) or [])
        except Exception as exc:
            logger.error(f"❌ Hand detection failed: {exc}")
            raise CollaboratorFailure(f"Hand detection failed: {exc}") from exc

        self.last_hands = hands
        try:
            return self.classify(hands, t_now=t_now)
        except PreconditionViolation as exc:
            # Armed state was checked above, so this is bad source data
            logger.error(f"❌ Landmark source returned unreadable hand data: {exc}")
            raise CollaboratorFailure(f"Landmark source returned unreadable hand data: {exc}") from exc

    def _skip(self, outcome: Outcome) -> None:
        self.last_outcome = outcome
        if outcome is not Outcome.NO_MATCH:
            logger.debug(f"Frame skipped: {outcome.value}")
        return None

    @staticmethod
    def _select_hand(hand: Any) -> Tuple[Optional[List[Landmark]], Optional[str]]:
        """
        Pick the primary hand's landmarks.

        Hands reported by a source with fewer than 21 landmarks are skipped;
        a raw landmark sequence of the wrong size is a caller error.
        """
        if hand is None:
            return None, None

        if isinstance(hand, (list, tuple)) and (not hand or isinstance(hand[0], DetectedHand)):
            if not hand:
                return None, None
            hand = hand[0]

        if isinstance(hand, DetectedHand):
            if hand.landmarks is None or len(hand.landmarks) < NUM_HAND_LANDMARKS:
                return None, hand.handedness
            return to_landmarks(hand.landmarks)[:NUM_HAND_LANDMARKS], hand.handedness

        landmarks = to_landmarks(hand)
        if len(landmarks) < NUM_HAND_LANDMARKS:
            raise PreconditionViolation(
                f"Expected {NUM_HAND_LANDMARKS} hand landmarks, got {len(landmarks)}"
            )
        return landmarks[:NUM_HAND_LANDMARKS], None

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_recent(self, n: int = 5) -> List[RecognitionEvent]:
        """The last n accepted events, oldest first."""
        n = max(0, min(n, len(self._history)))
        if n == 0:
            return []
        return list(self._history)[-n:]

    def get_stats(self) -> SessionStats:
        total = len(self._history)
        if total == 0:
            return SessionStats(total_recognitions=0, average_confidence=0.0, unique_letters=0)
        return SessionStats(
            total_recognitions=total,
            average_confidence=sum(event.confidence for event in self._history) / total,
            unique_letters=len({event.text for event in self._history}),
        )

    @property
    def history(self) -> Sequence[RecognitionEvent]:
        return tuple(self._history)

    @property
    def transcript(self) -> str:
        """Accepted letters, oldest first."""
        return "".join(event.text for event in self._history)
