"""
Test cases for the recognition session: lifecycle, cooldown, history and the
landmark source boundary.
"""
import unittest
import sys
from dataclasses import FrozenInstanceError
from pathlib import Path
from typing import List, Optional, Tuple

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from asl_recognizer.config import load_config
from asl_recognizer.errors import CollaboratorFailure, PreconditionViolation
from asl_recognizer.matcher import GestureMatcher
from asl_recognizer.session import Outcome, RecognitionSession, SessionState, retry_call
from asl_recognizer.source_mock import ScriptedLandmarkSource
from asl_recognizer.types import DetectedHand, Landmark, LandmarkSource, MatchResult, RecognitionEvent
from asl_recognizer.vocabulary import ASL_ALPHABET, GestureVocabulary
from synthetic_hands import letter_hand

HAND = letter_hand("A")


class StubMatcher:
    """Matcher that returns whatever result the test sets for the next frame."""

    def __init__(self, result: Optional[Tuple[str, float]] = ("A", 0.9)):
        self.result = result
        self.calls = 0

    def estimate(self, descriptor, min_confidence=None) -> List[MatchResult]:
        self.calls += 1
        if self.result is None:
            return []
        return [MatchResult(*self.result)]


def make_session(**kwargs) -> Tuple[RecognitionSession, StubMatcher]:
    matcher = kwargs.pop("matcher", None) or StubMatcher()
    session = RecognitionSession(matcher=matcher, **kwargs)
    return session, matcher


class TestSessionLifecycle(unittest.TestCase):
    """Test start/stop/clear transitions."""

    def test_classify_before_start_raises(self):
        session, _ = make_session()
        with self.assertRaises(PreconditionViolation):
            session.classify(HAND, t_now=0.0)
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertEqual(session.get_stats().total_recognitions, 0)
        self.assertEqual(session.get_recent(20), [])

    def test_classify_after_stop_raises(self):
        session, _ = make_session()
        session.start()
        self.assertIsNotNone(session.classify(HAND, t_now=0.0))
        session.stop()
        self.assertFalse(session.is_armed)
        with self.assertRaises(PreconditionViolation):
            session.classify(HAND, t_now=1.0)
        # History survives stop()
        self.assertEqual(session.get_stats().total_recognitions, 1)

    def test_start_resets_history_and_cooldown(self):
        session, _ = make_session()
        session.start()
        session.classify(HAND, t_now=0.0)
        session.start()
        self.assertEqual(session.get_stats().total_recognitions, 0)
        self.assertIsNotNone(session.classify(HAND, t_now=0.1))

    def test_clear_keeps_state(self):
        session, _ = make_session()
        session.start()
        session.classify(HAND, t_now=0.0)
        session.clear()
        self.assertTrue(session.is_armed)
        self.assertEqual(session.get_recent(5), [])
        # Cooldown was reset too
        self.assertIsNotNone(session.classify(HAND, t_now=0.1))

    def test_context_manager(self):
        source = ScriptedLandmarkSource()
        with RecognitionSession(matcher=StubMatcher(), source=source) as session:
            self.assertTrue(session.is_armed)
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertEqual(source.close_count, 1)

    def test_clock_is_used_when_no_time_given(self):
        times = iter([10.0, 10.2, 10.7])
        session, _ = make_session(clock=lambda: next(times))
        session.start()
        first = session.classify(HAND)
        self.assertEqual(first.timestamp, 10.0)
        self.assertIsNone(session.classify(HAND))
        self.assertEqual(session.classify(HAND).timestamp, 10.7)


class TestCooldown(unittest.TestCase):
    """Test debouncing between accepted events."""

    def setUp(self):
        self.session, self.matcher = make_session(cooldown_ms=500)
        self.session.start()

    def test_frames_inside_cooldown_are_dropped(self):
        first = self.session.classify(HAND, t_now=0.0)
        second = self.session.classify(HAND, t_now=0.3)
        third = self.session.classify(HAND, t_now=0.6)

        self.assertIsInstance(first, RecognitionEvent)
        self.assertIsNone(second)
        self.assertEqual(self.session.last_outcome, Outcome.ACCEPTED)
        self.assertIsInstance(third, RecognitionEvent)
        self.assertEqual(self.session.get_stats().total_recognitions, 2)

    def test_cooldown_skips_matching(self):
        self.session.classify(HAND, t_now=0.0)
        self.session.classify(HAND, t_now=0.3)
        self.assertEqual(self.session.last_outcome, Outcome.COOLDOWN)
        self.assertEqual(self.matcher.calls, 1)

    def test_frame_at_exact_interval_is_accepted(self):
        self.session.classify(HAND, t_now=0.0)
        self.assertIsNotNone(self.session.classify(HAND, t_now=0.5))

    def test_rejected_match_does_not_restart_cooldown(self):
        self.session.classify(HAND, t_now=0.0)
        self.matcher.result = ("A", 0.5)
        self.assertIsNone(self.session.classify(HAND, t_now=0.6))
        self.matcher.result = ("A", 0.9)
        self.assertIsNotNone(self.session.classify(HAND, t_now=0.7))

    def test_rejected_first_frame_does_not_start_cooldown(self):
        self.matcher.result = ("A", 0.5)
        self.assertIsNone(self.session.classify(HAND, t_now=0.0))
        self.matcher.result = ("A", 0.9)
        self.assertIsNotNone(self.session.classify(HAND, t_now=0.1))

    def test_zero_cooldown_accepts_every_frame(self):
        session, _ = make_session(cooldown_ms=0)
        session.start()
        for i in range(3):
            self.assertIsNotNone(session.classify(HAND, t_now=i * 0.01))


class TestAcceptance(unittest.TestCase):
    """Test the acceptance threshold."""

    def test_threshold_is_strict(self):
        session, matcher = make_session(acceptance_threshold=0.7)
        session.start()
        matcher.result = ("A", 0.7)
        self.assertIsNone(session.classify(HAND, t_now=0.0))
        self.assertEqual(session.last_outcome, Outcome.NO_MATCH)
        matcher.result = ("A", 0.71)
        self.assertIsNotNone(session.classify(HAND, t_now=0.1))

    def test_raising_threshold_never_adds_events(self):
        frames = [
            (0.0, 0.75), (0.3, 0.95), (0.6, 0.72), (0.9, 0.9), (1.2, 0.8),
            (1.5, 0.99), (1.8, 0.6), (2.1, 0.85), (2.4, 0.97), (2.7, 0.71),
        ]

        def accepted_count(threshold: float) -> int:
            session, matcher = make_session(acceptance_threshold=threshold)
            session.start()
            count = 0
            for t, confidence in frames:
                matcher.result = ("A", confidence)
                if session.classify(HAND, t_now=t) is not None:
                    count += 1
            return count

        counts = [accepted_count(threshold) for threshold in (0.0, 0.5, 0.7, 0.8, 0.9, 0.96, 0.99)]
        self.assertEqual(counts, sorted(counts, reverse=True))
        self.assertEqual(counts[-1], 0)

    def test_real_matcher_accepts_exact_letter(self):
        session = RecognitionSession.from_config(load_config())
        session.start()
        event = session.classify(letter_hand("B"), t_now=0.0)
        self.assertEqual(event.text, "B")
        self.assertEqual(event.confidence, 1.0)
        self.assertEqual(len(event.landmarks), 21)

    def test_empty_vocabulary_never_accepts(self):
        session = RecognitionSession(matcher=GestureMatcher(GestureVocabulary([])))
        session.start()
        self.assertIsNone(session.classify(HAND, t_now=0.0))
        self.assertEqual(session.last_outcome, Outcome.NO_MATCH)


class TestHistory(unittest.TestCase):
    """Test the bounded history and statistics."""

    def setUp(self):
        self.session, self.matcher = make_session()
        self.session.start()

    def test_history_is_bounded(self):
        for i in range(25):
            self.matcher.result = (chr(ord("A") + i), 0.9)
            self.session.classify(HAND, t_now=float(i))

        self.assertEqual(self.session.get_stats().total_recognitions, 20)
        recent = self.session.get_recent(20)
        self.assertEqual([event.timestamp for event in recent], [float(i) for i in range(5, 25)])
        self.assertEqual(recent[0].text, "F")
        self.assertEqual(recent[-1].text, "Y")

    def test_get_recent_clamps(self):
        for i in range(3):
            self.session.classify(HAND, t_now=float(i))
        self.assertEqual(len(self.session.get_recent(10)), 3)
        self.assertEqual(self.session.get_recent(0), [])
        self.assertEqual(self.session.get_recent(-2), [])
        self.assertEqual([e.timestamp for e in self.session.get_recent(2)], [1.0, 2.0])

    def test_stats(self):
        for t, (text, confidence) in enumerate([("A", 0.8), ("A", 0.9), ("B", 0.8)]):
            self.matcher.result = (text, confidence)
            self.session.classify(HAND, t_now=float(t))

        stats = self.session.get_stats()
        self.assertEqual(stats.total_recognitions, 3)
        self.assertAlmostEqual(stats.average_confidence, 0.8333333333)
        self.assertEqual(stats.unique_letters, 2)
        self.assertEqual(self.session.transcript, "AAB")

    def test_empty_stats(self):
        stats = self.session.get_stats()
        self.assertEqual(stats.total_recognitions, 0)
        self.assertEqual(stats.average_confidence, 0.0)
        self.assertEqual(stats.unique_letters, 0)

    def test_small_history_size(self):
        session, _ = make_session(history_size=2)
        session.start()
        for i in range(3):
            session.classify(HAND, t_now=float(i))
        self.assertEqual([e.timestamp for e in session.history], [1.0, 2.0])

    def test_history_size_must_be_positive(self):
        with self.assertRaises(ValueError):
            RecognitionSession(history_size=0)


class TestNullResults(unittest.TestCase):
    """Test that no-hand frames and bad input leave the session untouched."""

    def setUp(self):
        self.session, self.matcher = make_session()
        self.session.start()
        self.session.classify(HAND, t_now=0.0)

    def assert_unchanged(self):
        self.assertEqual(self.session.get_stats().total_recognitions, 1)
        self.assertEqual(self.session.get_recent(5)[0].timestamp, 0.0)
        # Cooldown still counts from t=0
        self.assertTrue(self.session.in_cooldown(0.49))
        self.assertFalse(self.session.in_cooldown(0.5))

    def test_no_hand_frames_change_nothing(self):
        for hand in (None, [], DetectedHand(landmarks=HAND[:10])):
            with self.subTest(hand=type(hand).__name__):
                self.assertIsNone(self.session.classify(hand, t_now=0.45))
                self.assertEqual(self.session.last_outcome, Outcome.NO_HAND)
                self.assert_unchanged()
        self.assertEqual(self.matcher.calls, 1)

    def test_no_hand_after_cooldown_keeps_clock(self):
        self.assertIsNone(self.session.classify(None, t_now=2.0))
        self.assert_unchanged()

    def test_wrong_landmark_count_raises(self):
        with self.assertRaises(PreconditionViolation):
            self.session.classify(HAND[:20], t_now=1.0)
        self.assert_unchanged()
        self.assertTrue(self.session.is_armed)

    def test_unreadable_landmarks_raise(self):
        with self.assertRaises(PreconditionViolation):
            self.session.classify(["x"] * 21, t_now=1.0)
        self.assert_unchanged()

    def test_non_finite_landmarks_raise(self):
        hand = list(HAND)
        hand[8] = Landmark(float("nan"), 0.5)
        with self.assertRaises(PreconditionViolation):
            self.session.classify(hand, t_now=1.0)
        self.assert_unchanged()
        self.assertEqual(self.matcher.calls, 1)

    def test_events_are_frozen(self):
        event = self.session.get_recent(1)[0]
        with self.assertRaises(FrozenInstanceError):
            event.confidence = 0.1
        self.assertIsInstance(event.landmarks, tuple)
        self.assertAlmostEqual(self.session.get_stats().average_confidence, 0.9)
        self.assert_unchanged()

    def test_first_of_several_hands_is_used(self):
        session = RecognitionSession.from_config(load_config())
        session.start()
        hands = [DetectedHand(letter_hand("L"), "Right"), DetectedHand(letter_hand("B"), "Left")]
        event = session.classify(hands, t_now=0.0)
        self.assertEqual(event.text, "L")
        self.assertEqual(event.handedness, "Right")


class TestRetry(unittest.TestCase):
    """Test the bounded retry helper."""

    def test_returns_first_success(self):
        calls = []
        sleeps = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise RuntimeError("not yet")
            return "ok"

        self.assertEqual(retry_call(flaky, attempts=3, delay_s=1.0, sleep=sleeps.append), "ok")
        self.assertEqual(len(calls), 3)
        self.assertEqual(sleeps, [1.0, 1.0])

    def test_reraises_after_last_attempt(self):
        sleeps = []

        def broken():
            raise RuntimeError("down")

        with self.assertRaises(RuntimeError):
            retry_call(broken, attempts=2, delay_s=0.5, sleep=sleeps.append)
        self.assertEqual(sleeps, [0.5])

    def test_attempts_must_be_positive(self):
        with self.assertRaises(ValueError):
            retry_call(lambda: None, attempts=0)


class TestLandmarkSourceBoundary(unittest.TestCase):
    """Test recognize_frame() and source lifecycle with a scripted source."""

    def setUp(self):
        self.cfg = load_config()
        self.sleeps = []

    def make(self, source: ScriptedLandmarkSource) -> RecognitionSession:
        return RecognitionSession.from_config(self.cfg, source=source, sleep=self.sleeps.append)

    def test_scripted_source_satisfies_protocol(self):
        self.assertIsInstance(ScriptedLandmarkSource(), LandmarkSource)

    def test_start_retries_load(self):
        source = ScriptedLandmarkSource(load_failures=2)
        session = self.make(source)
        session.start()
        self.assertTrue(session.is_armed)
        self.assertEqual(source.load_count, 3)
        self.assertEqual(self.sleeps, [1.0, 1.0])

    def test_start_fails_after_retries(self):
        source = ScriptedLandmarkSource(load_failures=5)
        session = self.make(source)
        with self.assertRaises(CollaboratorFailure) as ctx:
            session.start()
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertEqual(source.load_count, 3)

    def test_recognize_frame_classifies_first_hand(self):
        source = ScriptedLandmarkSource(frames=[
            [DetectedHand(letter_hand("Y"), "Right"), DetectedHand(letter_hand("B"), "Left")],
            [],
            [DetectedHand(letter_hand("W"))],
        ])
        session = self.make(source)
        session.start()

        first = session.recognize_frame(frame=None, t_now=0.0)
        self.assertEqual(first.text, "Y")
        self.assertEqual(first.handedness, "Right")
        self.assertEqual(len(session.last_hands), 2)

        self.assertIsNone(session.recognize_frame(frame=None, t_now=1.0))
        self.assertEqual(session.last_outcome, Outcome.NO_HAND)

        self.assertEqual(session.recognize_frame(frame=None, t_now=2.0).text, "W")
        self.assertEqual(session.transcript, "YW")
        self.assertEqual(source.detect_count, 3)

    def test_detect_failure_is_surfaced(self):
        source = ScriptedLandmarkSource(
            frames=[[DetectedHand(letter_hand("B"))]] * 3,
            detect_error=RuntimeError("camera unplugged"),
        )
        session = self.make(source)
        session.start()

        with self.assertRaises(CollaboratorFailure):
            session.recognize_frame(frame=None, t_now=0.0)
        self.assertTrue(session.is_armed)
        self.assertEqual(session.get_stats().total_recognitions, 0)
        self.assertFalse(session.in_cooldown(0.1))

        source.detect_error = None
        self.assertEqual(session.recognize_frame(frame=None, t_now=0.1).text, "B")

    def test_recognize_frame_requires_source(self):
        session = RecognitionSession.from_config(self.cfg)
        session.start()
        with self.assertRaises(PreconditionViolation):
            session.recognize_frame(frame=None)

    def test_recognize_frame_while_idle(self):
        source = ScriptedLandmarkSource()
        session = self.make(source)
        with self.assertRaises(PreconditionViolation):
            session.recognize_frame(frame=None)
        self.assertEqual(source.detect_count, 0)

    def test_dispose_releases_source_once(self):
        source = ScriptedLandmarkSource()
        session = self.make(source)
        session.start()
        session.dispose()
        session.dispose()
        self.assertEqual(source.close_count, 1)
        self.assertEqual(session.state, SessionState.IDLE)

        # A disposed session can be started again and reloads its source
        session.start()
        self.assertEqual(source.load_count, 2)

    def test_from_config_wiring(self):
        session = RecognitionSession.from_config(self.cfg)
        self.assertEqual(session.cooldown_ms, self.cfg.recognition.cooldown_ms)
        self.assertEqual(session.acceptance_threshold, self.cfg.recognition.acceptance_threshold)
        self.assertEqual(session.history_size, self.cfg.recognition.history_size)
        self.assertEqual(session.builder.no_curl_start_limit, self.cfg.descriptor.no_curl_start_limit)

    def test_detector_runs_during_cooldown(self):
        cooldown_frame = [DetectedHand(letter_hand("L"), "Left")]
        source = ScriptedLandmarkSource(frames=[[DetectedHand(letter_hand("B"), "Right")], cooldown_frame])
        session = self.make(source)
        session.start()

        self.assertEqual(session.recognize_frame(frame=None, t_now=0.0).text, "B")
        self.assertIsNone(session.recognize_frame(frame=None, t_now=0.2))
        self.assertEqual(session.last_outcome, Outcome.COOLDOWN)
        self.assertEqual(source.detect_count, 2)
        self.assertEqual(session.last_hands, cooldown_frame)
        self.assertEqual(session.transcript, "B")

    def test_unreadable_source_hand_is_collaborator_failure(self):
        nan_hand = list(letter_hand("B"))
        nan_hand[12] = Landmark(0.5, float("nan"))
        for landmarks in ([("x", "y")] * 21, nan_hand):
            with self.subTest(landmarks=landmarks[0]):
                source = ScriptedLandmarkSource(frames=[[DetectedHand(landmarks)]])
                session = self.make(source)
                session.start()
                with self.assertRaises(CollaboratorFailure) as ctx:
                    session.recognize_frame(frame=None, t_now=0.0)
                self.assertIsInstance(ctx.exception.__cause__, PreconditionViolation)
                self.assertTrue(session.is_armed)
                self.assertEqual(session.get_recent(5), [])
                self.assertFalse(session.in_cooldown(0.1))

    def test_sessions_sharing_vocabulary_are_independent(self):
        first = RecognitionSession.from_config(self.cfg)
        second = RecognitionSession.from_config(self.cfg)
        self.assertIs(first.matcher.vocabulary, ASL_ALPHABET)
        self.assertIs(second.matcher.vocabulary, ASL_ALPHABET)
        first.start()
        second.start()

        self.assertEqual(first.classify(letter_hand("B"), t_now=0.0).text, "B")
        # The first session's cooldown does not block the second one
        self.assertEqual(second.classify(letter_hand("Y"), t_now=0.1).text, "Y")
        self.assertIsNone(first.classify(letter_hand("L"), t_now=0.2))
        self.assertEqual(second.classify(letter_hand("W"), t_now=0.6).text, "W")
        self.assertEqual(first.classify(letter_hand("L"), t_now=0.6).text, "L")

        self.assertEqual(first.transcript, "BL")
        self.assertEqual(second.transcript, "YW")

        first.clear()
        self.assertEqual(first.get_stats().total_recognitions, 0)
        self.assertEqual(second.transcript, "YW")
        self.assertTrue(second.in_cooldown(0.7))
        self.assertEqual(len(ASL_ALPHABET), 15)


if __name__ == '__main__':
    unittest.main()
