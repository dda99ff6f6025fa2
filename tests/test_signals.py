import datetime
import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from learned_state import ExerciseProgressionState
from progression_metrics import ProgressionMetric
from session_history import ExerciseHistory, SessionRecord, SetRecord
from signals import (
    completion_signal,
    confidence_signal,
    derive_signals,
    effort_signal,
    performance_signal,
    streak_signal,
)

DAY = datetime.date(2024, 3, 1)


def sets(weight: float, completed: int, planned: int, rpe: float | None = None) -> tuple:
    return tuple(
        SetRecord(completed=i < completed, weight=weight, reps=5, rpe=rpe) for i in range(planned)
    )


class SignalsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.history = ExerciseHistory(
            "bench",
            (
                SessionRecord(DAY, sets(100, 5, 5, rpe=7)),
                SessionRecord(DAY + datetime.timedelta(days=3), sets(105, 4, 5, rpe=8)),
            ),
        )

    def test_completion(self) -> None:
        self.assertAlmostEqual(completion_signal(self.history), 0.8)
        self.assertEqual(completion_signal(ExerciseHistory("bench")), 0.0)

    def test_performance(self) -> None:
        self.assertAlmostEqual(performance_signal(self.history, ProgressionMetric.WEIGHT), 0.75)
        single = ExerciseHistory("bench", self.history.sessions[:1])
        self.assertEqual(performance_signal(single, ProgressionMetric.WEIGHT), 0.5)

    def test_performance_is_clamped(self) -> None:
        history = ExerciseHistory(
            "bench",
            (
                SessionRecord(DAY, sets(100, 5, 5)),
                SessionRecord(DAY + datetime.timedelta(days=3), sets(70, 5, 5)),
            ),
        )
        self.assertEqual(performance_signal(history, "weight"), 0.0)

    def test_effort(self) -> None:
        self.assertAlmostEqual(effort_signal(self.history), 0.5)
        easy = ExerciseHistory("bench", (SessionRecord(DAY, sets(100, 3, 3, rpe=5)),))
        self.assertEqual(effort_signal(easy), 1.0)
        unrated = ExerciseHistory("bench", (SessionRecord(DAY, sets(100, 3, 3)),))
        self.assertEqual(effort_signal(unrated), 0.5)

    def test_state_signals(self) -> None:
        self.assertEqual(confidence_signal(None), 0.5)
        self.assertEqual(streak_signal(None), 0.5)
        state = ExerciseProgressionState(success_streak=2, confidence=0.9)
        self.assertEqual(confidence_signal(state), 0.9)
        self.assertAlmostEqual(streak_signal(state), 0.75)
        cold = ExerciseProgressionState(fail_streak=6)
        self.assertEqual(streak_signal(cold), 0.0)

    def test_derive_signals(self) -> None:
        signals = derive_signals(self.history, None, ProgressionMetric.WEIGHT)
        self.assertAlmostEqual(signals.completion, 0.8)
        self.assertAlmostEqual(signals.performance, 0.75)
        self.assertAlmostEqual(signals.effort, 0.5)
        self.assertEqual(signals.confidence, 0.5)


if __name__ == "__main__":
    unittest.main()
