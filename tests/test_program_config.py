import datetime
import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from learned_state import LearnedStateTracker
from program_config import ProgramProgressionConfig, ProgressionPolicy
from progression_profile import AGGRESSIVE, BALANCED, CONSERVATIVE
from progression_rule import FINE_GRAINED, MODERATE

TODAY = datetime.date(2024, 3, 15)


class ProgramProgressionConfigTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tracker = LearnedStateTracker()
        self.config = ProgramProgressionConfig(
            progression_policy="adaptive",
            progression_enabled_exercises=["squat", "bench"],
            default_progression_rule=MODERATE,
        )

    def test_policy_coerced(self) -> None:
        self.assertIs(self.config.progression_policy, ProgressionPolicy.ADAPTIVE)
        self.assertIn("per-exercise", ProgressionPolicy.ADAPTIVE.description)

    def test_rule_resolution(self) -> None:
        self.config.set_override("bench", FINE_GRAINED)
        self.assertIs(self.config.rule_for("bench"), FINE_GRAINED)
        self.assertIs(self.config.rule_for("squat"), MODERATE)
        self.assertIsNone(self.config.rule_for("deadlift"))

    def test_override_requires_enabled_exercise(self) -> None:
        self.config.set_override("deadlift", FINE_GRAINED)
        self.assertNotIn("deadlift", self.config.exercise_progression_overrides)

    def test_profile_resolution(self) -> None:
        self.assertIs(self.config.profile_for("squat"), BALANCED)
        self.assertIs(self.config.profile_for("squat", AGGRESSIVE), AGGRESSIVE)
        self.config.default_progression_profile = CONSERVATIVE
        self.assertIs(self.config.profile_for("squat", AGGRESSIVE), CONSERVATIVE)
        self.config.set_profile("squat", AGGRESSIVE)
        self.assertIs(self.config.profile_for("squat"), AGGRESSIVE)

    def test_disable_clears_exercise_data(self) -> None:
        self.config.set_override("bench", FINE_GRAINED)
        self.config.set_profile("bench", AGGRESSIVE)
        self.config.set_state("bench", self.tracker.record_response(None, "accepted", TODAY))
        self.config.set_enabled("bench", False)
        self.assertFalse(self.config.is_enabled("bench"))
        self.assertNotIn("bench", self.config.exercise_progression_overrides)
        self.assertNotIn("bench", self.config.exercise_progression_profiles)
        self.assertIsNone(self.config.state_for("bench"))

    def test_stale_entries_pruned_on_load(self) -> None:
        config = ProgramProgressionConfig(
            progression_enabled_exercises=["squat"],
            exercise_progression_overrides={"squat": MODERATE, "curl": FINE_GRAINED},
            exercise_progression_states={"curl": self.tracker.new_state()},
        )
        self.assertEqual(set(config.exercise_progression_overrides), {"squat"})
        self.assertEqual(config.exercise_progression_states, {})

    def test_program_switch_disables_everything(self) -> None:
        self.config.progression_enabled = False
        self.assertFalse(self.config.is_enabled("squat"))
        self.assertIsNone(self.config.rule_for("squat"))

    def test_reset_states(self) -> None:
        self.config.set_state("squat", self.tracker.record_response(None, "accepted", TODAY))
        self.config.set_state("bench", self.tracker.record_response(None, "rejected", TODAY))
        self.config.reset_states("squat")
        self.assertIsNone(self.config.state_for("squat"))
        self.assertIsNotNone(self.config.state_for("bench"))
        self.config.reset_states()
        self.assertEqual(self.config.exercise_progression_states, {})

    def test_acceptance_summaries(self) -> None:
        poor = None
        for outcome in ("rejected", "rejected", "rejected", "accepted"):
            poor = self.tracker.record_response(poor, outcome, TODAY)
        good = self.tracker.record_response(None, "accepted", TODAY)
        self.config.set_state("squat", poor)
        self.config.set_state("bench", good)
        self.assertEqual(self.config.low_acceptance_exercises(), ["squat"])
        self.assertEqual(self.config.oscillating_exercises(), ["squat"])
        self.assertAlmostEqual(self.config.average_acceptance(), (0.25 + 1.0) / 2)

    def test_tighten_readiness(self) -> None:
        self.config.tighten_readiness(["squat"])
        gate = self.config.profile_for("squat").readiness_gate
        self.assertAlmostEqual(gate.minimum_completed_set_ratio, 0.8)
        self.assertEqual(gate.minimum_completed_sets, 2)
        self.assertIs(self.config.profile_for("bench"), BALANCED)

    def test_apply_profile_to_enabled(self) -> None:
        self.config.apply_profile_to_enabled(CONSERVATIVE)
        self.assertIs(self.config.profile_for("bench"), CONSERVATIVE)
        self.assertIs(self.config.profile_for("squat"), CONSERVATIVE)

    def test_dict_round_trip(self) -> None:
        self.config.set_override("bench", FINE_GRAINED)
        self.config.set_profile("squat", AGGRESSIVE)
        self.config.set_state("squat", self.tracker.record_response(None, "accepted", TODAY))
        restored = ProgramProgressionConfig.from_dict(self.config.to_dict())
        self.assertEqual(restored.to_dict(), self.config.to_dict())
        self.assertEqual(restored.rule_for("bench"), FINE_GRAINED)


if __name__ == "__main__":
    unittest.main()
