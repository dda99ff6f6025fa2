import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from decision_policy import ProgressionDecisionPolicy, ProgressionSignals, Verdict
from errors import ConfigurationError


def uniform(value: float) -> ProgressionSignals:
    return ProgressionSignals(value, value, value, value, value)


class DecisionPolicyTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.policy = ProgressionDecisionPolicy(progress_threshold=0.75, regress_threshold=0.35)

    def test_verdict_for_score(self) -> None:
        self.assertIs(self.policy.verdict_for(0.80), Verdict.PROGRESS)
        self.assertIs(self.policy.verdict_for(0.30), Verdict.REGRESS)
        self.assertIs(self.policy.verdict_for(0.5), Verdict.HOLD)

    def test_thresholds_are_inclusive(self) -> None:
        self.assertIs(self.policy.verdict_for(0.75), Verdict.PROGRESS)
        self.assertIs(self.policy.verdict_for(0.35), Verdict.REGRESS)

    def test_decide_uses_weighted_score(self) -> None:
        verdict, score = self.policy.decide(uniform(0.8))
        self.assertAlmostEqual(score, 0.8)
        self.assertIs(verdict, Verdict.PROGRESS)
        verdict, score = self.policy.decide(uniform(0.3))
        self.assertAlmostEqual(score, 0.3)
        self.assertIs(verdict, Verdict.REGRESS)

    def test_individual_weights(self) -> None:
        signals = ProgressionSignals(completion=1.0, performance=0.0, effort=0.0, confidence=0.0, streak=0.0)
        self.assertAlmostEqual(self.policy.score(signals), 0.30)

    def test_unnormalized_weights_are_not_rescaled(self) -> None:
        policy = ProgressionDecisionPolicy(
            completion_weight=1.0,
            performance_weight=1.0,
            effort_weight=0.0,
            confidence_weight=0.0,
            streak_weight=0.0,
        )
        policy.validate()
        self.assertAlmostEqual(policy.score(uniform(0.5)), 1.0)
        normalized = policy.normalized()
        self.assertAlmostEqual(sum(normalized.weights), 1.0)
        self.assertAlmostEqual(normalized.score(uniform(0.5)), 0.5)

    def test_signals_must_be_normalised(self) -> None:
        with self.assertRaises(ValueError):
            ProgressionSignals(1.2, 0.5, 0.5, 0.5, 0.5)
        with self.assertRaises(ValueError):
            ProgressionSignals(0.5, 0.5, 0.5, 0.5, -0.1)


class DecisionPolicyValidationTestCase(unittest.TestCase):
    def test_progress_must_exceed_regress(self) -> None:
        with self.assertRaises(ConfigurationError):
            ProgressionDecisionPolicy(progress_threshold=0.4, regress_threshold=0.6).validate()
        with self.assertRaises(ConfigurationError):
            ProgressionDecisionPolicy(progress_threshold=0.5, regress_threshold=0.5).validate()

    def test_thresholds_in_unit_range(self) -> None:
        with self.assertRaises(ConfigurationError):
            ProgressionDecisionPolicy(progress_threshold=1.5).validate()

    def test_weights(self) -> None:
        with self.assertRaises(ConfigurationError):
            ProgressionDecisionPolicy(effort_weight=-0.1).validate()
        zero = ProgressionDecisionPolicy(
            completion_weight=0,
            performance_weight=0,
            effort_weight=0,
            confidence_weight=0,
            streak_weight=0,
        )
        with self.assertRaises(ConfigurationError):
            zero.validate()
        with self.assertRaises(ConfigurationError):
            zero.normalized()

    def test_dict_round_trip(self) -> None:
        policy = ProgressionDecisionPolicy(progress_threshold=0.7, effort_weight=0.2)
        self.assertEqual(ProgressionDecisionPolicy.from_dict(policy.to_dict()), policy)
        partial = ProgressionDecisionPolicy.from_dict({"progress_threshold": 0.9, "unknown": 1})
        self.assertEqual(partial.progress_threshold, 0.9)
        self.assertEqual(partial.regress_threshold, 0.38)


if __name__ == "__main__":
    unittest.main()
