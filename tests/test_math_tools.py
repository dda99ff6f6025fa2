import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms.math_tools import MathTools


class MathToolsTestCase(unittest.TestCase):
    def test_clamp(self) -> None:
        self.assertEqual(MathTools.clamp(5, 0, 10), 5)
        self.assertEqual(MathTools.clamp(-1, 0, 10), 0)
        self.assertEqual(MathTools.clamp(11, 0, 10), 10)
        with self.assertRaises(ValueError):
            MathTools.clamp(1, 2, 1)

    def test_round_half_up(self) -> None:
        self.assertEqual(MathTools.round_half_up(2.5), 3.0)
        self.assertEqual(MathTools.round_half_up(2.4), 2.0)
        self.assertEqual(MathTools.round_half_up(-2.5), -3.0)
        self.assertIsInstance(MathTools.round_half_up(-1.2), float)

    def test_round_to_increment(self) -> None:
        self.assertEqual(MathTools.round_to_increment(102.5, 5.0), 105.0)
        self.assertEqual(MathTools.round_to_increment(102.4, 5.0), 100.0)
        self.assertEqual(MathTools.round_to_increment(1.025, 0.05), 1.05)
        self.assertEqual(MathTools.round_to_increment(8.4, 1.0), 8.0)
        with self.assertRaises(ValueError):
            MathTools.round_to_increment(10, 0)

    def test_floor_and_ceil_to_increment(self) -> None:
        self.assertEqual(MathTools.floor_to_increment(107.0, 5.0), 105.0)
        self.assertEqual(MathTools.ceil_to_increment(101.0, 5.0), 105.0)
        self.assertEqual(MathTools.ceil_to_increment(0.3, 0.1), 0.3)

    def test_percent_change(self) -> None:
        self.assertAlmostEqual(MathTools.percent_change(100.0, 105.0), 5.0)
        self.assertAlmostEqual(MathTools.percent_change(200.0, 190.0), -5.0)
        with self.assertRaises(ValueError):
            MathTools.percent_change(0.0, 1.0)

    def test_weighted_sum(self) -> None:
        self.assertAlmostEqual(MathTools.weighted_sum([0.5, 0.5], [1.0, 0.0]), 0.5)
        with self.assertRaises(ValueError):
            MathTools.weighted_sum([1.0], [1.0, 2.0])

    def test_smooth(self) -> None:
        self.assertAlmostEqual(MathTools.smooth(0.5, 1.0, 0.3), 0.65)
        self.assertEqual(MathTools.smooth(0.5, 1.0, 0.0), 0.5)
        with self.assertRaises(ValueError):
            MathTools.smooth(0.5, 1.0, 1.5)

    def test_mean(self) -> None:
        self.assertAlmostEqual(MathTools.mean([7, 8, 9]), 8.0)
        self.assertIsNone(MathTools.mean([]))


if __name__ == "__main__":
    unittest.main()
