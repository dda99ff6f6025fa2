import os
import sys
import unittest

import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig, load_engine_settings
from errors import ConfigurationError
from progression_profile import BALANCED
from progression_service import ProgressionService
from settings_schema import EngineSettingsSchema, validate_settings


class YamlConfigTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.path = "test_progression.yaml"
        if os.path.exists(self.path):
            os.remove(self.path)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def test_missing_file_yields_defaults(self) -> None:
        self.assertEqual(YamlConfig(self.path).load(), {})
        settings = load_engine_settings(self.path)
        self.assertEqual(settings.recent_outcome_capacity, 10)
        self.assertEqual(settings.default_profile, "balanced")
        self.assertFalse(settings.normalize_decision_weights)

    def test_save_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({"weight_unit": "kg", "confidence_smoothing": 0.4})
        with open(self.path, "r", encoding="utf-8") as f:
            self.assertEqual(yaml.safe_load(f)["weight_unit"], "kg")
        settings = load_engine_settings(self.path)
        self.assertEqual(settings.weight_unit, "kg")
        self.assertAlmostEqual(settings.confidence_smoothing, 0.4)

    def test_environment_path(self) -> None:
        YamlConfig(self.path).save({"distance_unit": "km"})
        os.environ["PROGRESSION_SETTINGS"] = self.path
        try:
            self.assertEqual(load_engine_settings().distance_unit, "km")
        finally:
            del os.environ["PROGRESSION_SETTINGS"]

    def test_invalid_file(self) -> None:
        YamlConfig(self.path).save({"recent_outcome_capacity": 0})
        with self.assertRaises(ConfigurationError):
            load_engine_settings(self.path)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("- just\n- a list\n")
        with self.assertRaises(ConfigurationError):
            load_engine_settings(self.path)


class SettingsSchemaTestCase(unittest.TestCase):
    def test_validate_settings(self) -> None:
        settings = validate_settings({"initial_confidence": 0.6})
        self.assertIsInstance(settings, EngineSettingsSchema)
        self.assertAlmostEqual(settings.initial_confidence, 0.6)
        with self.assertRaises(ConfigurationError):
            validate_settings({"confidence_smoothing": 0})
        with self.assertRaises(ConfigurationError):
            validate_settings({"initial_confidence": 2})


class FromSettingsTestCase(unittest.TestCase):
    def test_defaults(self) -> None:
        service = ProgressionService.from_settings(EngineSettingsSchema())
        self.assertIs(service.default_profile, BALANCED)
        self.assertEqual(service.tracker.capacity, 10)
        self.assertEqual(service.rule_preset("moderate").percentage_increase, 5.0)

    def test_custom_presets(self) -> None:
        settings = validate_settings(
            {
                "recent_outcome_capacity": 5,
                "default_profile": "careful",
                "weight_unit": "kg",
                "rules": {
                    "micro": {"percentage_increase": 1.0, "rounding_increment": 1.0, "minimum_increase": 1.0}
                },
                "profiles": {
                    "careful": {
                        "readiness_gate": {"minimum_completed_set_ratio": 0.9},
                        "guardrails": {"max_progress_percent": 4},
                    }
                },
            }
        )
        service = ProgressionService.from_settings(settings)
        self.assertEqual(service.tracker.capacity, 5)
        self.assertEqual(service.rule_preset("micro").rounding_increment, 1.0)
        self.assertEqual(service.default_profile.readiness_gate.minimum_completed_set_ratio, 0.9)
        self.assertEqual(service.default_profile.guardrails.max_progress_percent, 4.0)
        self.assertEqual(service.weight_unit, "kg")
        self.assertIs(service.profile_preset("balanced"), BALANCED)

    def test_unknown_default_profile(self) -> None:
        with self.assertRaises(ConfigurationError):
            ProgressionService.from_settings(EngineSettingsSchema(default_profile="missing"))

    def test_invalid_custom_rule(self) -> None:
        settings = validate_settings({"rules": {"odd": {"rounding_increment": 3.0}}})
        with self.assertRaises(ConfigurationError):
            ProgressionService.from_settings(settings)


if __name__ == "__main__":
    unittest.main()
