import os
import yaml

from settings_schema import EngineSettingsSchema, validate_settings


class YamlConfig:
    """Load and save engine settings to a YAML file."""

    def __init__(self, path: str = "progression.yaml") -> None:
        self.path = path

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return data

    def save(self, data: dict) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)


def load_engine_settings(path: str | None = None) -> EngineSettingsSchema:
    """Return validated settings from ``path`` or ``PROGRESSION_SETTINGS``."""
    path = path or os.environ.get("PROGRESSION_SETTINGS", "progression.yaml")
    return validate_settings(YamlConfig(path).load())
