from typing import Any

from pydantic import BaseModel, Field, ValidationError

from errors import ConfigurationError

class EngineSettingsSchema(BaseModel):
    recent_outcome_capacity: int = Field(default=10, ge=1)
    confidence_smoothing: float = Field(default=0.3, gt=0.0, le=1.0)
    initial_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    default_profile: str = "balanced"
    weight_unit: str = "lbs"
    distance_unit: str = "mi"
    normalize_decision_weights: bool = False
    rules: dict[str, dict[str, Any]] = Field(default_factory=dict)
    profiles: dict[str, dict[str, Any]] = Field(default_factory=dict)

def validate_settings(data: dict) -> EngineSettingsSchema:
    if not isinstance(data, dict):
        raise ConfigurationError("settings must be a mapping")
    try:
        return EngineSettingsSchema(**data)
    except ValidationError as e:
        raise ConfigurationError(str(e))
