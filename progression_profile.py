"""Named bundles of readiness gate, decision policy and guardrail settings."""
from __future__ import annotations

import dataclasses
from typing import Any, Optional

from decision_policy import ProgressionDecisionPolicy
from errors import ConfigurationError
from guardrails import ProgressionGuardrails
from progression_metrics import ProgressionMetric, coerce_metric
from readiness_gate import ProgressionReadinessGate


@dataclasses.dataclass(frozen=True)
class ProgressionProfile:
    preferred_metric: Optional[ProgressionMetric] = None
    readiness_gate: ProgressionReadinessGate = dataclasses.field(default_factory=ProgressionReadinessGate)
    decision_policy: ProgressionDecisionPolicy = dataclasses.field(default_factory=ProgressionDecisionPolicy)
    guardrails: ProgressionGuardrails = dataclasses.field(default_factory=ProgressionGuardrails)

    def __post_init__(self) -> None:
        if self.preferred_metric is not None:
            object.__setattr__(self, "preferred_metric", coerce_metric(self.preferred_metric))

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if any part is malformed."""
        for part in (self.readiness_gate, self.decision_policy, self.guardrails):
            part.validate()

    def with_tightened_readiness(self) -> "ProgressionProfile":
        return dataclasses.replace(self, readiness_gate=self.readiness_gate.tightened())

    def to_dict(self) -> dict[str, Any]:
        return {
            "preferred_metric": self.preferred_metric.value if self.preferred_metric else None,
            "readiness_gate": self.readiness_gate.to_dict(),
            "decision_policy": self.decision_policy.to_dict(),
            "guardrails": self.guardrails.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressionProfile":
        if not isinstance(data, dict):
            raise ConfigurationError("progression profile must be a mapping")
        return cls(
            preferred_metric=data.get("preferred_metric"),
            readiness_gate=ProgressionReadinessGate.from_dict(data.get("readiness_gate") or {}),
            decision_policy=ProgressionDecisionPolicy.from_dict(data.get("decision_policy") or {}),
            guardrails=ProgressionGuardrails.from_dict(data.get("guardrails") or {}),
        )


CONSERVATIVE = ProgressionProfile(
    readiness_gate=ProgressionReadinessGate(
        minimum_completed_set_ratio=0.8,
        minimum_completed_sets=2,
        stale_after_days=35,
    ),
    decision_policy=ProgressionDecisionPolicy(
        progress_threshold=0.75,
        regress_threshold=0.35,
        completion_weight=0.35,
        performance_weight=0.25,
        effort_weight=0.20,
        confidence_weight=0.10,
        streak_weight=0.10,
    ),
    guardrails=ProgressionGuardrails(
        max_progress_percent=5,
        max_regress_percent=8,
        floor_value=0,
    ),
)

BALANCED = ProgressionProfile()

AGGRESSIVE = ProgressionProfile(
    readiness_gate=ProgressionReadinessGate(
        minimum_completed_set_ratio=0.65,
        minimum_completed_sets=1,
        stale_after_days=49,
    ),
    decision_policy=ProgressionDecisionPolicy(
        progress_threshold=0.62,
        regress_threshold=0.42,
        completion_weight=0.25,
        performance_weight=0.35,
        effort_weight=0.10,
        confidence_weight=0.15,
        streak_weight=0.15,
    ),
    guardrails=ProgressionGuardrails(
        max_progress_percent=12,
        max_regress_percent=12,
        floor_value=0,
    ),
)

CARDIO_DEFAULT = ProgressionProfile(
    preferred_metric=ProgressionMetric.DURATION,
    readiness_gate=ProgressionReadinessGate(
        minimum_completed_set_ratio=0.8,
        minimum_completed_sets=1,
        stale_after_days=28,
    ),
    decision_policy=ProgressionDecisionPolicy(
        progress_threshold=0.70,
        regress_threshold=0.40,
        completion_weight=0.40,
        performance_weight=0.30,
        effort_weight=0.20,
        confidence_weight=0.05,
        streak_weight=0.05,
    ),
    guardrails=ProgressionGuardrails(
        max_progress_percent=8,
        max_regress_percent=10,
        floor_value=0,
    ),
)

PROFILE_PRESETS: dict[str, ProgressionProfile] = {
    "conservative": CONSERVATIVE,
    "balanced": BALANCED,
    "aggressive": AGGRESSIVE,
    "cardio_default": CARDIO_DEFAULT,
}


def conservative_cardio() -> ProgressionProfile:
    """Cardio profile with a stricter gate, threshold and progress cap."""
    base = CARDIO_DEFAULT
    return dataclasses.replace(
        base,
        readiness_gate=dataclasses.replace(
            base.readiness_gate,
            minimum_completed_set_ratio=max(base.readiness_gate.minimum_completed_set_ratio, 0.85),
        ),
        decision_policy=dataclasses.replace(
            base.decision_policy,
            progress_threshold=max(base.decision_policy.progress_threshold, 0.74),
        ),
        guardrails=dataclasses.replace(
            base.guardrails,
            max_progress_percent=min(base.guardrails.max_progress_percent or 8, 6),
        ),
    )


def preset_name_for(profile: ProgressionProfile) -> str:
    """Classify ``profile`` by its progress cap."""
    cap = profile.guardrails.max_progress_percent
    if cap is not None:
        if cap <= 6:
            return "conservative"
        if cap >= 11:
            return "aggressive"
    return "balanced"


def profile_preset(name: str, presets: dict[str, ProgressionProfile] | None = None) -> ProgressionProfile:
    registry = PROFILE_PRESETS if presets is None else presets
    try:
        return registry[name]
    except KeyError:
        raise ConfigurationError(f"unknown progression profile preset: {name!r}") from None
