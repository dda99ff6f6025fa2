"""Weighted scoring of progression signals into a progress/hold/regress verdict."""
from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Any

from algorithms.math_tools import MathTools
from errors import ConfigurationError

logger = logging.getLogger(__name__)


class Verdict(str, enum.Enum):
    PROGRESS = "progress"
    HOLD = "hold"
    REGRESS = "regress"


@dataclasses.dataclass(frozen=True)
class ProgressionSignals:
    """Normalised inputs to the decision policy, each within [0, 1]."""

    completion: float
    performance: float
    effort: float
    confidence: float
    streak: float

    def __post_init__(self) -> None:
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{field.name} signal must be within [0, 1], got {value}")

    def as_tuple(self) -> tuple[float, float, float, float, float]:
        return (self.completion, self.performance, self.effort, self.confidence, self.streak)


@dataclasses.dataclass(frozen=True)
class ProgressionDecisionPolicy:
    progress_threshold: float = 0.68
    regress_threshold: float = 0.38
    completion_weight: float = 0.30
    performance_weight: float = 0.30
    effort_weight: float = 0.15
    confidence_weight: float = 0.125
    streak_weight: float = 0.125

    @property
    def weights(self) -> tuple[float, float, float, float, float]:
        return (
            self.completion_weight,
            self.performance_weight,
            self.effort_weight,
            self.confidence_weight,
            self.streak_weight,
        )

    def validate(self) -> None:
        for name in ("progress_threshold", "regress_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1]")
        if self.progress_threshold <= self.regress_threshold:
            raise ConfigurationError("progress_threshold must be greater than regress_threshold")
        if any(w < 0 for w in self.weights):
            raise ConfigurationError("decision weights must not be negative")
        if sum(self.weights) <= 0:
            raise ConfigurationError("at least one decision weight must be positive")

    def normalized(self) -> "ProgressionDecisionPolicy":
        """Return a copy whose weights sum to 1."""
        total = sum(self.weights)
        if total <= 0:
            raise ConfigurationError("at least one decision weight must be positive")
        return dataclasses.replace(
            self,
            completion_weight=self.completion_weight / total,
            performance_weight=self.performance_weight / total,
            effort_weight=self.effort_weight / total,
            confidence_weight=self.confidence_weight / total,
            streak_weight=self.streak_weight / total,
        )

    def score(self, signals: ProgressionSignals) -> float:
        return MathTools.weighted_sum(self.weights, signals.as_tuple())

    def verdict_for(self, score: float) -> Verdict:
        if score >= self.progress_threshold:
            return Verdict.PROGRESS
        if score <= self.regress_threshold:
            return Verdict.REGRESS
        return Verdict.HOLD

    def decide(self, signals: ProgressionSignals) -> tuple[Verdict, float]:
        """Return the verdict together with the score it was based on."""
        score = self.score(signals)
        verdict = self.verdict_for(score)
        logger.debug("Decision score=%.4f verdict=%s", score, verdict.value)
        return verdict, score

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressionDecisionPolicy":
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})
