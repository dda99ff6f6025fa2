"""Progression rules: the formula that maps a base value to the next target."""
from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Any, Optional

from algorithms.math_tools import MathTools
from errors import ConfigurationError
from progression_metrics import (
    ProgressionMetric,
    coerce_metric,
    format_value,
    is_legal_minimum,
    is_legal_rounding,
    minimum_options,
    require_legal_minimum,
    require_legal_rounding,
    rounding_options,
)

logger = logging.getLogger(__name__)


class ProgressionStrategy(str, enum.Enum):
    """How a weight rule decides when to apply its increase."""

    LINEAR = "linear"
    DOUBLE_PROGRESSION = "double_progression"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


def _normalize_minimum(value: Optional[float]) -> Optional[float]:
    if value is None or value == 0:
        return None
    return float(value)


@dataclasses.dataclass(frozen=True)
class ProgressionRule:
    """Immutable progression formula for one metric."""

    target_metric: ProgressionMetric = ProgressionMetric.WEIGHT
    strategy: ProgressionStrategy = ProgressionStrategy.LINEAR
    percentage_increase: float = 2.5
    rounding_increment: float = 5.0
    minimum_increase: Optional[float] = 5.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_metric", coerce_metric(self.target_metric))
        try:
            strategy = ProgressionStrategy(self.strategy)
        except ValueError:
            raise ConfigurationError(f"unknown progression strategy: {self.strategy!r}") from None
        object.__setattr__(self, "strategy", strategy)
        object.__setattr__(self, "minimum_increase", _normalize_minimum(self.minimum_increase))

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if the rule is not usable."""
        if not 0.0 <= self.percentage_increase <= 100.0:
            raise ConfigurationError("percentage_increase must be within [0, 100]")
        if self.strategy is not ProgressionStrategy.LINEAR and self.target_metric is not ProgressionMetric.WEIGHT:
            raise ConfigurationError(
                f"{self.strategy.value} strategy is only available for weight rules"
            )
        require_legal_rounding(self.target_metric, self.rounding_increment)
        if self.minimum_increase is not None and self.minimum_increase < 0:
            raise ConfigurationError("minimum_increase must not be negative")
        require_legal_minimum(self.target_metric, self.minimum_increase)

    def raw_increase(self, base_value: float) -> float:
        """Percentage increase of ``base_value`` lifted to the minimum step."""
        if base_value <= 0:
            raise ValueError("base_value must be positive")
        increase = base_value * self.percentage_increase / 100.0
        if self.minimum_increase is not None:
            increase = max(increase, self.minimum_increase)
        return increase

    def round_value(self, value: float) -> float:
        return MathTools.round_to_increment(value, self.rounding_increment)

    def suggest(self, base_value: float) -> float:
        """Return the next target for ``base_value``.

        The result is rounded half up to the rounding increment and is always
        at least one increment above ``base_value``.
        """
        raw_suggested = base_value + self.raw_increase(base_value)
        rounded = self.round_value(raw_suggested)
        result = max(rounded, round(base_value + self.rounding_increment, MathTools.PRECISION))
        logger.debug(
            "Rule %s: base=%s raw=%s rounded=%s result=%s",
            self.target_metric.value,
            base_value,
            raw_suggested,
            rounded,
            result,
        )
        return result

    def suggestion(self, base_value: float) -> "ProgressionSuggestion":
        suggested = self.suggest(base_value)
        return ProgressionSuggestion(
            base_value=base_value,
            suggested_value=suggested,
            metric=self.target_metric,
            percentage_applied=MathTools.percent_change(base_value, suggested),
        )

    def with_target_metric(self, metric: ProgressionMetric | str) -> "ProgressionRule":
        """Return a copy targeting ``metric`` with increments made legal for it."""
        metric = coerce_metric(metric)
        rounding = self.rounding_increment
        if not is_legal_rounding(metric, rounding):
            rounding = rounding_options(metric)[0]
        minimum = self.minimum_increase
        if not is_legal_minimum(metric, minimum):
            minimum = minimum_options(metric)[0]
        strategy = self.strategy
        if metric is not ProgressionMetric.WEIGHT:
            strategy = ProgressionStrategy.LINEAR
        return dataclasses.replace(
            self,
            target_metric=metric,
            strategy=strategy,
            rounding_increment=rounding,
            minimum_increase=minimum,
        )

    def describe(self, *, weight_unit: str = "lbs", distance_unit: str = "mi") -> str:
        """Short human readable summary, e.g. ``+5%, round to 5 lbs``."""
        pct = self.percentage_increase
        pct_text = f"{pct:.0f}" if pct == int(pct) else f"{pct:.1f}"
        if self.strategy is ProgressionStrategy.DOUBLE_PROGRESSION:
            return f"Double progression, +{pct_text}% when rep goal is met"
        step = format_value(
            self.rounding_increment,
            self.target_metric,
            weight_unit=weight_unit,
            distance_unit=distance_unit,
        )
        return f"+{pct_text}%, round to {step}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "target_metric": self.target_metric.value,
            "strategy": self.strategy.value,
            "percentage_increase": self.percentage_increase,
            "rounding_increment": self.rounding_increment,
            "minimum_increase": self.minimum_increase,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressionRule":
        """Build a rule from a plain dict; missing keys take the defaults."""
        if not isinstance(data, dict):
            raise ConfigurationError("progression rule must be a mapping")
        return cls(
            target_metric=data.get("target_metric", ProgressionMetric.WEIGHT),
            strategy=data.get("strategy", ProgressionStrategy.LINEAR),
            percentage_increase=float(data.get("percentage_increase", 2.5)),
            rounding_increment=float(data.get("rounding_increment", 5.0)),
            minimum_increase=data.get("minimum_increase"),
        )


@dataclasses.dataclass(frozen=True)
class ProgressionSuggestion:
    """A calculated target for the next session."""

    base_value: float
    suggested_value: float
    metric: ProgressionMetric
    percentage_applied: float

    def formatted(self, *, weight_unit: str = "lbs", distance_unit: str = "mi") -> str:
        """Return e.g. ``135 lbs (+3.8%)``."""
        value = format_value(
            self.suggested_value,
            self.metric,
            weight_unit=weight_unit,
            distance_unit=distance_unit,
        )
        return f"{value} ({self.percentage_applied:+.1f}%)"


CONSERVATIVE = ProgressionRule(
    target_metric=ProgressionMetric.WEIGHT,
    percentage_increase=2.5,
    rounding_increment=5.0,
    minimum_increase=5.0,
)
MODERATE = ProgressionRule(
    target_metric=ProgressionMetric.WEIGHT,
    percentage_increase=5.0,
    rounding_increment=5.0,
    minimum_increase=5.0,
)
AGGRESSIVE = ProgressionRule(
    target_metric=ProgressionMetric.WEIGHT,
    percentage_increase=7.5,
    rounding_increment=5.0,
    minimum_increase=5.0,
)
# dumbbells and isolation work
FINE_GRAINED = ProgressionRule(
    target_metric=ProgressionMetric.WEIGHT,
    percentage_increase=2.5,
    rounding_increment=2.5,
    minimum_increase=2.5,
)
REP_PROGRESSION = ProgressionRule(
    target_metric=ProgressionMetric.REPS,
    percentage_increase=5.0,
    rounding_increment=1.0,
    minimum_increase=1.0,
)
DURATION_PROGRESSION = ProgressionRule(
    target_metric=ProgressionMetric.DURATION,
    percentage_increase=5.0,
    rounding_increment=15.0,
    minimum_increase=15.0,
)
DISTANCE_PROGRESSION = ProgressionRule(
    target_metric=ProgressionMetric.DISTANCE,
    percentage_increase=5.0,
    rounding_increment=0.05,
    minimum_increase=0.05,
)

RULE_PRESETS: dict[str, ProgressionRule] = {
    "conservative": CONSERVATIVE,
    "moderate": MODERATE,
    "aggressive": AGGRESSIVE,
    "fine_grained": FINE_GRAINED,
    "rep_progression": REP_PROGRESSION,
    "duration_progression": DURATION_PROGRESSION,
    "distance_progression": DISTANCE_PROGRESSION,
}

_BASELINES = {
    ProgressionMetric.WEIGHT: CONSERVATIVE,
    ProgressionMetric.REPS: REP_PROGRESSION,
    ProgressionMetric.DURATION: DURATION_PROGRESSION,
    ProgressionMetric.DISTANCE: DISTANCE_PROGRESSION,
}


def baseline_rule(metric: ProgressionMetric | str) -> ProgressionRule:
    """Return the default rule offered for ``metric``."""
    return _BASELINES[coerce_metric(metric)]


def rule_preset(name: str, presets: dict[str, ProgressionRule] | None = None) -> ProgressionRule:
    registry = RULE_PRESETS if presets is None else presets
    try:
        return registry[name]
    except KeyError:
        raise ConfigurationError(f"unknown progression rule preset: {name!r}") from None
