"""Metrics that a progression rule can target and their legal increments.

Every metric owns a closed table of rounding increments and minimum-step
increments. The tables are the single place where increment legality is
decided; rules, editors and presets all go through the lookups below.
"""
from __future__ import annotations

import enum
import math
from types import MappingProxyType

from algorithms.math_tools import MathTools
from errors import ConfigurationError


class ProgressionMetric(str, enum.Enum):
    """Quantity a progression rule moves."""

    WEIGHT = "weight"
    REPS = "reps"
    DURATION = "duration"
    DISTANCE = "distance"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def is_cardio(self) -> bool:
        return self in (ProgressionMetric.DURATION, ProgressionMetric.DISTANCE)


ROUNDING_OPTIONS = MappingProxyType(
    {
        ProgressionMetric.WEIGHT: (1.0, 2.5, 5.0, 10.0),
        ProgressionMetric.REPS: (1.0,),
        ProgressionMetric.DURATION: (15.0, 30.0, 60.0, 120.0),
        ProgressionMetric.DISTANCE: (0.05, 0.10, 0.25, 0.50),
    }
)

# 0 means "no minimum"
MINIMUM_OPTIONS = MappingProxyType(
    {
        ProgressionMetric.WEIGHT: (0.0, 2.5, 5.0, 10.0),
        ProgressionMetric.REPS: (0.0, 1.0, 2.0),
        ProgressionMetric.DURATION: (0.0, 15.0, 30.0, 60.0, 120.0),
        ProgressionMetric.DISTANCE: (0.0, 0.05, 0.10, 0.25),
    }
)

VALUE_FLOORS = MappingProxyType(
    {
        ProgressionMetric.WEIGHT: 0.0,
        ProgressionMetric.REPS: 1.0,
        ProgressionMetric.DURATION: 0.0,
        ProgressionMetric.DISTANCE: 0.0,
    }
)


def coerce_metric(value: ProgressionMetric | str) -> ProgressionMetric:
    """Return ``value`` as a :class:`ProgressionMetric`."""
    try:
        return ProgressionMetric(value)
    except ValueError:
        raise ConfigurationError(f"unknown progression metric: {value!r}") from None


def rounding_options(metric: ProgressionMetric | str) -> tuple[float, ...]:
    return ROUNDING_OPTIONS[coerce_metric(metric)]


def minimum_options(metric: ProgressionMetric | str) -> tuple[float, ...]:
    return MINIMUM_OPTIONS[coerce_metric(metric)]


def value_floor(metric: ProgressionMetric | str) -> float:
    """Lowest value a suggestion for ``metric`` may reach."""
    return VALUE_FLOORS[coerce_metric(metric)]


def _contains(options: tuple[float, ...], value: float) -> bool:
    return any(math.isclose(value, opt, abs_tol=1e-9) for opt in options)


def is_legal_rounding(metric: ProgressionMetric | str, value: float) -> bool:
    return _contains(rounding_options(metric), value)


def is_legal_minimum(metric: ProgressionMetric | str, value: float | None) -> bool:
    if value is None:
        return True
    return _contains(minimum_options(metric), value)


def require_legal_rounding(metric: ProgressionMetric | str, value: float) -> None:
    if not is_legal_rounding(metric, value):
        raise ConfigurationError(
            f"rounding increment {value} is not legal for {coerce_metric(metric).value}; "
            f"choose one of {list(rounding_options(metric))}"
        )


def require_legal_minimum(metric: ProgressionMetric | str, value: float | None) -> None:
    if not is_legal_minimum(metric, value):
        raise ConfigurationError(
            f"minimum increase {value} is not legal for {coerce_metric(metric).value}; "
            f"choose one of {list(minimum_options(metric))}"
        )


def format_weight(value: float) -> str:
    if value == math.floor(value):
        return str(int(value))
    return f"{value:.1f}"


def format_duration(seconds: float) -> str:
    """Format a number of seconds as ``mm:ss``."""
    total = int(MathTools.round_half_up(seconds))
    return f"{total // 60}:{total % 60:02d}"


def format_distance(value: float) -> str:
    return f"{value:.2f}"


def format_value(
    value: float,
    metric: ProgressionMetric | str,
    *,
    weight_unit: str = "lbs",
    distance_unit: str = "mi",
) -> str:
    """Return ``value`` formatted for display with its unit."""
    metric = coerce_metric(metric)
    if metric is ProgressionMetric.WEIGHT:
        return f"{format_weight(value)} {weight_unit}"
    if metric is ProgressionMetric.REPS:
        return f"{int(MathTools.round_half_up(value))} reps"
    if metric is ProgressionMetric.DURATION:
        return format_duration(value)
    return f"{format_distance(value)} {distance_unit}"
