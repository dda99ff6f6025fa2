import math
from typing import Iterable
import numpy as np

class MathTools:
    """Provides the numeric helpers used by the progression components."""

    PRECISION: int = 6

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def round_half_up(value: float) -> float:
        """Round to the nearest integer with halves rounded away from zero."""
        if value < 0:
            return -float(math.floor(-value + 0.5))
        return float(math.floor(value + 0.5))

    @classmethod
    def round_to_increment(cls, value: float, increment: float) -> float:
        """Snap ``value`` to the nearest multiple of ``increment``."""
        if increment <= 0:
            raise ValueError("increment must be positive")
        # dividing by 0.05 style increments leaves float noise around .5
        steps = round(value / increment, cls.PRECISION)
        return round(cls.round_half_up(steps) * increment, cls.PRECISION)

    @classmethod
    def floor_to_increment(cls, value: float, increment: float) -> float:
        """Snap ``value`` down to a multiple of ``increment``."""
        if increment <= 0:
            raise ValueError("increment must be positive")
        steps = math.floor(round(value / increment, cls.PRECISION))
        return round(steps * increment, cls.PRECISION)

    @classmethod
    def ceil_to_increment(cls, value: float, increment: float) -> float:
        """Snap ``value`` up to a multiple of ``increment``."""
        if increment <= 0:
            raise ValueError("increment must be positive")
        steps = math.ceil(round(value / increment, cls.PRECISION))
        return round(steps * increment, cls.PRECISION)

    @staticmethod
    def percent_change(base: float, value: float) -> float:
        """Return the change from ``base`` to ``value`` in percent."""
        if base == 0:
            raise ValueError("base must not be zero")
        return (value - base) / base * 100.0

    @staticmethod
    def weighted_sum(weights: Iterable[float], values: Iterable[float]) -> float:
        """Return the dot product of ``weights`` and ``values``."""
        w = np.array(list(weights), dtype=float)
        v = np.array(list(values), dtype=float)
        if w.shape != v.shape:
            raise ValueError("weights and values must have the same length")
        return float(np.dot(w, v))

    @staticmethod
    def smooth(current: float, target: float, alpha: float) -> float:
        """Move ``current`` toward ``target`` by an exponential smoothing step."""
        if not 0.0 <= alpha <= 1.0:
            raise ValueError("alpha must be within [0, 1]")
        return current + alpha * (target - current)

    @staticmethod
    def mean(values: Iterable[float]) -> float | None:
        """Return the arithmetic mean or ``None`` for an empty input."""
        data = list(values)
        if not data:
            return None
        return float(np.mean(np.array(data, dtype=float)))
