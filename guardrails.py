"""Hard bounds on how far a single decision may move a value."""
from __future__ import annotations

import dataclasses
import math
from typing import Any, Optional

from algorithms.math_tools import MathTools
from decision_policy import Verdict
from errors import ConfigurationError

_EPS = 1e-9


@dataclasses.dataclass(frozen=True)
class ProgressionGuardrails:
    """Caps applied to a tentative change after the policy has decided.

    Percent caps bound the relative step, ``minimum_absolute_step`` lifts
    tiny steps to a usable size, and ``floor_value``/``ceiling_value`` bound
    the resulting value. Floor and ceiling always win.
    """

    max_progress_percent: Optional[float] = 10.0
    max_regress_percent: Optional[float] = 12.0
    floor_value: Optional[float] = 0.0
    ceiling_value: Optional[float] = None
    minimum_absolute_step: Optional[float] = None

    def validate(self) -> None:
        for name in ("max_progress_percent", "max_regress_percent", "minimum_absolute_step"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive when set")
        if (
            self.floor_value is not None
            and self.ceiling_value is not None
            and self.floor_value > self.ceiling_value
        ):
            raise ConfigurationError("floor_value must not exceed ceiling_value")

    def clamp_percent(self, delta_percent: float, verdict: Verdict | None = None) -> float:
        """Clamp a percentage delta to ``[-max_regress, max_progress]``."""
        if verdict is Verdict.HOLD:
            return 0.0
        if self.max_progress_percent is not None and delta_percent > self.max_progress_percent:
            return self.max_progress_percent
        if self.max_regress_percent is not None and delta_percent < -self.max_regress_percent:
            return -self.max_regress_percent
        return delta_percent

    def clamp_value(self, value: float) -> float:
        low = self.floor_value if self.floor_value is not None else -math.inf
        high = self.ceiling_value if self.ceiling_value is not None else math.inf
        return MathTools.clamp(value, low, high)

    def max_step(self, base_value: float, verdict: Verdict) -> float:
        """Largest absolute move allowed from ``base_value`` for ``verdict``."""
        if verdict is Verdict.HOLD:
            return 0.0
        cap = self.max_progress_percent if verdict is Verdict.PROGRESS else self.max_regress_percent
        if cap is None:
            return math.inf
        return max(abs(base_value) * cap / 100.0, self.minimum_absolute_step or 0.0)

    def apply(self, base_value: float, delta_percent: float, verdict: Verdict) -> float:
        """Turn a tentative percentage delta into a bounded absolute target."""
        pct = self.clamp_percent(delta_percent, verdict)
        step = base_value * pct / 100.0
        if self.minimum_absolute_step is not None and step != 0 and abs(step) < self.minimum_absolute_step:
            step = math.copysign(self.minimum_absolute_step, step)
        return self.clamp_value(base_value + step)

    def within(self, base_value: float, value: float, verdict: Verdict) -> bool:
        if abs(value - base_value) > self.max_step(base_value, verdict) + _EPS:
            return False
        if self.floor_value is not None and value < self.floor_value - _EPS:
            return False
        if self.ceiling_value is not None and value > self.ceiling_value + _EPS:
            return False
        return True

    def with_minimum_step(self, step: float) -> "ProgressionGuardrails":
        """Return a copy whose ``minimum_absolute_step`` defaults to ``step``.

        An explicitly configured minimum is kept as is.
        """
        if self.minimum_absolute_step is not None:
            return self
        return dataclasses.replace(self, minimum_absolute_step=step)

    def snap_inward(
        self, base_value: float, value: float, increment: float, verdict: Verdict
    ) -> Optional[float]:
        """Re-check a rounded value, snapping it to the last increment inside the bounds.

        Returns ``None`` when no multiple of ``increment`` satisfies the bounds.
        """
        if self.within(base_value, value, verdict):
            return value
        step = self.max_step(base_value, verdict)
        if value > base_value:
            limit = base_value + step
            if self.ceiling_value is not None:
                limit = min(limit, self.ceiling_value)
            if not math.isfinite(limit):
                return None
            candidate = MathTools.floor_to_increment(limit, increment)
        else:
            limit = base_value - step
            if self.floor_value is not None:
                limit = max(limit, self.floor_value)
            if not math.isfinite(limit):
                return None
            candidate = MathTools.ceil_to_increment(limit, increment)
        if self.within(base_value, candidate, verdict):
            return candidate
        return None

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressionGuardrails":
        def opt(key: str, default: Optional[float]) -> Optional[float]:
            value = data.get(key, default)
            return None if value is None else float(value)

        return cls(
            max_progress_percent=opt("max_progress_percent", 10.0),
            max_regress_percent=opt("max_regress_percent", 12.0),
            floor_value=opt("floor_value", 0.0),
            ceiling_value=opt("ceiling_value", None),
            minimum_absolute_step=opt("minimum_absolute_step", None),
        )
