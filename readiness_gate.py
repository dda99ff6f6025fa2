"""Eligibility check run before any progression decision."""
from __future__ import annotations

import dataclasses
import datetime
import enum
from typing import Any

from errors import ConfigurationError
from session_history import ExerciseHistory


class ReadinessReason(str, enum.Enum):
    ELIGIBLE = "eligible"
    INSUFFICIENT_COMPLETION = "insufficient_completion"
    INSUFFICIENT_VOLUME = "insufficient_volume"
    STALE = "stale"


@dataclasses.dataclass(frozen=True)
class GateResult:
    eligible: bool
    reason: ReadinessReason


@dataclasses.dataclass(frozen=True)
class ProgressionReadinessGate:
    """Minimum completion and recency an exercise needs before progressing.

    Only the most recent session is inspected. Checks run in this order and
    the first failure wins: no history, staleness, completed set count,
    completion ratio.
    """

    minimum_completed_set_ratio: float = 0.75
    minimum_completed_sets: int = 1
    stale_after_days: int = 42

    def validate(self) -> None:
        if not 0.0 <= self.minimum_completed_set_ratio <= 1.0:
            raise ConfigurationError("minimum_completed_set_ratio must be within [0, 1]")
        if self.minimum_completed_sets < 0:
            raise ConfigurationError("minimum_completed_sets must not be negative")
        if self.stale_after_days < 1:
            raise ConfigurationError("stale_after_days must be at least 1")

    def evaluate(self, history: ExerciseHistory | None, today: datetime.date) -> GateResult:
        latest = history.latest if history is not None else None
        if latest is None:
            return GateResult(False, ReadinessReason.INSUFFICIENT_VOLUME)
        if (today - latest.session_date).days > self.stale_after_days:
            return GateResult(False, ReadinessReason.STALE)
        if latest.completed_sets == 0 or latest.completed_sets < self.minimum_completed_sets:
            return GateResult(False, ReadinessReason.INSUFFICIENT_VOLUME)
        if latest.completion_ratio < self.minimum_completed_set_ratio:
            return GateResult(False, ReadinessReason.INSUFFICIENT_COMPLETION)
        return GateResult(True, ReadinessReason.ELIGIBLE)

    def is_stale(self, last_activity: datetime.date | None, today: datetime.date) -> bool:
        if last_activity is None:
            return False
        return (today - last_activity).days > self.stale_after_days

    def tightened(self) -> "ProgressionReadinessGate":
        """Return a stricter gate for exercises whose outcomes keep flipping."""
        return dataclasses.replace(
            self,
            minimum_completed_set_ratio=round(min(0.95, self.minimum_completed_set_ratio + 0.05), 4),
            minimum_completed_sets=min(5, max(self.minimum_completed_sets + 1, 1)),
        )

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressionReadinessGate":
        return cls(
            minimum_completed_set_ratio=float(data.get("minimum_completed_set_ratio", 0.75)),
            minimum_completed_sets=int(data.get("minimum_completed_sets", 1)),
            stale_after_days=int(data.get("stale_after_days", 42)),
        )
