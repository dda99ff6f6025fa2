"""Read-only session history handed to the engine by the session repository."""
from __future__ import annotations

import dataclasses
import datetime
from typing import Iterable, Optional

from decision_policy import Verdict
from progression_metrics import ProgressionMetric, coerce_metric


@dataclasses.dataclass(frozen=True)
class SetRecord:
    """One planned set and what was actually done."""

    completed: bool = False
    weight: Optional[float] = None
    reps: Optional[int] = None
    duration: Optional[float] = None
    distance: Optional[float] = None
    rpe: Optional[float] = None

    def value(self, metric: ProgressionMetric | str) -> Optional[float]:
        metric = coerce_metric(metric)
        raw = getattr(self, metric.value)
        return None if raw is None else float(raw)


@dataclasses.dataclass(frozen=True)
class SessionRecord:
    """The sets of one exercise within one completed session."""

    session_date: datetime.date
    sets: tuple[SetRecord, ...] = ()
    target_reps: Optional[int] = None
    recommendation: Optional[Verdict] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "sets", tuple(self.sets))
        if self.recommendation is not None:
            object.__setattr__(self, "recommendation", Verdict(self.recommendation))

    @property
    def planned_sets(self) -> int:
        return len(self.sets)

    @property
    def completed_sets(self) -> int:
        return sum(1 for s in self.sets if s.completed)

    @property
    def completion_ratio(self) -> float:
        if not self.sets:
            return 0.0
        return self.completed_sets / self.planned_sets

    def completed_values(self, metric: ProgressionMetric | str) -> list[float]:
        values = []
        for s in self.sets:
            if not s.completed:
                continue
            v = s.value(metric)
            if v is not None and v > 0:
                values.append(v)
        return values

    def best_value(self, metric: ProgressionMetric | str) -> Optional[float]:
        """Highest completed value of ``metric`` (the working value)."""
        values = self.completed_values(metric)
        return max(values) if values else None

    def rpe_values(self) -> list[float]:
        return [float(s.rpe) for s in self.sets if s.completed and s.rpe is not None]


@dataclasses.dataclass(frozen=True)
class ExerciseHistory:
    """Sessions of one exercise ordered newest first."""

    exercise_id: str
    sessions: tuple[SessionRecord, ...] = ()

    def __post_init__(self) -> None:
        ordered = sorted(self.sessions, key=lambda s: s.session_date, reverse=True)
        object.__setattr__(self, "sessions", tuple(ordered))

    @classmethod
    def from_sessions(cls, exercise_id: str, sessions: Iterable[SessionRecord]) -> "ExerciseHistory":
        return cls(exercise_id, tuple(sessions))

    @property
    def is_empty(self) -> bool:
        return not self.sessions

    @property
    def latest(self) -> Optional[SessionRecord]:
        return self.sessions[0] if self.sessions else None

    @property
    def previous(self) -> Optional[SessionRecord]:
        return self.sessions[1] if len(self.sessions) > 1 else None

    def days_since_last(self, today: datetime.date) -> Optional[int]:
        if self.latest is None:
            return None
        return (today - self.latest.session_date).days
