"""Per-exercise learned state fed by the user's responses to suggestions."""
from __future__ import annotations

import collections
import datetime
import enum
import logging
from typing import Any, Iterable, Optional

from algorithms.math_tools import MathTools

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
DEFAULT_SMOOTHING = 0.3
DEFAULT_CONFIDENCE = 0.5
LOW_ACCEPTANCE_RATE = 0.45
LOW_ACCEPTANCE_MIN_PRESENTED = 4


class ResponseOutcome(str, enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ADJUSTED = "adjusted"


class LearnedPhase(str, enum.Enum):
    NO_HISTORY = "no_history"
    ACTIVE = "active"
    STALE = "stale"


class ExerciseProgressionState:
    """Running statistics for one exercise.

    ``recent_outcomes`` is a bounded FIFO ordered oldest to newest; once the
    capacity is reached the oldest outcome is evicted.
    """

    def __init__(
        self,
        suggestions_presented: int = 0,
        accepted_count: int = 0,
        success_streak: int = 0,
        fail_streak: int = 0,
        confidence: float = DEFAULT_CONFIDENCE,
        recent_outcomes: Iterable[ResponseOutcome | str] = (),
        capacity: int = DEFAULT_CAPACITY,
        last_suggested_value: Optional[float] = None,
        last_updated_at: Optional[datetime.date] = None,
        awaiting_response: bool = False,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if min(suggestions_presented, accepted_count, success_streak, fail_streak) < 0:
            raise ValueError("counters must be non-negative")
        self.suggestions_presented = suggestions_presented
        self.accepted_count = accepted_count
        self.success_streak = success_streak
        self.fail_streak = fail_streak
        self.confidence = MathTools.clamp(confidence, 0.0, 1.0)
        self._outcomes: collections.deque[ResponseOutcome] = collections.deque(
            (ResponseOutcome(o) for o in recent_outcomes), maxlen=capacity
        )
        self.last_suggested_value = last_suggested_value
        self.last_updated_at = last_updated_at
        self.awaiting_response = awaiting_response

    @property
    def capacity(self) -> int:
        return self._outcomes.maxlen or DEFAULT_CAPACITY

    @property
    def recent_outcomes(self) -> tuple[ResponseOutcome, ...]:
        return tuple(self._outcomes)

    @property
    def latest_outcome(self) -> Optional[ResponseOutcome]:
        return self._outcomes[-1] if self._outcomes else None

    @property
    def acceptance_rate(self) -> Optional[float]:
        if self.suggestions_presented == 0:
            return None
        return self.accepted_count / self.suggestions_presented

    @property
    def is_oscillating(self) -> bool:
        """True when the two most recent outcomes point in different directions."""
        return len(self._outcomes) >= 2 and self._outcomes[-1] != self._outcomes[-2]

    @property
    def is_low_acceptance(self) -> bool:
        rate = self.acceptance_rate
        return (
            self.suggestions_presented >= LOW_ACCEPTANCE_MIN_PRESENTED
            and rate is not None
            and rate < LOW_ACCEPTANCE_RATE
        )

    def push_outcome(self, outcome: ResponseOutcome) -> None:
        self._outcomes.append(ResponseOutcome(outcome))

    def phase(self, today: datetime.date, stale_after_days: int) -> LearnedPhase:
        if self.suggestions_presented == 0:
            return LearnedPhase.NO_HISTORY
        if self.last_updated_at is not None and (today - self.last_updated_at).days > stale_after_days:
            return LearnedPhase.STALE
        return LearnedPhase.ACTIVE

    def copy(self) -> "ExerciseProgressionState":
        return ExerciseProgressionState(
            suggestions_presented=self.suggestions_presented,
            accepted_count=self.accepted_count,
            success_streak=self.success_streak,
            fail_streak=self.fail_streak,
            confidence=self.confidence,
            recent_outcomes=self._outcomes,
            capacity=self.capacity,
            last_suggested_value=self.last_suggested_value,
            last_updated_at=self.last_updated_at,
            awaiting_response=self.awaiting_response,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions_presented": self.suggestions_presented,
            "accepted_count": self.accepted_count,
            "success_streak": self.success_streak,
            "fail_streak": self.fail_streak,
            "confidence": self.confidence,
            "recent_outcomes": [o.value for o in self._outcomes],
            "capacity": self.capacity,
            "last_suggested_value": self.last_suggested_value,
            "last_updated_at": self.last_updated_at.isoformat() if self.last_updated_at else None,
            "awaiting_response": self.awaiting_response,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExerciseProgressionState":
        updated = data.get("last_updated_at")
        if isinstance(updated, str):
            updated = datetime.date.fromisoformat(updated)
        return cls(
            suggestions_presented=int(data.get("suggestions_presented", 0)),
            accepted_count=int(data.get("accepted_count", 0)),
            success_streak=int(data.get("success_streak", 0)),
            fail_streak=int(data.get("fail_streak", 0)),
            confidence=float(data.get("confidence", DEFAULT_CONFIDENCE)),
            recent_outcomes=data.get("recent_outcomes", ()),
            capacity=int(data.get("capacity", DEFAULT_CAPACITY)),
            last_suggested_value=data.get("last_suggested_value"),
            last_updated_at=updated,
            awaiting_response=bool(data.get("awaiting_response", False)),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExerciseProgressionState):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"ExerciseProgressionState(presented={self.suggestions_presented}, "
            f"accepted={self.accepted_count}, success_streak={self.success_streak}, "
            f"fail_streak={self.fail_streak}, confidence={self.confidence:.3f})"
        )


class LearnedStateTracker:
    """Applies suggestion/response events to :class:`ExerciseProgressionState`.

    Every method returns a new state object; the input is left untouched so
    the caller decides when to write the result back.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        smoothing: float = DEFAULT_SMOOTHING,
        initial_confidence: float = DEFAULT_CONFIDENCE,
    ) -> None:
        if not 0.0 < smoothing <= 1.0:
            raise ValueError("smoothing must be within (0, 1]")
        self.capacity = capacity
        self.smoothing = smoothing
        self.initial_confidence = initial_confidence

    def new_state(self) -> ExerciseProgressionState:
        return ExerciseProgressionState(confidence=self.initial_confidence, capacity=self.capacity)

    def reset(self) -> ExerciseProgressionState:
        return self.new_state()

    def mark_presented(
        self,
        state: ExerciseProgressionState | None,
        value: float,
        when: datetime.date,
    ) -> ExerciseProgressionState:
        updated = state.copy() if state is not None else self.new_state()
        updated.suggestions_presented += 1
        updated.last_suggested_value = value
        updated.last_updated_at = when
        updated.awaiting_response = True
        return updated

    def record_response(
        self,
        state: ExerciseProgressionState | None,
        outcome: ResponseOutcome | str,
        when: datetime.date | None = None,
    ) -> ExerciseProgressionState:
        outcome = ResponseOutcome(outcome)
        updated = state.copy() if state is not None else self.new_state()
        if not updated.awaiting_response:
            # response to a suggestion that was never marked as presented
            updated.suggestions_presented += 1
        updated.awaiting_response = False
        if outcome is ResponseOutcome.ACCEPTED:
            updated.accepted_count += 1
            updated.success_streak += 1
            updated.fail_streak = 0
        elif outcome is ResponseOutcome.REJECTED:
            updated.fail_streak += 1
            updated.success_streak = 0
        else:
            updated.success_streak = 0
        updated.push_outcome(outcome)
        updated.confidence = self._confidence_after(updated, outcome)
        updated.last_updated_at = when or datetime.date.today()
        logger.debug("Recorded %s response: %r", outcome.value, updated)
        return updated

    def _confidence_after(self, state: ExerciseProgressionState, outcome: ResponseOutcome) -> float:
        rate = state.acceptance_rate or 0.0
        if outcome is ResponseOutcome.ACCEPTED:
            alpha = self.smoothing * (1.0 + rate) / 2.0 * self._streak_factor(state.success_streak)
            target = 1.0
        elif outcome is ResponseOutcome.REJECTED:
            alpha = self.smoothing * (2.0 - rate) / 2.0 * self._streak_factor(state.fail_streak)
            target = 0.0
        else:
            alpha = self.smoothing / 2.0
            target = rate
        confidence = MathTools.smooth(state.confidence, target, min(alpha, 1.0))
        return MathTools.clamp(confidence, 0.0, 1.0)

    @staticmethod
    def _streak_factor(streak: int) -> float:
        return min(1.0 + 0.1 * max(streak - 1, 0), 1.5)
