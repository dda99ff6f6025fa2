from __future__ import annotations

import dataclasses
import datetime
import enum
import logging
from typing import Mapping, Optional, Union

from algorithms.math_tools import MathTools
from decision_policy import ProgressionSignals, Verdict
from guardrails import ProgressionGuardrails
from learned_state import ExerciseProgressionState, LearnedStateTracker, ResponseOutcome
from program_config import ProgramProgressionConfig, ProgressionPolicy
from progression_metrics import ProgressionMetric, format_value, value_floor
from progression_profile import PROFILE_PRESETS, ProgressionProfile, profile_preset
from progression_rule import (
    RULE_PRESETS,
    ProgressionRule,
    ProgressionStrategy,
    ProgressionSuggestion,
    baseline_rule,
    rule_preset,
)
from session_history import ExerciseHistory
from settings_schema import EngineSettingsSchema
from signals import derive_signals

logger = logging.getLogger(__name__)


class NoSuggestionReason(str, enum.Enum):
    INSUFFICIENT_COMPLETION = "insufficient_completion"
    INSUFFICIENT_VOLUME = "insufficient_volume"
    STALE = "stale"
    PROGRESSION_DISABLED = "progression_disabled"
    NO_RULE = "no_rule"


class DecisionSource(str, enum.Enum):
    POLICY = "policy"
    USER = "user"
    STRATEGY = "strategy"
    LEGACY = "legacy"


@dataclasses.dataclass(frozen=True)
class NoSuggestion:
    exercise_id: str
    reason: NoSuggestionReason


@dataclasses.dataclass(frozen=True)
class Suggestion:
    exercise_id: str
    target_value: float
    verdict: Verdict
    updated_state: Optional[ExerciseProgressionState]
    base_value: float
    metric: ProgressionMetric
    score: Optional[float] = None
    source: DecisionSource = DecisionSource.POLICY
    capped: bool = False

    @property
    def percentage_applied(self) -> float:
        return MathTools.percent_change(self.base_value, self.target_value)

    def as_progression_suggestion(self) -> ProgressionSuggestion:
        return ProgressionSuggestion(
            base_value=self.base_value,
            suggested_value=self.target_value,
            metric=self.metric,
            percentage_applied=self.percentage_applied,
        )


EvaluationResult = Union[NoSuggestion, Suggestion]


class ProgressionService:
    """Runs one progression cycle per exercise.

    Readiness gate, decision policy, guardrail-bounded delta, rule rounding
    and learned state update are applied in that order. Configuration and
    history are passed in on every call; the service keeps no per-exercise
    state of its own.
    """

    def __init__(
        self,
        tracker: LearnedStateTracker | None = None,
        rule_presets: dict[str, ProgressionRule] | None = None,
        profile_presets: dict[str, ProgressionProfile] | None = None,
        default_profile: ProgressionProfile | None = None,
        normalize_decision_weights: bool = False,
        weight_unit: str = "lbs",
        distance_unit: str = "mi",
    ) -> None:
        self.tracker = tracker or LearnedStateTracker()
        self.rule_presets = dict(RULE_PRESETS)
        self.rule_presets.update(rule_presets or {})
        self.profile_presets = dict(PROFILE_PRESETS)
        self.profile_presets.update(profile_presets or {})
        self.default_profile = default_profile
        self.normalize_decision_weights = normalize_decision_weights
        self.weight_unit = weight_unit
        self.distance_unit = distance_unit

    @classmethod
    def from_settings(cls, settings: EngineSettingsSchema) -> "ProgressionService":
        """Build a service from validated engine settings."""
        rules = {name: ProgressionRule.from_dict(data) for name, data in settings.rules.items()}
        profiles = {
            name: ProgressionProfile.from_dict(data) for name, data in settings.profiles.items()
        }
        for rule in rules.values():
            rule.validate()
        for profile in profiles.values():
            profile.validate()
        service = cls(
            tracker=LearnedStateTracker(
                capacity=settings.recent_outcome_capacity,
                smoothing=settings.confidence_smoothing,
                initial_confidence=settings.initial_confidence,
            ),
            rule_presets=rules,
            profile_presets=profiles,
            normalize_decision_weights=settings.normalize_decision_weights,
            weight_unit=settings.weight_unit,
            distance_unit=settings.distance_unit,
        )
        service.default_profile = service.profile_preset(settings.default_profile)
        return service

    def rule_preset(self, name: str) -> ProgressionRule:
        return rule_preset(name, self.rule_presets)

    def profile_preset(self, name: str) -> ProgressionProfile:
        return profile_preset(name, self.profile_presets)

    def evaluate(
        self,
        exercise_id: str,
        rule: ProgressionRule,
        profile: ProgressionProfile,
        state: ExerciseProgressionState | None,
        history: ExerciseHistory | None,
        *,
        today: datetime.date | None = None,
        signals: ProgressionSignals | None = None,
    ) -> EvaluationResult:
        """Evaluate one exercise for one cycle.

        Returns :class:`NoSuggestion` when the readiness gate rejects the
        exercise; ``state`` is not touched in that case. Malformed ``rule`` or
        ``profile`` raise :class:`ConfigurationError`.
        """
        today = today or datetime.date.today()
        rule.validate()
        profile.validate()
        policy = profile.decision_policy
        if self.normalize_decision_weights:
            policy = policy.normalized()

        gate = profile.readiness_gate.evaluate(history, today)
        if not gate.eligible:
            logger.info("No suggestion for %s: %s", exercise_id, gate.reason.value)
            return NoSuggestion(exercise_id, NoSuggestionReason(gate.reason.value))

        latest = history.latest
        base = latest.best_value(rule.target_metric)
        if base is None:
            logger.info("No %s data for %s", rule.target_metric.value, exercise_id)
            return NoSuggestion(exercise_id, NoSuggestionReason.INSUFFICIENT_VOLUME)

        if signals is None:
            signals = derive_signals(history, state, rule.target_metric)
        verdict, score = policy.decide(signals)
        source = DecisionSource.POLICY
        if latest.recommendation is not None:
            verdict = latest.recommendation
            source = DecisionSource.USER
        elif verdict is Verdict.PROGRESS and not self._rep_goal_met(rule, history):
            verdict = Verdict.HOLD
            source = DecisionSource.STRATEGY

        target, verdict, capped = self._bounded_target(rule, profile.guardrails, base, verdict)
        updated = self.tracker.mark_presented(state, target, today)
        logger.info(
            "Suggestion for %s: %s -> %s (%s, score=%.3f, source=%s)",
            exercise_id,
            base,
            target,
            verdict.value,
            score,
            source.value,
        )
        return Suggestion(
            exercise_id=exercise_id,
            target_value=target,
            verdict=verdict,
            updated_state=updated,
            base_value=base,
            metric=rule.target_metric,
            score=score,
            source=source,
            capped=capped,
        )

    def suggest_legacy(
        self,
        exercise_id: str,
        rule: ProgressionRule,
        history: ExerciseHistory | None,
    ) -> EvaluationResult:
        """Plain rule suggestion from the last session, without gate or learned state."""
        rule.validate()
        latest = history.latest if history is not None else None
        base = latest.best_value(rule.target_metric) if latest is not None else None
        if base is None:
            return NoSuggestion(exercise_id, NoSuggestionReason.INSUFFICIENT_VOLUME)
        suggestion = rule.suggestion(base)
        return Suggestion(
            exercise_id=exercise_id,
            target_value=suggestion.suggested_value,
            verdict=Verdict.PROGRESS,
            updated_state=None,
            base_value=suggestion.base_value,
            metric=suggestion.metric,
            source=DecisionSource.LEGACY,
        )

    def record_response(
        self,
        exercise_id: str,
        state: ExerciseProgressionState | None,
        outcome: ResponseOutcome | str,
        when: datetime.date | None = None,
    ) -> ExerciseProgressionState:
        updated = self.tracker.record_response(state, outcome, when)
        logger.info("Recorded %s for %s", ResponseOutcome(outcome).value, exercise_id)
        return updated

    def reset_state(self, config: ProgramProgressionConfig, exercise_id: str | None = None) -> None:
        """Clear learned state for ``exercise_id`` or, when omitted, every exercise."""
        config.reset_states(exercise_id)
        logger.info("Reset learned state for %s", exercise_id or "all exercises")

    def evaluate_program(
        self,
        config: ProgramProgressionConfig,
        histories: Mapping[str, ExerciseHistory],
        *,
        today: datetime.date | None = None,
    ) -> dict[str, EvaluationResult]:
        """Evaluate every exercise in ``histories`` and write back learned state.

        Exercises are independent of each other; only suggestions produced by
        the adaptive policy update ``config.exercise_progression_states``.
        """
        today = today or datetime.date.today()
        results: dict[str, EvaluationResult] = {}
        for exercise_id, history in histories.items():
            if not config.progression_enabled:
                results[exercise_id] = NoSuggestion(exercise_id, NoSuggestionReason.PROGRESSION_DISABLED)
                continue
            if config.progression_policy is ProgressionPolicy.LEGACY:
                rule = config.default_progression_rule
                if rule is None:
                    results[exercise_id] = NoSuggestion(exercise_id, NoSuggestionReason.NO_RULE)
                else:
                    results[exercise_id] = self.suggest_legacy(exercise_id, rule, history)
                continue
            if not config.is_enabled(exercise_id):
                results[exercise_id] = NoSuggestion(exercise_id, NoSuggestionReason.PROGRESSION_DISABLED)
                continue
            profile = config.profile_for(exercise_id, self.default_profile)
            rule = config.rule_for(exercise_id)
            if rule is None and profile.preferred_metric is not None:
                rule = baseline_rule(profile.preferred_metric)
            if rule is None:
                results[exercise_id] = NoSuggestion(exercise_id, NoSuggestionReason.NO_RULE)
                continue
            result = self.evaluate(
                exercise_id,
                rule,
                profile,
                config.state_for(exercise_id),
                history,
                today=today,
            )
            if isinstance(result, Suggestion) and result.updated_state is not None:
                config.set_state(exercise_id, result.updated_state)
            results[exercise_id] = result
        return results

    def format_suggestion(self, suggestion: Suggestion) -> str:
        return suggestion.as_progression_suggestion().formatted(
            weight_unit=self.weight_unit, distance_unit=self.distance_unit
        )

    def format_value(self, value: float, metric: ProgressionMetric) -> str:
        return format_value(
            value, metric, weight_unit=self.weight_unit, distance_unit=self.distance_unit
        )

    @staticmethod
    def _rep_goal_met(rule: ProgressionRule, history: ExerciseHistory) -> bool:
        if rule.strategy is not ProgressionStrategy.DOUBLE_PROGRESSION:
            return True
        latest = history.latest
        if latest is None or not latest.target_reps:
            return True
        achieved = [
            s.reps for s in latest.sets if s.completed and (s.weight or 0) > 0 and s.reps is not None
        ]
        return max(achieved, default=0) >= latest.target_reps

    @staticmethod
    def _bounded_target(
        rule: ProgressionRule,
        guardrails: ProgressionGuardrails,
        base: float,
        verdict: Verdict,
    ) -> tuple[float, Verdict, bool]:
        """Return ``(target, verdict, capped)`` for ``verdict`` from ``base``.

        Unless the guardrails set their own minimum step, one rounding
        increment is always allowed. A move that cannot survive rounding
        inside the guardrails turns into a hold at ``base``.
        """
        if verdict is Verdict.HOLD:
            return base, Verdict.HOLD, False
        increment = rule.rounding_increment
        guardrails = guardrails.with_minimum_step(increment)
        step = rule.raw_increase(base)
        if verdict is Verdict.REGRESS:
            step = -max(step, increment)
        delta_percent = step / base * 100.0
        bounded = guardrails.apply(base, delta_percent, verdict)
        capped = abs(bounded - (base + step)) > 1e-9
        rounded = rule.round_value(bounded)
        if verdict is Verdict.PROGRESS:
            rounded = max(rounded, round(base + increment, MathTools.PRECISION))
        else:
            rounded = max(rounded, value_floor(rule.target_metric))
        settled = guardrails.snap_inward(base, rounded, increment, verdict)
        if settled is None:
            return base, Verdict.HOLD, True
        if verdict is Verdict.PROGRESS and settled <= base:
            return base, Verdict.HOLD, True
        if verdict is Verdict.REGRESS and settled >= base:
            return base, Verdict.HOLD, True
        return settled, verdict, capped or settled != rounded
