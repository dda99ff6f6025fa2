"""Progression configuration owned by a training program."""
from __future__ import annotations

import enum
import logging
from typing import Any, Iterable, Optional

from learned_state import ExerciseProgressionState
from progression_profile import BALANCED, ProgressionProfile
from progression_rule import ProgressionRule

logger = logging.getLogger(__name__)


class ProgressionPolicy(str, enum.Enum):
    """Which engine a program uses."""

    LEGACY = "legacy"
    ADAPTIVE = "adaptive"

    @property
    def description(self) -> str:
        if self is ProgressionPolicy.LEGACY:
            return "Uses default progression for all enabled exercises."
        return "Uses per-exercise rules and prior session outcomes."


class ProgramProgressionConfig:
    """Per-program progression settings and learned state.

    The program is the single writer of these maps. Disabling an exercise
    removes its override, profile and learned state so stale entries never
    outlive the exercise's enrollment.
    """

    def __init__(
        self,
        progression_enabled: bool = True,
        progression_policy: ProgressionPolicy | str = ProgressionPolicy.LEGACY,
        progression_enabled_exercises: Iterable[str] = (),
        exercise_progression_overrides: dict[str, ProgressionRule] | None = None,
        default_progression_rule: Optional[ProgressionRule] = None,
        exercise_progression_profiles: dict[str, ProgressionProfile] | None = None,
        default_progression_profile: Optional[ProgressionProfile] = None,
        exercise_progression_states: dict[str, ExerciseProgressionState] | None = None,
    ) -> None:
        self.progression_enabled = progression_enabled
        self.progression_policy = ProgressionPolicy(progression_policy)
        self.progression_enabled_exercises: set[str] = set(progression_enabled_exercises)
        self.exercise_progression_overrides = dict(exercise_progression_overrides or {})
        self.default_progression_rule = default_progression_rule
        self.exercise_progression_profiles = dict(exercise_progression_profiles or {})
        self.default_progression_profile = default_progression_profile
        self.exercise_progression_states = dict(exercise_progression_states or {})
        self._prune()

    def _prune(self) -> None:
        enabled = self.progression_enabled_exercises
        for mapping in (
            self.exercise_progression_overrides,
            self.exercise_progression_profiles,
            self.exercise_progression_states,
        ):
            for exercise_id in [k for k in mapping if k not in enabled]:
                del mapping[exercise_id]

    def is_enabled(self, exercise_id: str) -> bool:
        return self.progression_enabled and exercise_id in self.progression_enabled_exercises

    def set_enabled(self, exercise_id: str, enabled: bool) -> None:
        if enabled:
            self.progression_enabled_exercises.add(exercise_id)
            return
        self.progression_enabled_exercises.discard(exercise_id)
        self.exercise_progression_overrides.pop(exercise_id, None)
        self.exercise_progression_profiles.pop(exercise_id, None)
        self.exercise_progression_states.pop(exercise_id, None)
        logger.info("Progression disabled for %s; learned state cleared", exercise_id)

    def rule_for(self, exercise_id: str) -> Optional[ProgressionRule]:
        """Override rule if present, else the program default."""
        if not self.is_enabled(exercise_id):
            return None
        return self.exercise_progression_overrides.get(exercise_id, self.default_progression_rule)

    def set_override(self, exercise_id: str, rule: Optional[ProgressionRule]) -> None:
        if rule is None:
            self.exercise_progression_overrides.pop(exercise_id, None)
        elif exercise_id in self.progression_enabled_exercises:
            self.exercise_progression_overrides[exercise_id] = rule

    def profile_for(
        self, exercise_id: str, fallback: Optional[ProgressionProfile] = None
    ) -> ProgressionProfile:
        """Per-exercise profile, else the program default, else ``fallback``."""
        profile = self.exercise_progression_profiles.get(exercise_id)
        if profile is not None:
            return profile
        return self.default_progression_profile or fallback or BALANCED

    def set_profile(self, exercise_id: str, profile: Optional[ProgressionProfile]) -> None:
        if profile is None:
            self.exercise_progression_profiles.pop(exercise_id, None)
        elif exercise_id in self.progression_enabled_exercises:
            self.exercise_progression_profiles[exercise_id] = profile

    def apply_profile_to_enabled(self, profile: Optional[ProgressionProfile] = None) -> None:
        profile = profile or self.default_progression_profile or BALANCED
        for exercise_id in self.progression_enabled_exercises:
            self.exercise_progression_profiles[exercise_id] = profile

    def tighten_readiness(self, exercise_ids: Iterable[str]) -> None:
        for exercise_id in exercise_ids:
            self.set_profile(exercise_id, self.profile_for(exercise_id).with_tightened_readiness())

    def state_for(self, exercise_id: str) -> Optional[ExerciseProgressionState]:
        return self.exercise_progression_states.get(exercise_id)

    def set_state(self, exercise_id: str, state: Optional[ExerciseProgressionState]) -> None:
        if state is None:
            self.exercise_progression_states.pop(exercise_id, None)
        elif exercise_id in self.progression_enabled_exercises:
            self.exercise_progression_states[exercise_id] = state

    def reset_states(self, exercise_id: Optional[str] = None) -> None:
        """Clear learned state for one exercise or for all of them."""
        if exercise_id is None:
            self.exercise_progression_states.clear()
        else:
            self.exercise_progression_states.pop(exercise_id, None)

    def low_acceptance_exercises(self) -> list[str]:
        return sorted(
            eid
            for eid, state in self.exercise_progression_states.items()
            if eid in self.progression_enabled_exercises and state.is_low_acceptance
        )

    def oscillating_exercises(self) -> list[str]:
        return sorted(
            eid
            for eid, state in self.exercise_progression_states.items()
            if eid in self.progression_enabled_exercises and state.is_oscillating
        )

    def average_acceptance(self) -> Optional[float]:
        rates = [
            s.acceptance_rate
            for s in self.exercise_progression_states.values()
            if s.acceptance_rate is not None
        ]
        if not rates:
            return None
        return sum(rates) / len(rates)

    def to_dict(self) -> dict[str, Any]:
        return {
            "progression_enabled": self.progression_enabled,
            "progression_policy": self.progression_policy.value,
            "progression_enabled_exercises": sorted(self.progression_enabled_exercises),
            "exercise_progression_overrides": {
                k: v.to_dict() for k, v in self.exercise_progression_overrides.items()
            },
            "default_progression_rule": (
                self.default_progression_rule.to_dict() if self.default_progression_rule else None
            ),
            "exercise_progression_profiles": {
                k: v.to_dict() for k, v in self.exercise_progression_profiles.items()
            },
            "default_progression_profile": (
                self.default_progression_profile.to_dict() if self.default_progression_profile else None
            ),
            "exercise_progression_states": {
                k: v.to_dict() for k, v in self.exercise_progression_states.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgramProgressionConfig":
        default_rule = data.get("default_progression_rule")
        default_profile = data.get("default_progression_profile")
        return cls(
            progression_enabled=bool(data.get("progression_enabled", True)),
            progression_policy=data.get("progression_policy", ProgressionPolicy.LEGACY),
            progression_enabled_exercises=data.get("progression_enabled_exercises") or (),
            exercise_progression_overrides={
                k: ProgressionRule.from_dict(v)
                for k, v in (data.get("exercise_progression_overrides") or {}).items()
            },
            default_progression_rule=ProgressionRule.from_dict(default_rule) if default_rule else None,
            exercise_progression_profiles={
                k: ProgressionProfile.from_dict(v)
                for k, v in (data.get("exercise_progression_profiles") or {}).items()
            },
            default_progression_profile=(
                ProgressionProfile.from_dict(default_profile) if default_profile else None
            ),
            exercise_progression_states={
                k: ExerciseProgressionState.from_dict(v)
                for k, v in (data.get("exercise_progression_states") or {}).items()
            },
        )
