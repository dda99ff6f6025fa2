"""Derive normalised decision signals from session history and learned state.

Callers that compute their own signals can pass them to the orchestrator
directly; these defaults only need the history the engine already receives.
"""
from __future__ import annotations

import logging

from algorithms.math_tools import MathTools
from decision_policy import ProgressionSignals
from learned_state import DEFAULT_CONFIDENCE, ExerciseProgressionState
from progression_metrics import ProgressionMetric
from session_history import ExerciseHistory

logger = logging.getLogger(__name__)

# percent change between sessions that maps to a full 0 or 1 signal
PERFORMANCE_SPAN_PERCENT = 10.0
# RPE at or below this leaves full room to progress
EASY_RPE = 6.0
MAX_RPE = 10.0
STREAK_STEP = 0.125


def completion_signal(history: ExerciseHistory) -> float:
    latest = history.latest
    return latest.completion_ratio if latest is not None else 0.0


def performance_signal(history: ExerciseHistory, metric: ProgressionMetric) -> float:
    """0.5 when the working value is unchanged, moving toward 0 or 1 as it drops or rises."""
    latest, previous = history.latest, history.previous
    if latest is None or previous is None:
        return 0.5
    current = latest.best_value(metric)
    before = previous.best_value(metric)
    if current is None or before is None:
        return 0.5
    change = MathTools.percent_change(before, current)
    return MathTools.clamp(0.5 + change / (2 * PERFORMANCE_SPAN_PERCENT), 0.0, 1.0)


def effort_signal(history: ExerciseHistory) -> float:
    """Room left below maximal effort, from the latest session's average RPE."""
    latest = history.latest
    if latest is None:
        return 0.5
    avg = MathTools.mean(latest.rpe_values())
    if avg is None:
        return 0.5
    return MathTools.clamp((MAX_RPE - avg) / (MAX_RPE - EASY_RPE), 0.0, 1.0)


def confidence_signal(state: ExerciseProgressionState | None) -> float:
    return state.confidence if state is not None else DEFAULT_CONFIDENCE


def streak_signal(state: ExerciseProgressionState | None) -> float:
    if state is None:
        return 0.5
    balance = state.success_streak - state.fail_streak
    return MathTools.clamp(0.5 + STREAK_STEP * balance, 0.0, 1.0)


def derive_signals(
    history: ExerciseHistory,
    state: ExerciseProgressionState | None,
    metric: ProgressionMetric,
) -> ProgressionSignals:
    signals = ProgressionSignals(
        completion=completion_signal(history),
        performance=performance_signal(history, metric),
        effort=effort_signal(history),
        confidence=confidence_signal(state),
        streak=streak_signal(state),
    )
    logger.debug("Derived signals for %s: %s", history.exercise_id, signals)
    return signals
