"""
Exercise progression: per-exercise deltas from its recent logs.

The global recommendation decides the direction; the exercise's own set
completion and RPE decide how sets, reps and weight move.
"""

import math
from dataclasses import replace
from typing import Sequence

from .config import (
    DELOAD_MAX_SET_DROP,
    DELOAD_SET_FRACTION,
    HIGH_RPE_FOR_FEWER_REPS,
    LOW_RPE_FOR_EXTRA_REP,
    MIN_WEIGHT_INCREASE_PCT,
    SET_COMPLETION_FOR_EXTRA_SET,
)
from .models import (
    ExerciseLogEntry,
    ExerciseProgression,
    PlannedExercise,
    ProgressionRecommendation,
)


def sets_adjustment(
    action: str,
    set_completion_rate: float,
    planned_sets: int,
) -> int:
    """
    Integer change in sets for one exercise.

    increase: +1 when >= 95% of planned sets were completed, else 0
    decrease: -1
    deload:   max(-2, floor(planned_sets * -0.3))
    maintain: 0
    """
    if action == "increase":
        return 1 if set_completion_rate >= SET_COMPLETION_FOR_EXTRA_SET else 0
    if action == "decrease":
        return -1
    if action == "deload":
        return max(DELOAD_MAX_SET_DROP, math.floor(planned_sets * DELOAD_SET_FRACTION))
    return 0


def reps_adjustment(action: str, avg_rpe: float | None) -> int:
    """
    Integer change in the rep range.

    +1 when RPE < 7 under an increase, -1 when RPE > 9 otherwise.
    Without RPE reports the range is left alone.
    """
    if avg_rpe is None:
        return 0
    if avg_rpe < LOW_RPE_FOR_EXTRA_REP and action == "increase":
        return 1
    if avg_rpe > HIGH_RPE_FOR_FEWER_REPS and action != "increase":
        return -1
    return 0


def target_rep_range(planned: PlannedExercise, reps_delta: int) -> tuple[int, int]:
    """Shift the planned rep range, keeping min >= 1 and max >= min."""
    reps_min = max(1, planned.target_reps_min + reps_delta)
    reps_max = max(reps_min, planned.target_reps_max + reps_delta)
    return reps_min, reps_max


def calculate_exercise_progression(
    exercise_logs: Sequence[ExerciseLogEntry],
    planned: PlannedExercise,
    recommendation: ProgressionRecommendation,
) -> ExerciseProgression:
    """
    Derive set/rep/weight deltas for one exercise.

    An empty log window yields zero deltas and carries the global
    recommendation unchanged.

    Branch order matters: under an increase without an extra set the
    weight delta is floored at +2.5%, which may replace a smaller global
    intensity adjustment.

    Args:
        exercise_logs: This exercise's logs over the analysis window
        planned: Current prescription
        recommendation: Global recommendation

    Returns:
        ExerciseProgression with deltas and target values
    """
    if not exercise_logs:
        reps_min, reps_max = target_rep_range(planned, 0)
        return ExerciseProgression(
            exercise_id=planned.exercise_id,
            current_volume=0.0,
            current_intensity=0.0,
            target_volume=0.0,
            target_intensity=0.0,
            sets_adjustment=0,
            reps_adjustment=0,
            weight_adjustment=0.0,
            target_sets=max(1, planned.target_sets),
            target_reps_min=reps_min,
            target_reps_max=reps_max,
            recommendation=recommendation,
        )

    n = len(exercise_logs)
    avg_sets = sum(log.sets_completed for log in exercise_logs) / n
    avg_volume = sum(log.total_volume_lbs for log in exercise_logs) / n
    avg_weight = sum(log.max_weight_lbs for log in exercise_logs) / n
    rpe_values = [log.avg_rpe for log in exercise_logs if log.avg_rpe is not None]
    avg_rpe = sum(rpe_values) / len(rpe_values) if rpe_values else None

    set_completion = avg_sets / planned.target_sets * 100
    action = recommendation.action

    sets_delta = sets_adjustment(action, set_completion, planned.target_sets)
    weight_delta = recommendation.intensity_adjustment
    if action == "increase" and sets_delta == 0:
        # No extra set: progress through load instead
        weight_delta = max(weight_delta, MIN_WEIGHT_INCREASE_PCT)
    reps_delta = reps_adjustment(action, avg_rpe)

    target_sets = max(1, planned.target_sets + sets_delta)
    reps_min, reps_max = target_rep_range(planned, reps_delta)
    target_weight = avg_weight * (1 + weight_delta / 100)
    target_volume = target_sets * ((reps_min + reps_max) / 2) * target_weight

    rpe_text = f"{avg_rpe:.1f}" if avg_rpe is not None else "n/a"
    rationale = (
        f"{recommendation.rationale} Exercise-specific: "
        f"{set_completion:.0f}% set completion, {rpe_text} avg RPE."
    )

    return ExerciseProgression(
        exercise_id=planned.exercise_id,
        current_volume=avg_volume,
        current_intensity=avg_weight,
        target_volume=target_volume,
        target_intensity=target_weight,
        sets_adjustment=sets_delta,
        reps_adjustment=reps_delta,
        weight_adjustment=weight_delta,
        target_sets=target_sets,
        target_reps_min=reps_min,
        target_reps_max=reps_max,
        recommendation=replace(recommendation, rationale=rationale),
        set_completion_rate=set_completion,
        avg_rpe=avg_rpe,
        sessions_analyzed=n,
    )


def progression_notes(
    progression: ExerciseProgression,
    exercise_logs: Sequence[ExerciseLogEntry],
) -> str:
    """
    Human-readable explanation of the adjustments, "; "-joined.
    """
    if not exercise_logs:
        return "No previous data. Starting with planned parameters."

    notes: list[str] = []

    if progression.sets_adjustment > 0:
        notes.append(f"+{progression.sets_adjustment} set(s) - strong performance")
    elif progression.sets_adjustment < 0:
        notes.append(f"{progression.sets_adjustment} set(s) - recovery focus")

    if progression.reps_adjustment > 0:
        notes.append(f"+{progression.reps_adjustment} rep(s) - low RPE indicates capacity")
    elif progression.reps_adjustment < 0:
        notes.append(f"{progression.reps_adjustment} rep(s) - high RPE, maintaining quality")

    weight = progression.weight_adjustment
    if weight > 2:
        notes.append(f"+{weight:.1f}% weight - progressive overload")
    elif weight > 0:
        notes.append(f"+{weight:.1f}% weight - gradual progression")
    elif weight < -5:
        notes.append(f"{weight:.1f}% weight - deload phase")
    elif weight < 0:
        notes.append(f"{weight:.1f}% weight - recovery adjustment")

    if not notes:
        return "Maintaining current parameters - consistent performance"

    return "; ".join(notes)
