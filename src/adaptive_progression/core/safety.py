"""
Safety rules applied to a regenerated week.

Each rule is a transform that returns new workout records; the previous
plan is only read. Rules run in a fixed order:

1. Global volume cap (total sets <= old total * 1.10)
2. Per-exercise set increase cap (new sets <= old sets + 2)
3. Weight increase cap (+5% compound, +10% isolation vs. logged baseline)
4. Deload enforcement (every workout < 80% of old volume -> weights x0.7)

A rule that changes an exercise appends a clause to its progression notes.
Durations are rescaled from the final set counts once all rules have run.
"""

import logging
import math
from dataclasses import replace
from typing import Sequence

from .config import (
    DEFAULT_SETTINGS,
    WEIGHT_ROUNDING_STEP,
    EngineSettings,
    round_half_up,
    round_to_step,
)
from .models import (
    PlannedExercise,
    RegeneratedPlanExercise,
    RegeneratedPlanWorkout,
    WorkoutPlan,
)

logger = logging.getLogger(__name__)

# Tolerance for float noise when turning the volume cap into whole sets
_CAP_EPSILON = 1e-9


def scale_duration(
    estimated_minutes: int,
    old_sets: int,
    new_sets: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> int:
    """
    Scale a workout's duration with its set count, clamped to [20, 120] min.
    """
    ratio = new_sets / old_sets if old_sets > 0 else 1.0
    minutes = round_half_up(estimated_minutes * ratio)
    return max(settings.duration_min_minutes, min(minutes, settings.duration_max_minutes))


def _with_note(exercise: RegeneratedPlanExercise, clause: str, **changes) -> RegeneratedPlanExercise:
    """Apply ``changes`` and append ``clause`` to the progression notes."""
    notes = f"{exercise.progression_notes}; {clause}" if exercise.progression_notes else clause
    return replace(exercise, progression_notes=notes, **changes)


def _with_exercises(
    workout: RegeneratedPlanWorkout,
    exercises: Sequence[RegeneratedPlanExercise],
) -> RegeneratedPlanWorkout:
    """Replace the exercises and recompute the workout's set total."""
    exercises = tuple(exercises)
    return replace(
        workout,
        exercises=exercises,
        target_volume_sets=sum(e.target_sets for e in exercises),
    )


def _planned_counterpart(
    plan: WorkoutPlan,
    workout_index: int,
    exercise_index: int,
) -> PlannedExercise | None:
    """The old exercise at the same position, if the old plan has one."""
    if workout_index >= len(plan.workouts):
        return None
    old_exercises = plan.workouts[workout_index].exercises
    if exercise_index >= len(old_exercises):
        return None
    return old_exercises[exercise_index]


def total_sets(workouts: Sequence[RegeneratedPlanWorkout]) -> int:
    """Sum of exercise target sets across all workouts."""
    return sum(e.target_sets for w in workouts for e in w.exercises)


def cap_total_volume(
    workouts: Sequence[RegeneratedPlanWorkout],
    plan: WorkoutPlan,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, ...]:
    """
    Rule 1: scale every exercise down so total sets stay within the cap.

    factor = cap / new_total; sets = max(1, floor(sets * factor)).
    If the 1-set floors still leave the plan above the cap, the largest
    exercises give up one set at a time until it holds.

    Args:
        workouts: Regenerated workouts
        plan: The plan they were regenerated from
        settings: Engine settings (volume_cap_ratio)

    Returns:
        Workouts whose total sets do not exceed old_total * volume_cap_ratio
    """
    old_total = plan.total_sets
    new_total = total_sets(workouts)
    cap = old_total * settings.volume_cap_ratio

    if new_total <= cap or new_total == 0:
        return tuple(workouts)

    factor = cap / new_total
    cap_sets = math.floor(cap + _CAP_EPSILON)

    sets = [
        [max(1, math.floor(e.target_sets * factor + _CAP_EPSILON)) for e in w.exercises]
        for w in workouts
    ]

    excess = sum(map(sum, sets)) - cap_sets
    while excess > 0:
        positions = [(wi, ei) for wi, row in enumerate(sets) for ei, s in enumerate(row) if s > 1]
        if not positions:
            break  # every exercise already at the 1-set floor
        wi, ei = max(positions, key=lambda p: sets[p[0]][p[1]])
        sets[wi][ei] -= 1
        excess -= 1

    logger.debug(
        "Volume cap: %d sets > %.1f allowed, scaled by %.3f to %d",
        new_total, cap, factor, sum(map(sum, sets)),
    )

    return tuple(
        _with_exercises(
            w,
            [
                _with_note(e, f"weekly volume cap: {s} set(s)", target_sets=s)
                if s != e.target_sets
                else e
                for e, s in zip(w.exercises, row)
            ],
        )
        for w, row in zip(workouts, sets)
    )


def cap_set_increase(
    workouts: Sequence[RegeneratedPlanWorkout],
    plan: WorkoutPlan,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, ...]:
    """
    Rule 2: an exercise may gain at most ``max_set_increase`` sets.

    Exercises are paired with the old plan by workout and exercise position.
    """
    result: list[RegeneratedPlanWorkout] = []
    for wi, workout in enumerate(workouts):
        exercises: list[RegeneratedPlanExercise] = []
        for ei, exercise in enumerate(workout.exercises):
            old = _planned_counterpart(plan, wi, ei)
            if old is not None and exercise.target_sets > old.target_sets + settings.max_set_increase:
                limit = old.target_sets + settings.max_set_increase
                logger.debug(
                    "Set cap: %s %d -> %d sets", exercise.exercise_id, exercise.target_sets, limit
                )
                exercise = _with_note(
                    exercise,
                    f"set increase capped at +{settings.max_set_increase} ({limit} sets)",
                    target_sets=limit,
                )
            exercises.append(exercise)
        result.append(_with_exercises(workout, exercises))
    return tuple(result)


def _floor_to_step(value: float, step: float = WEIGHT_ROUNDING_STEP) -> float:
    """Round a load down to the plate step so a cap is never exceeded."""
    return math.floor(value / step + _CAP_EPSILON) * step


def max_allowed_weight(
    baseline_weight: float,
    old_sets: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> float:
    """
    Heaviest target weight allowed for an exercise.

    Old target sets >= compound_set_threshold is the compound-movement
    proxy (+5%); everything else is treated as isolation (+10%).
    """
    if old_sets >= settings.compound_set_threshold:
        cap_pct = settings.compound_weight_cap_pct
    else:
        cap_pct = settings.isolation_weight_cap_pct
    return _floor_to_step(baseline_weight * (1 + cap_pct / 100))


def cap_weight_increase(
    workouts: Sequence[RegeneratedPlanWorkout],
    plan: WorkoutPlan,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, ...]:
    """
    Rule 3: limit the weight increase relative to the logged baseline.

    Exercises without a target weight or baseline are left unchanged.
    """
    result: list[RegeneratedPlanWorkout] = []
    for wi, workout in enumerate(workouts):
        exercises: list[RegeneratedPlanExercise] = []
        for ei, exercise in enumerate(workout.exercises):
            old = _planned_counterpart(plan, wi, ei)
            if (
                old is not None
                and exercise.target_weight_lbs is not None
                and exercise.baseline_weight_lbs
            ):
                limit = max_allowed_weight(exercise.baseline_weight_lbs, old.target_sets, settings)
                if exercise.target_weight_lbs > limit:
                    logger.debug(
                        "Weight cap: %s %.1f -> %.1f lbs",
                        exercise.exercise_id, exercise.target_weight_lbs, limit,
                    )
                    exercise = _with_note(
                        exercise, f"weight capped at {limit:.1f} lbs", target_weight_lbs=limit
                    )
            exercises.append(exercise)
        result.append(replace(workout, exercises=tuple(exercises)))
    return tuple(result)


def is_deload_week(
    workouts: Sequence[RegeneratedPlanWorkout],
    plan: WorkoutPlan,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> bool:
    """
    True when every workout dropped below 80% of its old volume.

    Workouts are matched to the old plan by name; a workout with no old
    counterpart means this is not a deload week.
    """
    old_volume = {w.workout_name: w.target_volume_sets for w in plan.workouts}
    for workout in workouts:
        previous = old_volume.get(workout.workout_name)
        if previous is None:
            return False
        if not workout.target_volume_sets < previous * settings.deload_detection_ratio:
            return False
    return True


def enforce_deload(
    workouts: Sequence[RegeneratedPlanWorkout],
    plan: WorkoutPlan,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, ...]:
    """
    Rule 4: in a deload week every target weight drops a further x0.7.
    """
    if not is_deload_week(workouts, plan, settings):
        return tuple(workouts)

    factor = settings.deload_weight_factor
    logger.debug("Deload week detected: weights x%.2f", factor)

    return tuple(
        replace(
            w,
            exercises=tuple(
                _with_note(
                    e,
                    f"deload week: weight x{factor:g}",
                    target_weight_lbs=round_to_step(e.target_weight_lbs * factor),
                )
                if e.target_weight_lbs is not None
                else e
                for e in w.exercises
            ),
        )
        for w in workouts
    )


def rescale_durations(
    workouts: Sequence[RegeneratedPlanWorkout],
    plan: WorkoutPlan,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, ...]:
    """
    Recompute each workout's duration from its final set count.

    Workouts are paired with the old plan by position; one without an old
    counterpart keeps its duration.
    """
    result: list[RegeneratedPlanWorkout] = []
    for wi, workout in enumerate(workouts):
        if wi < len(plan.workouts):
            old = plan.workouts[wi]
            workout = replace(
                workout,
                estimated_duration_minutes=scale_duration(
                    old.estimated_duration_minutes,
                    old.target_volume_sets,
                    workout.target_volume_sets,
                    settings,
                ),
            )
        result.append(workout)
    return tuple(result)


def apply_safety_rules(
    workouts: Sequence[RegeneratedPlanWorkout],
    plan: WorkoutPlan,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, ...]:
    """
    Run the four safety rules in order, then rescale durations.

    Args:
        workouts: Output of the plan regenerator
        plan: The plan they were regenerated from
        settings: Engine settings

    Returns:
        Clamped workouts (new records; inputs are not modified)
    """
    result = cap_total_volume(workouts, plan, settings)
    result = cap_set_increase(result, plan, settings)
    result = cap_weight_increase(result, plan, settings)
    result = enforce_deload(result, plan, settings)
    return rescale_durations(result, plan, settings)
