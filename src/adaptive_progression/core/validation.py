"""
Advisory sanity checks for a regenerated plan.

Warnings never block output: the caller decides whether to persist.
"""

from typing import Sequence

from .config import (
    MAX_EXERCISE_SETS,
    MAX_WORKOUT_DURATION_MINUTES,
    MAX_WORKOUT_SETS,
    MIN_WORKOUT_SETS,
    REST_MIN_SECONDS,
)
from .models import RegeneratedPlanWorkout, ValidationResult


def validate_regenerated_plan(workouts: Sequence[RegeneratedPlanWorkout]) -> ValidationResult:
    """
    Check volume, duration, set counts, rep ranges and rest periods.

    Args:
        workouts: Regenerated (and clamped) workouts

    Returns:
        ValidationResult; valid is True only when there are no warnings
    """
    warnings: list[str] = []

    for workout in workouts:
        name = workout.workout_name
        if workout.target_volume_sets < MIN_WORKOUT_SETS:
            warnings.append(
                f"{name}: Very low volume ({workout.target_volume_sets} sets). "
                "Consider adding exercises."
            )
        if workout.target_volume_sets > MAX_WORKOUT_SETS:
            warnings.append(
                f"{name}: Very high volume ({workout.target_volume_sets} sets). "
                "Risk of overtraining."
            )
        if workout.estimated_duration_minutes > MAX_WORKOUT_DURATION_MINUTES:
            warnings.append(
                f"{name}: Long duration ({workout.estimated_duration_minutes} min). "
                "May affect adherence."
            )

        for exercise in workout.exercises:
            label = f"{name} / {exercise.display_name}"
            if exercise.target_sets > MAX_EXERCISE_SETS:
                warnings.append(
                    f"{label}: {exercise.target_sets} sets. Consider splitting or reducing."
                )
            if exercise.target_reps_max < exercise.target_reps_min:
                warnings.append(
                    f"{label}: Invalid rep range "
                    f"({exercise.target_reps_min}-{exercise.target_reps_max}). Min > Max."
                )
            if exercise.rest_seconds < REST_MIN_SECONDS:
                warnings.append(
                    f"{label}: Very short rest period ({exercise.rest_seconds}s). "
                    "May affect performance."
                )

    return ValidationResult(valid=not warnings, warnings=tuple(warnings))
