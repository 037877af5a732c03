"""
JSON serialization for plan, log and result models.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

import json
import re
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from ..core.models import (
    CyclePlan,
    ExerciseLogEntry,
    ExerciseProgression,
    PerformanceMetrics,
    PlanAdvance,
    PlannedExercise,
    PlannedWorkout,
    ProgressionRecommendation,
    RegeneratedPlanExercise,
    RegeneratedPlanWorkout,
    RegenerationResult,
    WorkoutLogEntry,
    WorkoutPlan,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate and normalize date string to ISO format.

    Args:
        date_str: Date string to validate

    Returns:
        Normalized YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


@contextmanager
def _parsing(record: str) -> Iterator[None]:
    """Report bad field values and failed model checks as ValidationError."""
    try:
        yield
    except KeyError as e:
        raise ValidationError(f"{record}: missing required field {e.args[0]!r}") from e
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{record}: {e}") from e


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


def exercise_log_to_dict(log: ExerciseLogEntry) -> dict[str, Any]:
    """Convert ExerciseLogEntry to JSON-compatible dict."""
    return {
        "exercise_id": log.exercise_id,
        "sets_completed": log.sets_completed,
        "total_volume_lbs": log.total_volume_lbs,
        "max_weight_lbs": log.max_weight_lbs,
        "avg_rpe": log.avg_rpe,
        "exercise_type": log.exercise_type,
    }


def dict_to_exercise_log(data: dict[str, Any]) -> ExerciseLogEntry:
    """
    Convert dict to ExerciseLogEntry.

    Raises:
        ValidationError: If data is invalid
    """
    with _parsing("exercise log"):
        validate_non_negative(data.get("sets_completed", 0), "sets_completed")
        validate_non_negative(data.get("total_volume_lbs", 0), "total_volume_lbs")
        validate_non_negative(data.get("max_weight_lbs", 0), "max_weight_lbs")

        return ExerciseLogEntry(
            exercise_id=str(data["exercise_id"]),
            sets_completed=int(data.get("sets_completed", 0)),
            total_volume_lbs=float(data.get("total_volume_lbs", 0.0)),
            max_weight_lbs=float(data.get("max_weight_lbs", 0.0)),
            avg_rpe=_optional_float(data.get("avg_rpe")),
            exercise_type=str(data.get("exercise_type", "strength")),
        )


def workout_log_to_dict(log: WorkoutLogEntry) -> dict[str, Any]:
    """Convert WorkoutLogEntry (with nested exercise logs) to a dict."""
    d: dict[str, Any] = {
        "workout_date": log.workout_date,
        "status": log.status,
        "planned_duration_minutes": log.planned_duration_minutes,
        "actual_duration_minutes": log.actual_duration_minutes,
        "total_exercises_completed": log.total_exercises_completed,
        "total_sets_completed": log.total_sets_completed,
        "total_volume_lbs": log.total_volume_lbs,
        "avg_rpe": log.avg_rpe,
        "perceived_difficulty": log.perceived_difficulty,
        "energy_level": log.energy_level,
        "exercise_logs": [exercise_log_to_dict(e) for e in log.exercise_logs],
    }
    if log.plan_workout_id is not None:
        d["plan_workout_id"] = log.plan_workout_id
    return d


def dict_to_workout_log(data: dict[str, Any]) -> WorkoutLogEntry:
    """
    Convert dict to WorkoutLogEntry.

    Raises:
        ValidationError: If data is invalid
    """
    with _parsing("workout log"):
        validate_date(data["workout_date"])
        validate_non_negative(data.get("total_volume_lbs", 0), "total_volume_lbs")

        return WorkoutLogEntry(
            workout_date=data["workout_date"],
            status=str(data.get("status", "completed")),
            planned_duration_minutes=float(data["planned_duration_minutes"]),
            actual_duration_minutes=float(data["actual_duration_minutes"]),
            total_exercises_completed=int(data.get("total_exercises_completed", 0)),
            total_sets_completed=int(data.get("total_sets_completed", 0)),
            total_volume_lbs=float(data.get("total_volume_lbs", 0.0)),
            avg_rpe=_optional_float(data.get("avg_rpe")),
            perceived_difficulty=_optional_float(data.get("perceived_difficulty")),
            energy_level=_optional_float(data.get("energy_level")),
            plan_workout_id=data.get("plan_workout_id"),
            exercise_logs=tuple(dict_to_exercise_log(e) for e in data.get("exercise_logs", [])),
        )


def workout_log_to_json_line(log: WorkoutLogEntry) -> str:
    """Serialize one workout log as a single JSONL line."""
    return json.dumps(workout_log_to_dict(log), separators=(",", ":"))


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


def planned_exercise_to_dict(exercise: PlannedExercise) -> dict[str, Any]:
    """Convert PlannedExercise to JSON-compatible dict."""
    return {
        "exercise_id": exercise.exercise_id,
        "exercise_name": exercise.exercise_name,
        "exercise_type": exercise.exercise_type,
        "target_sets": exercise.target_sets,
        "target_reps_min": exercise.target_reps_min,
        "target_reps_max": exercise.target_reps_max,
        "rest_seconds": exercise.rest_seconds,
        "exercise_order": exercise.exercise_order,
    }


def dict_to_planned_exercise(data: dict[str, Any], order: int = 0) -> PlannedExercise:
    """
    Convert dict to PlannedExercise.

    ``order`` is used when the record carries no exercise_order.

    Raises:
        ValidationError: If data is invalid
    """
    with _parsing("plan exercise"):
        return PlannedExercise(
            exercise_id=str(data["exercise_id"]),
            target_sets=int(data["target_sets"]),
            target_reps_min=int(data["target_reps_min"]),
            target_reps_max=int(data["target_reps_max"]),
            rest_seconds=int(data.get("rest_seconds", 90)),
            exercise_order=int(data.get("exercise_order", order)),
            exercise_name=str(data.get("exercise_name", "")),
            exercise_type=str(data.get("exercise_type", "strength")),
        )


def planned_workout_to_dict(workout: PlannedWorkout) -> dict[str, Any]:
    """Convert PlannedWorkout to JSON-compatible dict."""
    return {
        "workout_name": workout.workout_name,
        "workout_type": workout.workout_type,
        "day_of_week": workout.day_of_week,
        "estimated_duration_minutes": workout.estimated_duration_minutes,
        "target_volume_sets": workout.target_volume_sets,
        "exercises": [planned_exercise_to_dict(e) for e in workout.exercises],
    }


def dict_to_planned_workout(data: dict[str, Any]) -> PlannedWorkout:
    """
    Convert dict to PlannedWorkout.

    A missing target_volume_sets is derived from the exercises.

    Raises:
        ValidationError: If data is invalid
    """
    exercises = tuple(
        dict_to_planned_exercise(e, i) for i, e in enumerate(data.get("exercises", []))
    )
    with _parsing(f"plan workout {data.get('workout_name', '?')!r}"):
        volume = data.get("target_volume_sets")
        return PlannedWorkout(
            workout_name=str(data["workout_name"]),
            day_of_week=int(data.get("day_of_week", 0)),
            estimated_duration_minutes=int(data.get("estimated_duration_minutes", 60)),
            target_volume_sets=(
                int(volume) if volume is not None else sum(e.target_sets for e in exercises)
            ),
            exercises=exercises,
            workout_type=str(data.get("workout_type", "")),
        )


def workout_plan_to_dict(plan: WorkoutPlan) -> dict[str, Any]:
    """Convert WorkoutPlan to JSON-compatible dict."""
    d: dict[str, Any] = {
        "plan_name": plan.plan_name,
        "duration_weeks": plan.duration_weeks,
        "workouts_per_week": plan.workouts_per_week,
        "current_week": plan.current_week,
        "workouts": [planned_workout_to_dict(w) for w in plan.workouts],
    }
    if plan.plan_id is not None:
        d["plan_id"] = plan.plan_id
    return d


def dict_to_workout_plan(data: dict[str, Any]) -> WorkoutPlan:
    """
    Convert dict to WorkoutPlan.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("workout plan: expected a JSON object")
    workouts = tuple(dict_to_planned_workout(w) for w in data.get("workouts", []))
    with _parsing("workout plan"):
        return WorkoutPlan(
            plan_name=str(data["plan_name"]),
            duration_weeks=int(data.get("duration_weeks", 4)),
            workouts_per_week=int(data.get("workouts_per_week", len(workouts))),
            current_week=int(data.get("current_week", 1)),
            workouts=workouts,
            plan_id=data.get("plan_id"),
        )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


def metrics_to_dict(metrics: PerformanceMetrics) -> dict[str, Any]:
    return {
        "completion_rate": round(metrics.completion_rate, 2),
        "volume_progression": round(metrics.volume_progression, 2),
        "rpe_average": round(metrics.rpe_average, 2) if metrics.rpe_average is not None else None,
        "consistency_score": metrics.consistency_score,
        "readiness_score": metrics.readiness_score,
        "recovery_score": metrics.recovery_score,
    }


def recommendation_to_dict(recommendation: ProgressionRecommendation) -> dict[str, Any]:
    return {
        "action": recommendation.action,
        "volume_adjustment": recommendation.volume_adjustment,
        "intensity_adjustment": recommendation.intensity_adjustment,
        "rationale": recommendation.rationale,
        "confidence": recommendation.confidence,
    }


def progression_to_dict(progression: ExerciseProgression) -> dict[str, Any]:
    return {
        "exercise_id": progression.exercise_id,
        "current_volume": round(progression.current_volume, 2),
        "current_intensity": round(progression.current_intensity, 2),
        "target_volume": round(progression.target_volume, 2),
        "target_intensity": round(progression.target_intensity, 2),
        "sets_adjustment": progression.sets_adjustment,
        "reps_adjustment": progression.reps_adjustment,
        "weight_adjustment": progression.weight_adjustment,
        "rationale": progression.recommendation.rationale,
    }


def regenerated_exercise_to_dict(exercise: RegeneratedPlanExercise) -> dict[str, Any]:
    return {
        "exercise_id": exercise.exercise_id,
        "exercise_name": exercise.exercise_name,
        "target_sets": exercise.target_sets,
        "target_reps_min": exercise.target_reps_min,
        "target_reps_max": exercise.target_reps_max,
        "target_weight_lbs": exercise.target_weight_lbs,
        "rest_seconds": exercise.rest_seconds,
        "exercise_order": exercise.exercise_order,
        "progression_notes": exercise.progression_notes,
    }


def regenerated_workout_to_dict(workout: RegeneratedPlanWorkout) -> dict[str, Any]:
    return {
        "workout_name": workout.workout_name,
        "workout_type": workout.workout_type,
        "day_of_week": workout.day_of_week,
        "estimated_duration_minutes": workout.estimated_duration_minutes,
        "target_volume_sets": workout.target_volume_sets,
        "exercises": [regenerated_exercise_to_dict(e) for e in workout.exercises],
    }


def cycle_to_dict(cycle: CyclePlan) -> dict[str, Any]:
    return {
        f"week{i}": [regenerated_workout_to_dict(w) for w in week]
        for i, week in enumerate(cycle.weeks, 1)
    } | {"week_volumes": cycle.week_volumes()}


def advance_to_dict(advance: PlanAdvance) -> dict[str, Any]:
    return {
        "week": advance.week,
        "is_new_cycle": advance.is_new_cycle,
        "plan_name": advance.plan_name,
    }


def result_to_dict(result: RegenerationResult) -> dict[str, Any]:
    """
    Convert a RegenerationResult to the JSON shape handed to persistence.
    """
    return {
        "performance_analysis": {
            "metrics": metrics_to_dict(result.metrics),
            "recommendation": recommendation_to_dict(result.recommendation),
        },
        "regenerated_plan": {
            "workouts": [regenerated_workout_to_dict(w) for w in result.workouts],
            "total_sets": result.total_sets,
            "estimated_weekly_duration": result.estimated_weekly_duration,
        },
        "exercise_progressions": [
            {"workout_name": workout.workout_name, "exercise_order": order, **progression_to_dict(p)}
            for workout, progressions in zip(result.workouts, result.progressions)
            for order, p in enumerate(progressions)
        ],
        "validation": {
            "valid": result.validation.valid,
            "warnings": list(result.validation.warnings),
        },
        "cycle_plan": cycle_to_dict(result.cycle) if result.cycle is not None else None,
        "advance": advance_to_dict(result.advance),
    }


def regenerated_to_plan(
    result: RegenerationResult,
    previous: WorkoutPlan,
) -> WorkoutPlan:
    """
    Turn a regeneration result into the next active plan.

    Target weights and notes have no place in the plan prescription and
    are kept only in the saved result.
    """
    workouts = tuple(
        PlannedWorkout(
            workout_name=w.workout_name,
            day_of_week=w.day_of_week,
            estimated_duration_minutes=w.estimated_duration_minutes,
            target_volume_sets=sum(e.target_sets for e in w.exercises),
            workout_type=w.workout_type,
            exercises=tuple(
                PlannedExercise(
                    exercise_id=e.exercise_id,
                    target_sets=e.target_sets,
                    target_reps_min=e.target_reps_min,
                    target_reps_max=e.target_reps_max,
                    rest_seconds=e.rest_seconds,
                    exercise_order=e.exercise_order,
                    exercise_name=e.exercise_name,
                    exercise_type=_exercise_type(previous, e.exercise_id),
                )
                for e in w.exercises
            ),
        )
        for w in result.workouts
    )
    return WorkoutPlan(
        plan_name=result.advance.plan_name,
        duration_weeks=previous.duration_weeks,
        workouts_per_week=previous.workouts_per_week,
        current_week=result.advance.week,
        workouts=workouts,
        plan_id=previous.plan_id,
    )


def _exercise_type(plan: WorkoutPlan, exercise_id: str) -> str:
    for workout in plan.workouts:
        for exercise in workout.exercises:
            if exercise.exercise_id == exercise_id:
                return exercise.exercise_type
    return "strength"
