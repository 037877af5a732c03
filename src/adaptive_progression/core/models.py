"""
Data models for adaptive-progression.

All records are frozen dataclasses produced per invocation: the engine
reads logs and plans and returns new records, it never mutates inputs.
Collections are tuples for the same reason.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

ProgressionAction = Literal["increase", "maintain", "decrease", "deload"]
PROGRESSION_ACTIONS: tuple[str, ...] = ("increase", "maintain", "decrease", "deload")

# Exercise modality. Only "strength" exercises get a target weight.
ExerciseType = str


def _validate_date(date_str: str) -> None:
    """Validate date string is ISO format YYYY-MM-DD."""
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}") from e


def _validate_scale(value: float | None, name: str) -> None:
    """Self-reported scales (RPE, difficulty, energy) are 0-10 when present."""
    if value is not None and not 0 <= value <= 10:
        raise ValueError(f"{name} must be between 0 and 10, got {value}")


@dataclass(frozen=True)
class ExerciseLogEntry:
    """
    One exercise's performance within a logged session.
    """

    exercise_id: str
    sets_completed: int
    total_volume_lbs: float  # sum of weight x reps
    max_weight_lbs: float
    avg_rpe: float | None = None
    exercise_type: ExerciseType = "strength"

    def __post_init__(self) -> None:
        if not self.exercise_id:
            raise ValueError("exercise_id must be non-empty")
        if self.sets_completed < 0:
            raise ValueError("sets_completed must be non-negative")
        if self.total_volume_lbs < 0:
            raise ValueError("total_volume_lbs must be non-negative")
        if self.max_weight_lbs < 0:
            raise ValueError("max_weight_lbs must be non-negative")
        _validate_scale(self.avg_rpe, "avg_rpe")


@dataclass(frozen=True)
class WorkoutLogEntry:
    """
    One completed or attempted workout session.

    ``status`` is free text; only "completed" counts towards completion rate.
    """

    workout_date: str  # ISO format: YYYY-MM-DD
    status: str
    planned_duration_minutes: float
    actual_duration_minutes: float
    total_exercises_completed: int = 0
    total_sets_completed: int = 0
    total_volume_lbs: float = 0.0
    avg_rpe: float | None = None
    perceived_difficulty: float | None = None
    energy_level: float | None = None
    plan_workout_id: str | None = None
    exercise_logs: tuple[ExerciseLogEntry, ...] = ()

    def __post_init__(self) -> None:
        _validate_date(self.workout_date)
        if self.planned_duration_minutes < 0:
            raise ValueError("planned_duration_minutes must be non-negative")
        if self.actual_duration_minutes < 0:
            raise ValueError("actual_duration_minutes must be non-negative")
        if self.total_sets_completed < 0 or self.total_exercises_completed < 0:
            raise ValueError("completed counts must be non-negative")
        if self.total_volume_lbs < 0:
            raise ValueError("total_volume_lbs must be non-negative")
        _validate_scale(self.avg_rpe, "avg_rpe")
        _validate_scale(self.perceived_difficulty, "perceived_difficulty")
        _validate_scale(self.energy_level, "energy_level")

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


@dataclass(frozen=True)
class PlannedExercise:
    """
    Current prescription for one exercise inside a planned workout.

    An inverted rep range (min > max) is accepted here and reported by
    the plan validator instead of being corrected.
    """

    exercise_id: str
    target_sets: int
    target_reps_min: int
    target_reps_max: int
    rest_seconds: int
    exercise_order: int = 0
    exercise_name: str = ""
    exercise_type: ExerciseType = "strength"

    def __post_init__(self) -> None:
        if not self.exercise_id:
            raise ValueError("exercise_id must be non-empty")
        if self.target_sets < 1:
            raise ValueError("target_sets must be at least 1")
        if self.target_reps_min < 0 or self.target_reps_max < 0:
            raise ValueError("target reps must be non-negative")
        if self.rest_seconds < 0:
            raise ValueError("rest_seconds must be non-negative")
        if self.exercise_order < 0:
            raise ValueError("exercise_order must be non-negative")

    @property
    def display_name(self) -> str:
        return self.exercise_name or self.exercise_id


@dataclass(frozen=True)
class PlannedWorkout:
    """
    A named session (e.g. "Push Day A") in the active plan.

    ``target_volume_sets`` must equal the sum of the exercises' target sets.
    """

    workout_name: str
    day_of_week: int
    estimated_duration_minutes: int
    target_volume_sets: int
    exercises: tuple[PlannedExercise, ...] = ()
    workout_type: str = ""

    def __post_init__(self) -> None:
        if not self.workout_name:
            raise ValueError("workout_name must be non-empty")
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be 0-6, got {self.day_of_week}")
        if self.estimated_duration_minutes < 0:
            raise ValueError("estimated_duration_minutes must be non-negative")
        total = sum(e.target_sets for e in self.exercises)
        if self.target_volume_sets != total:
            raise ValueError(
                f"{self.workout_name}: target_volume_sets={self.target_volume_sets} "
                f"does not match the sum of exercise sets ({total})"
            )


@dataclass(frozen=True)
class WorkoutPlan:
    """
    The active plan: ordered workouts plus the mesocycle pointer.
    """

    plan_name: str
    duration_weeks: int
    workouts_per_week: int
    current_week: int
    workouts: tuple[PlannedWorkout, ...] = ()
    plan_id: str | None = None

    def __post_init__(self) -> None:
        if self.duration_weeks < 1:
            raise ValueError("duration_weeks must be at least 1")
        if self.workouts_per_week < 0:
            raise ValueError("workouts_per_week must be non-negative")
        if self.current_week < 1:
            raise ValueError("current_week must be at least 1")

    @property
    def total_sets(self) -> int:
        """Sum of target sets across every workout of the plan."""
        return sum(w.target_volume_sets for w in self.workouts)


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Derived view of the analysis window; never stored.

    Scores are 0-100; volume_progression is a signed percentage.
    """

    completion_rate: float
    volume_progression: float
    rpe_average: float | None
    consistency_score: float
    readiness_score: float
    recovery_score: float


@dataclass(frozen=True)
class ProgressionRecommendation:
    """
    Global decision for the next block of training.
    """

    action: ProgressionAction
    volume_adjustment: float  # % change in sets
    intensity_adjustment: float  # % change in weight
    rationale: str
    confidence: int  # 0-100

    def __post_init__(self) -> None:
        if self.action not in PROGRESSION_ACTIONS:
            raise ValueError(f"Invalid action: {self.action}")


@dataclass(frozen=True)
class ExerciseProgression:
    """
    Per-exercise deltas derived from its log window and the global decision.

    current_* / target_volume / target_intensity are 0 when the window is empty.
    """

    exercise_id: str
    current_volume: float
    current_intensity: float  # mean max weight
    target_volume: float
    target_intensity: float
    sets_adjustment: int
    reps_adjustment: int
    weight_adjustment: float  # % change
    target_sets: int
    target_reps_min: int
    target_reps_max: int
    recommendation: ProgressionRecommendation
    set_completion_rate: float | None = None
    avg_rpe: float | None = None
    sessions_analyzed: int = 0


@dataclass(frozen=True)
class RegeneratedPlanExercise:
    """
    Engine output for one exercise: the new prescription plus notes.
    """

    exercise_id: str
    target_sets: int
    target_reps_min: int
    target_reps_max: int
    target_weight_lbs: float | None
    rest_seconds: int
    exercise_order: int
    progression_notes: str
    exercise_name: str = ""
    baseline_weight_lbs: float | None = None  # mean logged max weight before adjustment

    @property
    def display_name(self) -> str:
        return self.exercise_name or self.exercise_id


@dataclass(frozen=True)
class RegeneratedPlanWorkout:
    """
    Engine output for one workout.
    """

    workout_name: str
    workout_type: str
    day_of_week: int
    estimated_duration_minutes: int
    target_volume_sets: int
    exercises: tuple[RegeneratedPlanExercise, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    """
    Advisory result of the plan validator; ``valid`` never blocks output.
    """

    valid: bool
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class CyclePlan:
    """
    Four-week periodized expansion of a base week.
    """

    week1: tuple[RegeneratedPlanWorkout, ...]
    week2: tuple[RegeneratedPlanWorkout, ...]
    week3: tuple[RegeneratedPlanWorkout, ...]
    week4: tuple[RegeneratedPlanWorkout, ...]

    @property
    def weeks(self) -> tuple[tuple[RegeneratedPlanWorkout, ...], ...]:
        return (self.week1, self.week2, self.week3, self.week4)

    def week_volumes(self) -> list[int]:
        """Total target sets per week, week 1 first."""
        return [sum(w.target_volume_sets for w in week) for week in self.weeks]


@dataclass(frozen=True)
class PlanAdvance:
    """
    Where the plan pointer moves after a regeneration.
    """

    week: int
    is_new_cycle: bool
    plan_name: str


@dataclass(frozen=True)
class RegenerationResult:
    """
    Everything one regeneration request produces, ready for persistence.
    """

    metrics: PerformanceMetrics
    recommendation: ProgressionRecommendation
    workouts: tuple[RegeneratedPlanWorkout, ...]
    validation: ValidationResult
    advance: PlanAdvance
    # progressions[wi][ei] produced workouts[wi].exercises[ei] (before safety rules)
    progressions: tuple[tuple[ExerciseProgression, ...], ...] = ()
    cycle: CyclePlan | None = None

    @property
    def total_sets(self) -> int:
        return sum(w.target_volume_sets for w in self.workouts)

    @property
    def estimated_weekly_duration(self) -> int:
        return sum(w.estimated_duration_minutes for w in self.workouts)
