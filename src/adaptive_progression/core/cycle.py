"""
Four-week periodized cycle from one base week.

Week 1 is the base week itself, weeks 2-3 ramp volume (+5%, +10%) and
week 4 deloads to 70%. Multipliers are fixed; the metrics argument is
accepted so metric-driven ramps can be added without changing callers.
"""

from dataclasses import replace
from typing import Sequence

from .config import DEFAULT_SETTINGS, EngineSettings, round_half_up, round_to_step
from .models import (
    CyclePlan,
    PerformanceMetrics,
    RegeneratedPlanExercise,
    RegeneratedPlanWorkout,
)


def _scale_exercise(
    exercise: RegeneratedPlanExercise,
    multiplier: float,
    weight_factor: float,
) -> RegeneratedPlanExercise:
    weight = exercise.target_weight_lbs
    return replace(
        exercise,
        target_sets=max(1, round_half_up(exercise.target_sets * multiplier)),
        target_weight_lbs=round_to_step(weight * weight_factor) if weight is not None else None,
    )


def apply_weekly_progression(
    workouts: Sequence[RegeneratedPlanWorkout],
    multiplier: float,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, ...]:
    """
    Scale one week's volume and load uniformly.

    sets   = max(1, round(sets * multiplier))
    volume = round(workout_sets * multiplier)
    weight = round_to_step(weight * (1.02 if multiplier > 1 else 0.95))

    Args:
        workouts: Base week
        multiplier: Volume multiplier for the week
        settings: Engine settings (weight factors)

    Returns:
        New workout records for the week
    """
    weight_factor = (
        settings.cycle_weight_up_factor if multiplier > 1 else settings.cycle_weight_down_factor
    )
    return tuple(
        replace(
            workout,
            target_volume_sets=round_half_up(workout.target_volume_sets * multiplier),
            exercises=tuple(
                _scale_exercise(e, multiplier, weight_factor) for e in workout.exercises
            ),
        )
        for workout in workouts
    )


def generate_cycle_plan(
    base_week: Sequence[RegeneratedPlanWorkout],
    metrics: PerformanceMetrics | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> CyclePlan:
    """
    Expand a validated base week into base / progressive / peak / deload.

    Week 1 is returned unchanged (same records as ``base_week``).

    Args:
        base_week: Regenerated, clamped workouts for one week
        metrics: Window metrics (currently unused by the fixed multipliers)
        settings: Engine settings (cycle_multipliers, weight factors)

    Returns:
        CyclePlan with four weeks
    """
    _, progressive, peak, deload = settings.cycle_multipliers
    base = tuple(base_week)
    return CyclePlan(
        week1=base,
        week2=apply_weekly_progression(base, progressive, settings),
        week3=apply_weekly_progression(base, peak, settings),
        week4=apply_weekly_progression(base, deload, settings),
    )
