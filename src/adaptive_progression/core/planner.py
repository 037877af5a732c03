"""
Plan regeneration for adaptive-progression.

Walks the active plan's workouts and exercises, applies the per-exercise
progression, and assembles the regenerated week. regenerate_plan() runs
the whole pipeline:

    logs -> metrics -> recommendation -> regenerate -> safety -> validate
         -> (cycle) -> plan advance
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from .config import (
    ANALYSIS_WINDOW_DAYS,
    DEFAULT_SETTINGS,
    REST_DECREASE_WEIGHT_PCT,
    EngineSettings,
    round_to_step,
)
from .cycle import generate_cycle_plan
from .metrics import analyze_performance, group_exercise_logs
from .models import (
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
from .progression import calculate_exercise_progression, progression_notes
from .recommendation import determine_recommendation, performance_score
from .safety import apply_safety_rules, scale_duration
from .validation import validate_regenerated_plan

logger = logging.getLogger(__name__)


def calculate_target_weight(
    planned: PlannedExercise,
    exercise_logs: Sequence[ExerciseLogEntry],
    weight_adjustment: float,
) -> float | None:
    """
    Next target weight for a strength exercise.

    weight = round_to_step(mean(max_weight) * (1 + delta / 100))

    Both the planned type and the most recently logged modality must be
    "strength"; a movement last performed as cardio or mobility gets no load.

    Args:
        planned: Current prescription
        exercise_logs: Logs of the analysis window, oldest first
        weight_adjustment: Percentage weight delta

    Returns:
        Weight in lbs, or None without logs or for non-strength exercises
    """
    if not exercise_logs or planned.exercise_type != "strength":
        return None
    if exercise_logs[-1].exercise_type != "strength":
        return None
    avg_weight = sum(log.max_weight_lbs for log in exercise_logs) / len(exercise_logs)
    return round_to_step(avg_weight * (1 + weight_adjustment / 100))


def calculate_adjusted_rest(
    rest_seconds: int,
    weight_adjustment: float,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> int:
    """
    Rest follows load: +15 s (max 300 s) when weight goes up, -15 s below
    a -5% delta. Rest never ends below 30 s.
    """
    rest = rest_seconds
    if weight_adjustment > 0:
        rest = min(rest + settings.rest_step_seconds, settings.rest_max_seconds)
    elif weight_adjustment < REST_DECREASE_WEIGHT_PCT:
        rest = max(rest - settings.rest_step_seconds, settings.rest_min_seconds)
    return max(rest, settings.rest_min_seconds)


def regenerate_exercise(
    planned: PlannedExercise,
    exercise_logs: Sequence[ExerciseLogEntry],
    recommendation: ProgressionRecommendation,
    order: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanExercise, ExerciseProgression]:
    """
    New prescription for one exercise plus the progression behind it.

    Args:
        planned: Current prescription
        exercise_logs: This exercise's logs over the analysis window
        recommendation: Global recommendation
        order: Position of the exercise within its workout
        settings: Engine settings

    Returns:
        (regenerated exercise, exercise progression)
    """
    progression = calculate_exercise_progression(exercise_logs, planned, recommendation)

    baseline = progression.current_intensity if exercise_logs else None
    exercise = RegeneratedPlanExercise(
        exercise_id=planned.exercise_id,
        target_sets=progression.target_sets,
        target_reps_min=progression.target_reps_min,
        target_reps_max=progression.target_reps_max,
        target_weight_lbs=calculate_target_weight(
            planned, exercise_logs, progression.weight_adjustment
        ),
        rest_seconds=calculate_adjusted_rest(
            planned.rest_seconds, progression.weight_adjustment, settings
        ),
        exercise_order=order,
        progression_notes=progression_notes(progression, exercise_logs),
        exercise_name=planned.exercise_name,
        baseline_weight_lbs=baseline,
    )
    return exercise, progression


def regenerate_workout(
    workout: PlannedWorkout,
    recommendation: ProgressionRecommendation,
    exercise_logs: Mapping[str, Sequence[ExerciseLogEntry]],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[RegeneratedPlanWorkout, tuple[ExerciseProgression, ...]]:
    """
    Regenerate every exercise of one workout, in order.

    Returns:
        (regenerated workout, progressions in exercise order)
    """
    exercises: list[RegeneratedPlanExercise] = []
    progressions: list[ExerciseProgression] = []

    for index, planned in enumerate(workout.exercises):
        exercise, progression = regenerate_exercise(
            planned,
            exercise_logs.get(planned.exercise_id, ()),
            recommendation,
            index,
            settings,
        )
        exercises.append(exercise)
        progressions.append(progression)

    new_volume = sum(e.target_sets for e in exercises)
    regenerated = RegeneratedPlanWorkout(
        workout_name=workout.workout_name,
        workout_type=workout.workout_type,
        day_of_week=workout.day_of_week,
        estimated_duration_minutes=scale_duration(
            workout.estimated_duration_minutes, workout.target_volume_sets, new_volume, settings
        ),
        target_volume_sets=new_volume,
        exercises=tuple(exercises),
    )
    return regenerated, tuple(progressions)


def regenerate_workout_plan(
    plan: WorkoutPlan,
    recommendation: ProgressionRecommendation,
    exercise_logs: Mapping[str, Sequence[ExerciseLogEntry]],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[tuple[RegeneratedPlanWorkout, ...], tuple[tuple[ExerciseProgression, ...], ...]]:
    """
    Regenerate every workout of the plan (before safety rules).

    An exercise that appears in several workouts is regenerated once per
    occurrence against its own planned sets.

    Args:
        plan: Active plan
        recommendation: Global recommendation
        exercise_logs: exercise_id -> logs over the analysis window
        settings: Engine settings

    Returns:
        (regenerated workouts, per-workout progressions aligned with them)
    """
    workouts: list[RegeneratedPlanWorkout] = []
    progressions: list[tuple[ExerciseProgression, ...]] = []
    for workout in plan.workouts:
        regenerated, workout_progressions = regenerate_workout(
            workout, recommendation, exercise_logs, settings
        )
        workouts.append(regenerated)
        progressions.append(workout_progressions)
    return tuple(workouts), tuple(progressions)


def advance_plan_week(plan: WorkoutPlan) -> PlanAdvance:
    """
    Move the plan pointer one week forward.

    Past the last week of the cycle the pointer resets to week 1 and the
    plan name gains a " - Cycle N" suffix.
    """
    next_week = plan.current_week + 1
    if next_week > plan.duration_weeks:
        cycle_number = next_week // plan.duration_weeks + 1
        return PlanAdvance(
            week=1,
            is_new_cycle=True,
            plan_name=f"{plan.plan_name} - Cycle {cycle_number}",
        )
    return PlanAdvance(week=next_week, is_new_cycle=False, plan_name=plan.plan_name)


def regenerate_plan(
    plan: WorkoutPlan,
    current_logs: Sequence[WorkoutLogEntry],
    previous_logs: Sequence[WorkoutLogEntry],
    exercise_logs: Mapping[str, Sequence[ExerciseLogEntry]] | None = None,
    weeks_to_analyze: int = 1,
    generate_cycle: bool = False,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> RegenerationResult:
    """
    Full adaptive regeneration for one user's plan.

    Args:
        plan: Active plan
        current_logs: Workout logs of the analysed window
        previous_logs: Workout logs of the window before it
        exercise_logs: exercise_id -> logs; grouped from current_logs if None
        weeks_to_analyze: Length of each window in weeks
        generate_cycle: Also expand the result into a four-week cycle
        settings: Engine settings

    Returns:
        RegenerationResult ready to hand to persistence
    """
    if exercise_logs is None:
        exercise_logs = group_exercise_logs(current_logs)

    metrics = analyze_performance(
        current_logs,
        previous_logs,
        planned_workouts=plan.workouts_per_week * weeks_to_analyze,
        days_covered=ANALYSIS_WINDOW_DAYS * weeks_to_analyze,
    )
    recommendation = determine_recommendation(metrics)
    logger.info(
        "Recommendation for %r: %s (score %.1f, confidence %d)",
        plan.plan_name,
        recommendation.action,
        performance_score(metrics),
        recommendation.confidence,
    )

    workouts, progressions = regenerate_workout_plan(plan, recommendation, exercise_logs, settings)
    workouts = apply_safety_rules(workouts, plan, settings)
    validation = validate_regenerated_plan(workouts)
    for warning in validation.warnings:
        logger.debug("Validation warning: %s", warning)

    cycle = generate_cycle_plan(workouts, metrics, settings) if generate_cycle else None

    return RegenerationResult(
        metrics=metrics,
        recommendation=recommendation,
        workouts=workouts,
        validation=validation,
        advance=advance_plan_week(plan),
        progressions=progressions,
        cycle=cycle,
    )


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------


@dataclass
class _ExerciseTrace:
    """
    Intermediate values for one exercise, consumed by _format_explain().
    """

    workout_name: str
    planned: PlannedExercise
    logs: Sequence[ExerciseLogEntry]
    metrics: PerformanceMetrics
    score: float
    progression: ExerciseProgression
    regenerated: RegeneratedPlanExercise
    final: RegeneratedPlanExercise


def explain_exercise(
    plan: WorkoutPlan,
    exercise_id: str,
    current_logs: Sequence[WorkoutLogEntry],
    previous_logs: Sequence[WorkoutLogEntry],
    weeks_to_analyze: int = 1,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> str:
    """
    Step-by-step Rich-markup explanation of one exercise's regeneration.

    Delegates to regenerate_plan() so the final values shown are the ones
    the pipeline produces. An exercise scheduled in several workouts gets
    one section per occurrence.

    Returns:
        Rich-markup string ready for console.print()
    """
    locations = [
        (wi, ei, workout, planned)
        for wi, workout in enumerate(plan.workouts)
        for ei, planned in enumerate(workout.exercises)
        if planned.exercise_id == exercise_id
    ]
    if not locations:
        return f"[yellow]Exercise {exercise_id!r} is not part of {plan.plan_name!r}.[/yellow]"

    exercise_logs = group_exercise_logs(current_logs)
    result = regenerate_plan(
        plan,
        current_logs,
        previous_logs,
        exercise_logs=exercise_logs,
        weeks_to_analyze=weeks_to_analyze,
        settings=settings,
    )
    logs = exercise_logs.get(exercise_id, [])
    score = performance_score(result.metrics)

    sections: list[str] = []
    for wi, ei, workout, planned in locations:
        regenerated, _ = regenerate_exercise(planned, logs, result.recommendation, ei, settings)
        trace = _ExerciseTrace(
            workout_name=workout.workout_name,
            planned=planned,
            logs=logs,
            metrics=result.metrics,
            score=score,
            progression=result.progressions[wi][ei],
            regenerated=regenerated,
            final=result.workouts[wi].exercises[ei],
        )
        sections.append(_format_explain(trace, result.recommendation))
    return "\n\n".join(sections)


def _fmt_weight(weight: float | None) -> str:
    return f"{weight:.1f} lbs" if weight is not None else "-"


def _format_explain(trace: _ExerciseTrace, recommendation: ProgressionRecommendation) -> str:
    """
    Format an _ExerciseTrace into Rich markup.

    Pure formatter: all values come from the trace.
    """
    m = trace.metrics
    p = trace.progression
    planned = trace.planned
    rule = "─" * 54
    L: list[str] = []

    L.append(f"[bold cyan]{planned.display_name}  ·  {trace.workout_name}[/bold cyan]")
    L.append(rule)

    L.append("\n[bold]WINDOW METRICS[/bold]")
    L.append(f"  Completion rate:    {m.completion_rate:.0f}")
    L.append(f"  Consistency:        {m.consistency_score:.0f}")
    L.append(f"  Readiness:          {m.readiness_score:.0f}")
    L.append(f"  Recovery:           {m.recovery_score:.0f}")
    rpe = f"{m.rpe_average:.1f}" if m.rpe_average is not None else "n/a"
    L.append(f"  Average RPE:        {rpe}")
    L.append(f"  Volume progression: {m.volume_progression:+.1f}%  (informational)")
    L.append(
        f"  Score = {m.completion_rate:.0f}×0.30 + {m.consistency_score:.0f}×0.20"
        f" + {m.readiness_score:.0f}×0.25 + {m.recovery_score:.0f}×0.25"
        f" = [bold]{trace.score:.1f}[/bold]"
    )

    L.append("\n[bold]GLOBAL DECISION[/bold]")
    L.append(
        f"  [magenta]{recommendation.action}[/magenta]"
        f"  volume {recommendation.volume_adjustment:+.2f}%"
        f"  intensity {recommendation.intensity_adjustment:+.2f}%"
        f"  (confidence {recommendation.confidence})"
    )
    L.append(f"  {recommendation.rationale}")

    L.append("\n[bold]EXERCISE DATA[/bold]")
    if not trace.logs:
        L.append("  No logs in the window: planned parameters are kept.")
    else:
        completion = p.set_completion_rate or 0.0
        ex_rpe = f"{p.avg_rpe:.1f}" if p.avg_rpe is not None else "n/a"
        L.append(f"  Sessions analysed:  {p.sessions_analyzed}")
        L.append(f"  Set completion:     {completion:.0f}% of {planned.target_sets} planned sets")
        L.append(f"  Average max weight: {p.current_intensity:.1f} lbs")
        L.append(f"  Average RPE:        {ex_rpe}")

    L.append("\n[bold]ADJUSTMENTS[/bold]")
    L.append(f"  Sets:   {planned.target_sets} {p.sets_adjustment:+d} → {p.target_sets}")
    L.append(
        f"  Reps:   {planned.target_reps_min}-{planned.target_reps_max} {p.reps_adjustment:+d}"
        f" → {p.target_reps_min}-{p.target_reps_max}"
    )
    L.append(f"  Weight: {p.weight_adjustment:+.2f}% → {_fmt_weight(trace.regenerated.target_weight_lbs)}")
    L.append(f"  Rest:   {planned.rest_seconds}s → {trace.regenerated.rest_seconds}s")
    L.append(f"  Notes:  {trace.regenerated.progression_notes}")

    final = trace.final
    L.append("\n[bold]AFTER SAFETY RULES[/bold]")
    changed = (
        final.target_sets != trace.regenerated.target_sets
        or final.target_weight_lbs != trace.regenerated.target_weight_lbs
    )
    L.append(
        f"  {final.target_sets} × {final.target_reps_min}-{final.target_reps_max}"
        f" @ {_fmt_weight(final.target_weight_lbs)}, rest {final.rest_seconds}s"
        + ("  [yellow](clamped)[/yellow]" if changed else "")
    )
    if changed:
        L.append(f"  Notes:  {final.progression_notes}")

    return "\n".join(L)
