"""
Pure metric computation functions.

Leaf calculators turn raw log collections into 0-100 scores, and
analyze_performance() combines them for one analysis window.
Missing inputs resolve to documented defaults, never to an exception.
"""

import math
from typing import Sequence

from .config import (
    ANALYSIS_WINDOW_DAYS,
    DURATION_TOLERANCE,
    IDEAL_DAYS_PER_WORKOUT,
    NEUTRAL_SCORE,
    RPE_DECLINING_SCORE,
    RPE_IMPROVING_SCORE,
    RPE_STABLE_SCORE,
    round_half_up,
)
from .models import ExerciseLogEntry, PerformanceMetrics, WorkoutLogEntry


def _clip_score(value: float) -> float:
    """Clamp a score into [0, 100]."""
    return max(0.0, min(100.0, value))


def _mean(values: Sequence[float]) -> float | None:
    """Arithmetic mean, or None for an empty sequence."""
    if not values:
        return None
    return sum(values) / len(values)


def completion_rate(logs: Sequence[WorkoutLogEntry]) -> float:
    """
    Percentage of logged workouts with status "completed".

    completion = completed / total * 100

    Args:
        logs: Workout logs of the window

    Returns:
        Completion rate (0-100), 0 for an empty window
    """
    if not logs:
        return 0.0
    completed = sum(1 for log in logs if log.is_completed)
    return completed / len(logs) * 100


def volume_progression(current_total: float, previous_total: float) -> float:
    """
    Signed percentage change of total volume between two windows.

    progression = (current - previous) / previous * 100

    A previous total of 0 returns 0: a first week of training reads as
    "no change" rather than an infinite increase.

    Args:
        current_total: Total volume (lbs) of the current window
        previous_total: Total volume (lbs) of the previous window

    Returns:
        Volume change in percent
    """
    if previous_total == 0:
        return 0.0
    return (current_total - previous_total) / previous_total * 100


def average_rpe(logs: Sequence[WorkoutLogEntry]) -> float | None:
    """
    Mean of the non-null session RPE values.

    Args:
        logs: Workout logs

    Returns:
        Average RPE, or None if no log reports one
    """
    return _mean([log.avg_rpe for log in logs if log.avg_rpe is not None])


def consistency_score(
    completed: int,
    planned: int,
    days_covered: int,
    ideal_days_per_workout: int = IDEAL_DAYS_PER_WORKOUT,
) -> float:
    """
    Adherence score from session frequency and spread.

    frequency    = completed / planned * 100                 (0 if planned == 0)
    distribution = min(completed / floor(days / ideal) * 100, 100)
                                                             (0 if floor == 0)
    score        = round((frequency + distribution) / 2)

    Frequency is capped at 100 so surplus sessions cannot push the score
    out of range.

    Args:
        completed: Completed workouts in the window
        planned: Planned workouts in the window
        days_covered: Length of the window in days
        ideal_days_per_workout: Days per session considered ideal spacing

    Returns:
        Consistency score (0-100)
    """
    frequency = min(completed / planned * 100, 100.0) if planned > 0 else 0.0

    ideal_workouts = math.floor(days_covered / ideal_days_per_workout) if ideal_days_per_workout > 0 else 0
    distribution = min(completed / ideal_workouts * 100, 100.0) if ideal_workouts > 0 else 0.0

    return float(round_half_up((frequency + distribution) / 2))


def readiness_score(
    avg_rpe: float | None,
    avg_difficulty: float | None,
    avg_energy: float | None,
) -> float:
    """
    Readiness from self-reported effort, difficulty and energy.

    rpe_score        = (10 - rpe) * 10
    difficulty_score = (10 - difficulty) * 10
    energy_score     = energy * 10

    Only non-null inputs are averaged; all-null returns the neutral 50.

    Args:
        avg_rpe: Average RPE of the window
        avg_difficulty: Average perceived difficulty (1-10)
        avg_energy: Average energy level (1-10)

    Returns:
        Readiness score (0-100)
    """
    scores: list[float] = []
    if avg_rpe is not None:
        scores.append(_clip_score((10 - avg_rpe) * 10))
    if avg_difficulty is not None:
        scores.append(_clip_score((10 - avg_difficulty) * 10))
    if avg_energy is not None:
        scores.append(_clip_score(avg_energy * 10))

    if not scores:
        return NEUTRAL_SCORE

    return float(round_half_up(sum(scores) / len(scores)))


def duration_compliance_rate(logs: Sequence[WorkoutLogEntry]) -> float:
    """
    Percentage of workouts finished within 15% of the planned duration.

    A log without a planned duration cannot be compliant.

    Args:
        logs: Workout logs of the window

    Returns:
        Compliance rate (0-100), neutral 50 for an empty window
    """
    if not logs:
        return NEUTRAL_SCORE

    compliant = 0
    for log in logs:
        if log.planned_duration_minutes <= 0:
            continue
        variance = abs(log.actual_duration_minutes - log.planned_duration_minutes) / log.planned_duration_minutes
        if variance <= DURATION_TOLERANCE:
            compliant += 1

    return compliant / len(logs) * 100


def rpe_trend_score(logs: Sequence[WorkoutLogEntry]) -> float:
    """
    Score the direction of the two most recent RPE reports.

    Lower recent RPE = improving recovery (75), equal = stable (50),
    higher = declining (25). Fewer than two samples is neutral (50).
    """
    ordered = sorted(logs, key=lambda log: log.workout_date)
    rpe_values = [log.avg_rpe for log in ordered if log.avg_rpe is not None]
    if len(rpe_values) < 2:
        return RPE_STABLE_SCORE

    recent, previous = rpe_values[-1], rpe_values[-2]
    if recent < previous:
        return RPE_IMPROVING_SCORE
    if recent == previous:
        return RPE_STABLE_SCORE
    return RPE_DECLINING_SCORE


def recovery_score(
    logs: Sequence[WorkoutLogEntry],
    duration_compliance: float,
) -> float:
    """
    Recovery from RPE trend and duration compliance.

    score = round((rpe_trend_score + duration_compliance) / 2)

    Args:
        logs: Workout logs of the window
        duration_compliance: Output of duration_compliance_rate()

    Returns:
        Recovery score (0-100), neutral 50 for an empty window
    """
    if not logs:
        return NEUTRAL_SCORE

    return float(round_half_up((rpe_trend_score(logs) + _clip_score(duration_compliance)) / 2))


def group_exercise_logs(
    logs: Sequence[WorkoutLogEntry],
) -> dict[str, list[ExerciseLogEntry]]:
    """
    Build the exercise_id -> history map from the nested exercise logs.

    Order within each list follows the order of ``logs``.
    """
    grouped: dict[str, list[ExerciseLogEntry]] = {}
    for log in logs:
        for exercise_log in log.exercise_logs:
            grouped.setdefault(exercise_log.exercise_id, []).append(exercise_log)
    return grouped


def analyze_performance(
    current_logs: Sequence[WorkoutLogEntry],
    previous_logs: Sequence[WorkoutLogEntry],
    planned_workouts: int,
    days_covered: int = ANALYSIS_WINDOW_DAYS,
) -> PerformanceMetrics:
    """
    Combine the leaf metrics for the current vs previous window.

    Args:
        current_logs: Logs of the analysed window (e.g. last 7 days)
        previous_logs: Logs of the window before it
        planned_workouts: Workouts the plan scheduled for the current window
        days_covered: Length of the current window in days

    Returns:
        PerformanceMetrics for the current window
    """
    current_volume = sum(log.total_volume_lbs for log in current_logs)
    previous_volume = sum(log.total_volume_lbs for log in previous_logs)

    rpe = average_rpe(current_logs)
    difficulty = _mean(
        [log.perceived_difficulty for log in current_logs if log.perceived_difficulty is not None]
    )
    energy = _mean([log.energy_level for log in current_logs if log.energy_level is not None])

    completed = sum(1 for log in current_logs if log.is_completed)

    return PerformanceMetrics(
        completion_rate=completion_rate(current_logs),
        volume_progression=volume_progression(current_volume, previous_volume),
        rpe_average=rpe,
        consistency_score=consistency_score(completed, planned_workouts, days_covered),
        readiness_score=readiness_score(rpe, difficulty, energy),
        recovery_score=recovery_score(current_logs, duration_compliance_rate(current_logs)),
    )
