"""
Rich-based output formatting for the CLI.

Tables for workout logs and regenerated plans, metric and recommendation
blocks, and the shared message helpers.
"""

from rich.console import Console
from rich.table import Table

from ..core.models import (
    CyclePlan,
    PerformanceMetrics,
    ProgressionRecommendation,
    RegeneratedPlanWorkout,
    RegenerationResult,
    ValidationResult,
    WorkoutLogEntry,
)
from ..core.recommendation import performance_score

console = Console()

_DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

_ACTION_STYLE = {
    "increase": "green",
    "maintain": "blue",
    "decrease": "yellow",
    "deload": "red",
}


def _fmt_optional(value: float | None, fmt: str = ".1f") -> str:
    return format(value, fmt) if value is not None else "-"


def format_logs_table(logs: list[WorkoutLogEntry]) -> Table:
    """
    Create a Rich table displaying workout logs.

    Args:
        logs: Logs to display, oldest first

    Returns:
        Rich Table object
    """
    table = Table(title="Workout Logs")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Date", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Duration", justify="right")
    table.add_column("Exercises", justify="right")
    table.add_column("Sets", justify="right", style="bold")
    table.add_column("Volume(lbs)", justify="right")
    table.add_column("RPE", justify="right")
    table.add_column("Diff.", justify="right")
    table.add_column("Energy", justify="right")

    for i, log in enumerate(logs, 1):
        status_style = "green" if log.is_completed else "yellow"
        table.add_row(
            str(i),
            log.workout_date,
            f"[{status_style}]{log.status}[/{status_style}]",
            f"{log.actual_duration_minutes:.0f}/{log.planned_duration_minutes:.0f}",
            str(log.total_exercises_completed),
            str(log.total_sets_completed),
            f"{log.total_volume_lbs:.0f}",
            _fmt_optional(log.avg_rpe),
            _fmt_optional(log.perceived_difficulty),
            _fmt_optional(log.energy_level),
        )

    return table


def print_logs(logs: list[WorkoutLogEntry]) -> None:
    """Print workout logs to console."""
    if not logs:
        console.print("[yellow]No workouts logged yet.[/yellow]")
        return
    console.print(format_logs_table(logs))


def format_metrics_display(metrics: PerformanceMetrics) -> str:
    """
    Format window metrics as a text block.

    Args:
        metrics: Metrics of the analysed window

    Returns:
        Formatted string
    """
    lines = [
        "Performance metrics",
        f"- Completion rate:    {metrics.completion_rate:.0f}%",
        f"- Volume progression: {metrics.volume_progression:+.1f}%",
        f"- Average RPE:        {_fmt_optional(metrics.rpe_average)}",
        f"- Consistency:        {metrics.consistency_score:.0f}",
        f"- Readiness:          {metrics.readiness_score:.0f}",
        f"- Recovery:           {metrics.recovery_score:.0f}",
        f"- Performance score:  {performance_score(metrics):.1f}",
    ]
    return "\n".join(lines)


def format_recommendation(recommendation: ProgressionRecommendation) -> str:
    """Format the global recommendation as Rich markup."""
    style = _ACTION_STYLE.get(recommendation.action, "white")
    return "\n".join(
        [
            f"Recommendation: [bold {style}]{recommendation.action.upper()}[/bold {style}]"
            f"  (confidence {recommendation.confidence}%)",
            f"- Volume:    {recommendation.volume_adjustment:+.2f}%",
            f"- Intensity: {recommendation.intensity_adjustment:+.2f}%",
            f"- {recommendation.rationale}",
        ]
    )


def print_analysis(metrics: PerformanceMetrics, recommendation: ProgressionRecommendation) -> None:
    """Print metrics and the recommendation derived from them."""
    console.print()
    console.print(format_metrics_display(metrics))
    console.print()
    console.print(format_recommendation(recommendation))
    console.print()


def format_workout_table(workout: RegeneratedPlanWorkout) -> Table:
    """
    Create a Rich table for one regenerated workout.

    Args:
        workout: Workout to display

    Returns:
        Rich Table object
    """
    day = _DAY_NAMES[workout.day_of_week]
    title = (
        f"{workout.workout_name} ({day}, ~{workout.estimated_duration_minutes} min,"
        f" {workout.target_volume_sets} sets)"
    )
    table = Table(title=title, title_justify="left")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Rest", justify="right")
    table.add_column("Notes", style="dim")

    for exercise in workout.exercises:
        weight = exercise.target_weight_lbs
        table.add_row(
            str(exercise.exercise_order + 1),
            exercise.display_name,
            str(exercise.target_sets),
            f"{exercise.target_reps_min}-{exercise.target_reps_max}",
            f"{weight:.1f} lbs" if weight is not None else "-",
            f"{exercise.rest_seconds}s",
            exercise.progression_notes,
        )

    return table


def print_validation(validation: ValidationResult) -> None:
    """Print plan validation warnings, if any."""
    if validation.valid:
        return
    for warning in validation.warnings:
        print_warning(warning)


def print_cycle_volumes(cycle: CyclePlan) -> None:
    """Print total sets per cycle week."""
    labels = ("base", "progressive", "peak", "deload")
    table = Table(title="4-week cycle")
    table.add_column("Week", justify="right")
    table.add_column("Phase", style="magenta")
    table.add_column("Total sets", justify="right", style="bold")
    for week, (label, volume) in enumerate(zip(labels, cycle.week_volumes()), 1):
        table.add_row(str(week), label, str(volume))
    console.print(table)


def print_regeneration(result: RegenerationResult) -> None:
    """
    Print a full regeneration result: analysis, workouts, warnings, cycle.
    """
    print_analysis(result.metrics, result.recommendation)

    for workout in result.workouts:
        console.print(format_workout_table(workout))
        console.print()

    console.print(
        f"Total: [bold]{result.total_sets}[/bold] sets/week,"
        f" ~{result.estimated_weekly_duration} min/week"
    )
    print_validation(result.validation)

    if result.cycle is not None:
        console.print()
        print_cycle_volumes(result.cycle)

    advance = result.advance
    console.print()
    if advance.is_new_cycle:
        print_info(f"Next: {advance.plan_name}, week {advance.week} (new cycle)")
    else:
        print_info(f"Next: {advance.plan_name}, week {advance.week}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
