"""Workout log commands: log-workout, show-logs."""

import json
from pathlib import Path
from typing import Annotated

import typer

from ...io.serializers import ValidationError, dict_to_workout_log
from .. import views
from ..app import DataDirOption, app, get_store


@app.command("log-workout")
def log_workout(
    file: Annotated[
        Path,
        typer.Option("--file", "-f", help="JSON file with one workout log (or a list of them)"),
    ],
    data_dir: DataDirOption = None,
) -> None:
    """
    Append workout logs to the training history.
    """
    store = get_store(data_dir)

    if not store.exists():
        views.print_error(f"No training data in {store.data_dir}")
        views.print_info("Run 'init' first to create the plan and log file.")
        raise typer.Exit(1)

    try:
        with open(file, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        views.print_error(f"Cannot read {file}: {e}")
        raise typer.Exit(1)

    records = data if isinstance(data, list) else [data]
    try:
        logs = [dict_to_workout_log(record) for record in records]
        for log in logs:
            store.append_log(log)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    for log in logs:
        views.print_success(
            f"Logged {log.status} workout on {log.workout_date}:"
            f" {log.total_sets_completed} sets, {len(log.exercise_logs)} exercises"
        )


@app.command("show-logs")
def show_logs(
    data_dir: DataDirOption = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=0, help="Show only the last N workouts (0 = all)"),
    ] = 0,
) -> None:
    """
    Display logged workouts.
    """
    store = get_store(data_dir)

    try:
        logs = store.load_logs()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if limit:
        logs = logs[-limit:]

    views.console.print()
    views.print_logs(logs)
    views.console.print()
