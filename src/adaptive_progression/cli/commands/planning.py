"""Planning commands: init, regenerate, explain."""

import json
from pathlib import Path
from typing import Annotated

import typer

from ...core.engine.config_loader import load_engine_settings
from ...core.planner import explain_exercise, regenerate_plan
from ...io.serializers import (
    ValidationError,
    dict_to_workout_plan,
    regenerated_to_plan,
    result_to_dict,
    validate_date,
)
from .. import views
from ..app import AsOfOption, DataDirOption, JsonOption, WeeksOption, app, get_store, resolve_as_of


@app.command()
def init(
    plan_file: Annotated[
        Path,
        typer.Option("--plan", "-p", help="JSON file with the workout plan"),
    ],
    data_dir: DataDirOption = None,
) -> None:
    """
    Initialize the training store with a workout plan.

    Existing workout logs are kept; the active plan is replaced.
    """
    store = get_store(data_dir)

    try:
        with open(plan_file, "r") as f:
            plan = dict_to_workout_plan(json.load(f))
    except (OSError, json.JSONDecodeError) as e:
        views.print_error(f"Cannot read {plan_file}: {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        views.print_error(f"Invalid plan: {e}")
        raise typer.Exit(1)

    store.init(plan)

    views.print_success(f"Initialized {store.data_dir}")
    views.print_info(
        f"Plan {plan.plan_name!r}: {len(plan.workouts)} workouts,"
        f" {plan.total_sets} sets/week, week {plan.current_week} of {plan.duration_weeks}"
    )


@app.command()
def regenerate(
    data_dir: DataDirOption = None,
    as_of: AsOfOption = None,
    weeks: WeeksOption = 1,
    cycle: Annotated[
        bool,
        typer.Option("--cycle", "-c", help="Also generate a 4-week periodized cycle"),
    ] = False,
    json_out: JsonOption = False,
    save: Annotated[
        bool,
        typer.Option("--save", "-s", help="Save the result and make it the active plan"),
    ] = False,
) -> None:
    """
    Regenerate the active plan from the logged workouts.
    """
    store = get_store(data_dir)

    try:
        as_of_date = validate_date(resolve_as_of(as_of))
        plan = store.load_plan()
        current, previous = store.analysis_windows(as_of_date, weeks)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not current:
        views.print_error(
            f"Insufficient data: no workouts logged in the {weeks}-week window ending {as_of_date}."
        )
        views.print_info("Log some workouts with 'log-workout' first.")
        raise typer.Exit(1)

    result = regenerate_plan(
        plan,
        current,
        previous,
        weeks_to_analyze=weeks,
        generate_cycle=cycle,
        settings=load_engine_settings(),
    )

    if save:
        store.save_result(result)
        store.save_plan(regenerated_to_plan(result, plan))

    if json_out:
        print(json.dumps(result_to_dict(result), indent=2))
        return

    views.print_regeneration(result)
    if save:
        views.print_success(f"Saved {store.result_path.name} and updated the active plan.")


@app.command()
def explain(
    exercise_id: Annotated[
        str,
        typer.Argument(help="Exercise ID from the active plan"),
    ],
    data_dir: DataDirOption = None,
    as_of: AsOfOption = None,
    weeks: WeeksOption = 1,
) -> None:
    """Show exactly how an exercise's next prescription was calculated."""
    store = get_store(data_dir)

    try:
        as_of_date = validate_date(resolve_as_of(as_of))
        plan = store.load_plan()
        current, previous = store.analysis_windows(as_of_date, weeks)
    except FileNotFoundError as e:
        views.print_error(str(e))
        views.print_info("Run 'init' first to create the plan.")
        raise typer.Exit(1)
    except ValidationError as e:
        views.print_error(f"Invalid data: {e}")
        raise typer.Exit(1)

    known = {e.exercise_id for w in plan.workouts for e in w.exercises}
    if exercise_id not in known:
        views.print_error(f"Exercise {exercise_id!r} is not part of {plan.plan_name!r}.")
        views.print_info(f"Known exercises: {', '.join(sorted(known))}")
        raise typer.Exit(1)

    if not current:
        views.print_error(
            f"Insufficient data: no workouts logged in the {weeks}-week window ending {as_of_date}."
        )
        raise typer.Exit(1)

    text = explain_exercise(
        plan,
        exercise_id,
        current,
        previous,
        weeks_to_analyze=weeks,
        settings=load_engine_settings(),
    )
    views.console.print()
    views.console.print(text)
    views.console.print()
