"""Analysis commands: analyze."""

import json

import typer

from ...core.config import ANALYSIS_WINDOW_DAYS
from ...core.metrics import analyze_performance
from ...core.recommendation import determine_recommendation, performance_score
from ...io.serializers import (
    ValidationError,
    metrics_to_dict,
    recommendation_to_dict,
    validate_date,
)
from .. import views
from ..app import AsOfOption, DataDirOption, JsonOption, WeeksOption, app, get_store, resolve_as_of


@app.command()
def analyze(
    data_dir: DataDirOption = None,
    as_of: AsOfOption = None,
    weeks: WeeksOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Show window metrics and the global progression recommendation.
    """
    store = get_store(data_dir)

    try:
        as_of_date = validate_date(resolve_as_of(as_of))
        plan = store.load_plan()
        current, previous = store.analysis_windows(as_of_date, weeks)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    metrics = analyze_performance(
        current,
        previous,
        planned_workouts=plan.workouts_per_week * weeks,
        days_covered=ANALYSIS_WINDOW_DAYS * weeks,
    )
    recommendation = determine_recommendation(metrics)

    if json_out:
        print(json.dumps({
            "as_of": as_of_date,
            "weeks": weeks,
            "workouts_analyzed": len(current),
            "score": round(performance_score(metrics), 2),
            "metrics": metrics_to_dict(metrics),
            "recommendation": recommendation_to_dict(recommendation),
        }, indent=2))
        return

    if not current:
        views.print_warning(f"No workouts logged in the {weeks}-week window ending {as_of_date}.")

    views.print_analysis(metrics, recommendation)
