"""Shared Typer app object, shared option types, and store utility."""

import logging
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..io.training_store import TrainingStore, get_default_data_dir

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Directory holding plan.json and workout_logs.jsonl"),
]

AsOfOption = Annotated[
    Optional[str],
    typer.Option("--as-of", help="Last day of the analysis window (YYYY-MM-DD, default today)"),
]

WeeksOption = Annotated[
    int,
    typer.Option("--weeks", "-w", min=1, help="Weeks per analysis window"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="adaptive-progression",
    help="Adaptive workout-plan progression from logged training performance.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log engine decisions to stderr"),
    ] = False,
) -> None:
    """
    Regenerate a weekly training plan from the last weeks of workout logs.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


def get_store(data_dir: Path | None) -> TrainingStore:
    """Get training store from path or default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    return TrainingStore(data_dir)


def resolve_as_of(as_of: str | None) -> str:
    """Return the --as-of date, defaulting to today."""
    return as_of if as_of is not None else date.today().strftime("%Y-%m-%d")
