"""
CLI entry point using Typer.

Provides commands for adaptive plan management:
- init: Initialize the store with a workout plan
- log-workout: Append logged workouts
- show-logs: Display logged workouts
- analyze: Window metrics and the global recommendation
- regenerate: Regenerate (and optionally save) the next week's plan
- explain: Step-by-step trace for one exercise
"""

from .app import app
from .commands import analysis, planning, sessions  # noqa: F401  (registers commands)


if __name__ == "__main__":
    app()
