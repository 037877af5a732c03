"""
File-based storage for the active plan, workout logs and regeneration results.

Layout of a data directory:
- plan.json              active WorkoutPlan
- workout_logs.jsonl     one WorkoutLogEntry per line, sorted by date
- regenerated_plan.json  last RegenerationResult
"""

import json
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

from ..core.config import ANALYSIS_WINDOW_DAYS
from ..core.models import RegenerationResult, WorkoutLogEntry, WorkoutPlan
from .serializers import (
    ValidationError,
    dict_to_workout_log,
    dict_to_workout_plan,
    result_to_dict,
    workout_log_to_json_line,
    workout_plan_to_dict,
)


def _parse_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


class TrainingStore:
    """
    Manages one user's training data in a directory.

    The plan and the last result are plain JSON documents; workout logs are
    stored in JSONL format with nested exercise logs.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the plan, logs and results
        """
        self.data_dir = Path(data_dir)
        self.plan_path = self.data_dir / "plan.json"
        self.logs_path = self.data_dir / "workout_logs.jsonl"
        self.result_path = self.data_dir / "regenerated_plan.json"

    def exists(self) -> bool:
        """Check if the store has been initialized."""
        return self.plan_path.exists() and self.logs_path.exists()

    def init(self, plan: WorkoutPlan) -> None:
        """
        Create the data directory, write the plan and an empty log file.

        Existing logs are kept.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.save_plan(plan)
        if not self.logs_path.exists():
            self.logs_path.touch()

    # -- plan -----------------------------------------------------------------

    def load_plan(self) -> WorkoutPlan:
        """
        Load the active plan.

        Raises:
            FileNotFoundError: If plan.json doesn't exist
            ValidationError: If the plan is invalid
        """
        if not self.plan_path.exists():
            raise FileNotFoundError(f"Plan not found: {self.plan_path}. Run 'init' first.")

        try:
            with open(self.plan_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.plan_path}: {e}") from e

        return dict_to_workout_plan(data)

    def save_plan(self, plan: WorkoutPlan) -> None:
        """Write the active plan to plan.json."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.plan_path, "w") as f:
            json.dump(workout_plan_to_dict(plan), f, indent=2)

    # -- logs -----------------------------------------------------------------

    def load_logs(self) -> list[WorkoutLogEntry]:
        """
        Load all workout logs.

        Returns:
            List of WorkoutLogEntry, sorted by date

        Raises:
            FileNotFoundError: If the log file doesn't exist
            ValidationError: If a line is invalid
        """
        if not self.logs_path.exists():
            raise FileNotFoundError(f"Log file not found: {self.logs_path}. Run 'init' first.")

        logs: list[WorkoutLogEntry] = []

        with open(self.logs_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    logs.append(dict_to_workout_log(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.logs_path}: {e}"
                    ) from e

        logs.sort(key=lambda log: log.workout_date)
        return logs

    def append_log(self, log: WorkoutLogEntry) -> None:
        """
        Add a workout log, keeping the file in chronological order.

        Logs on the same date are kept in insertion order.

        Raises:
            FileNotFoundError: If the log file doesn't exist
        """
        logs = self.load_logs()

        insert_idx = len(logs)
        for i, existing in enumerate(logs):
            if log.workout_date < existing.workout_date:
                insert_idx = i
                break
        logs.insert(insert_idx, log)

        self._write_logs(logs)

    def _write_logs(self, logs: list[WorkoutLogEntry]) -> None:
        with open(self.logs_path, "w") as f:
            for log in logs:
                f.write(workout_log_to_json_line(log) + "\n")

    def logs_in_window(self, start: str | date, end: str | date) -> list[WorkoutLogEntry]:
        """
        Logs dated in the half-open window (start, end].

        Args:
            start: Exclusive lower bound (YYYY-MM-DD or date)
            end: Inclusive upper bound (YYYY-MM-DD or date)
        """
        lo, hi = _parse_date(start), _parse_date(end)
        return [
            log for log in self.load_logs() if lo < _parse_date(log.workout_date) <= hi
        ]

    def analysis_windows(
        self,
        as_of: str | date,
        weeks: int = 1,
    ) -> tuple[list[WorkoutLogEntry], list[WorkoutLogEntry]]:
        """
        Split the logs into the current and previous analysis windows.

        current  = (as_of - 7w, as_of]
        previous = (as_of - 14w, as_of - 7w]

        Args:
            as_of: Last day of the current window
            weeks: Window length in weeks

        Returns:
            (current logs, previous logs)
        """
        if weeks < 1:
            raise ValueError(f"weeks must be >= 1, got {weeks}")
        end = _parse_date(as_of)
        span = timedelta(days=ANALYSIS_WINDOW_DAYS * weeks)
        logs = self.load_logs()

        current = [log for log in logs if end - span < _parse_date(log.workout_date) <= end]
        previous = [
            log for log in logs if end - 2 * span < _parse_date(log.workout_date) <= end - span
        ]
        return current, previous

    # -- results --------------------------------------------------------------

    def save_result(self, result: RegenerationResult) -> None:
        """Write a regeneration result to regenerated_plan.json."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.result_path, "w") as f:
            json.dump(result_to_dict(result), f, indent=2)

    def load_result(self) -> dict[str, Any] | None:
        """
        Load the last saved regeneration result.

        Returns:
            The result document, or None if nothing was saved yet
        """
        if not self.result_path.exists():
            return None
        try:
            with open(self.result_path) as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.result_path}: {e}") from e


def get_default_data_dir() -> Path:
    """Get the default data directory (~/.adaptive-progression)."""
    return Path.home() / ".adaptive-progression"

