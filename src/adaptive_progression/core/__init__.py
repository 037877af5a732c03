"""
Adaptive progression engine.

Pure, synchronous functions that turn logged training history into a
progression decision and a regenerated, safety-clamped plan.
"""

from .cycle import generate_cycle_plan
from .metrics import analyze_performance, group_exercise_logs
from .planner import advance_plan_week, regenerate_plan, regenerate_workout_plan
from .progression import calculate_exercise_progression
from .recommendation import determine_recommendation
from .safety import apply_safety_rules
from .validation import validate_regenerated_plan

__all__ = [
    "advance_plan_week",
    "analyze_performance",
    "apply_safety_rules",
    "calculate_exercise_progression",
    "determine_recommendation",
    "generate_cycle_plan",
    "group_exercise_logs",
    "regenerate_plan",
    "regenerate_workout_plan",
    "validate_regenerated_plan",
]
