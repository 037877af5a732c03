"""
Configuration constants for the adaptive progression model.

All adjustable parameters are centralized here for easy tuning.
The safety/cycle subset can be overridden from progression.yaml
(see core/engine/config_loader.py).
"""

import math
from dataclasses import dataclass
from typing import Final

# =============================================================================
# METRIC CALCULATORS
# =============================================================================

NEUTRAL_SCORE: Final[float] = 50.0  # Returned when an input is missing entirely
IDEAL_DAYS_PER_WORKOUT: Final[int] = 2  # One session every other day
ANALYSIS_WINDOW_DAYS: Final[int] = 7  # Days covered by one analysis week
DURATION_TOLERANCE: Final[float] = 0.15  # Actual within 15% of planned = compliant

RPE_IMPROVING_SCORE: Final[float] = 75.0
RPE_STABLE_SCORE: Final[float] = 50.0
RPE_DECLINING_SCORE: Final[float] = 25.0

# =============================================================================
# GLOBAL RECOMMENDATION
# =============================================================================

WEIGHT_COMPLETION: Final[float] = 0.30
WEIGHT_CONSISTENCY: Final[float] = 0.20
WEIGHT_READINESS: Final[float] = 0.25
WEIGHT_RECOVERY: Final[float] = 0.25

RPE_OVERRIDE_THRESHOLD: Final[float] = 9.0  # Near-maximal effort: never escalate
RPE_OVERRIDE_CONFIDENCE: Final[int] = 75

# =============================================================================
# EXERCISE PROGRESSION
# =============================================================================

SET_COMPLETION_FOR_EXTRA_SET: Final[float] = 95.0  # % of planned sets completed
MIN_WEIGHT_INCREASE_PCT: Final[float] = 2.5  # Weight floor when no set is added
DELOAD_SET_FRACTION: Final[float] = -0.3
DELOAD_MAX_SET_DROP: Final[int] = -2
LOW_RPE_FOR_EXTRA_REP: Final[float] = 7.0
HIGH_RPE_FOR_FEWER_REPS: Final[float] = 9.0

# =============================================================================
# PLAN REGENERATOR
# =============================================================================

WEIGHT_ROUNDING_STEP: Final[float] = 0.5
REST_STEP_SECONDS: Final[int] = 15
REST_MIN_SECONDS: Final[int] = 30
REST_MAX_SECONDS: Final[int] = 300
REST_DECREASE_WEIGHT_PCT: Final[float] = -5.0  # Below this weight delta, rest shrinks
DURATION_MIN_MINUTES: Final[int] = 20
DURATION_MAX_MINUTES: Final[int] = 120

# =============================================================================
# SAFETY RULES
# =============================================================================

WEEKLY_VOLUME_CAP_RATIO: Final[float] = 1.10  # Max 10% more total sets per week
MAX_SET_INCREASE_PER_EXERCISE: Final[int] = 2
COMPOUND_SET_THRESHOLD: Final[int] = 4  # Old target sets >= 4 treated as compound
COMPOUND_WEIGHT_CAP_PCT: Final[float] = 5.0
ISOLATION_WEIGHT_CAP_PCT: Final[float] = 10.0
DELOAD_DETECTION_RATIO: Final[float] = 0.80  # Every workout below 80% of old volume
DELOAD_WEIGHT_FACTOR: Final[float] = 0.70

# =============================================================================
# PLAN VALIDATOR
# =============================================================================

MIN_WORKOUT_SETS: Final[int] = 5
MAX_WORKOUT_SETS: Final[int] = 30
MAX_WORKOUT_DURATION_MINUTES: Final[int] = 90
MAX_EXERCISE_SETS: Final[int] = 8

# =============================================================================
# CYCLE GENERATOR
# =============================================================================

CYCLE_WEEK_MULTIPLIERS: Final[tuple[float, ...]] = (1.00, 1.05, 1.10, 0.70)
CYCLE_WEIGHT_UP_FACTOR: Final[float] = 1.02
CYCLE_WEIGHT_DOWN_FACTOR: Final[float] = 0.95


@dataclass(frozen=True)
class RecommendationTier:
    """Volume/intensity deltas and confidence cap for one rung of the ladder."""

    action: str
    volume_adjustment: float  # % change in sets
    intensity_adjustment: float  # % change in weight
    confidence_cap: float
    reason: str


TIER_INCREASE_STRONG: Final[RecommendationTier] = RecommendationTier(
    action="increase",
    volume_adjustment=5.0,
    intensity_adjustment=2.5,
    confidence_cap=90,
    reason="Excellent performance with good recovery. Ready for progression.",
)
TIER_INCREASE_GRADUAL: Final[RecommendationTier] = RecommendationTier(
    action="increase",
    volume_adjustment=2.5,
    intensity_adjustment=1.25,
    confidence_cap=80,
    reason="Good performance. Gradual progression recommended.",
)
TIER_MAINTAIN: Final[RecommendationTier] = RecommendationTier(
    action="maintain",
    volume_adjustment=0.0,
    intensity_adjustment=0.0,
    confidence_cap=75,
    reason="Solid performance. Maintain current volume to build consistency.",
)
TIER_MAINTAIN_REDUCED: Final[RecommendationTier] = RecommendationTier(
    action="maintain",
    volume_adjustment=-2.5,
    intensity_adjustment=0.0,
    confidence_cap=70,
    reason="Performance below target. Maintain intensity while slightly reducing volume.",
)
TIER_DECREASE: Final[RecommendationTier] = RecommendationTier(
    action="decrease",
    volume_adjustment=-10.0,
    intensity_adjustment=-5.0,
    confidence_cap=65,
    reason="Underperforming with recovery concerns. Reduce load to prevent overtraining.",
)
TIER_DELOAD: Final[RecommendationTier] = RecommendationTier(
    action="deload",
    volume_adjustment=-30.0,
    intensity_adjustment=-15.0,
    confidence_cap=60,
    reason="Significant performance decline or recovery issues. Deload week recommended.",
)
HIGH_RPE_REASON: Final[str] = "High RPE indicates near-maximal effort. Maintain current load."


@dataclass(frozen=True)
class EngineSettings:
    """
    Tunable subset of the model used by the regenerator, clamper and cycle.

    Defaults mirror the module constants; progression.yaml may override them.
    """

    volume_cap_ratio: float = WEEKLY_VOLUME_CAP_RATIO
    max_set_increase: int = MAX_SET_INCREASE_PER_EXERCISE
    compound_set_threshold: int = COMPOUND_SET_THRESHOLD
    compound_weight_cap_pct: float = COMPOUND_WEIGHT_CAP_PCT
    isolation_weight_cap_pct: float = ISOLATION_WEIGHT_CAP_PCT
    deload_detection_ratio: float = DELOAD_DETECTION_RATIO
    deload_weight_factor: float = DELOAD_WEIGHT_FACTOR
    rest_step_seconds: int = REST_STEP_SECONDS
    rest_min_seconds: int = REST_MIN_SECONDS
    rest_max_seconds: int = REST_MAX_SECONDS
    duration_min_minutes: int = DURATION_MIN_MINUTES
    duration_max_minutes: int = DURATION_MAX_MINUTES
    cycle_multipliers: tuple[float, ...] = CYCLE_WEEK_MULTIPLIERS
    cycle_weight_up_factor: float = CYCLE_WEIGHT_UP_FACTOR
    cycle_weight_down_factor: float = CYCLE_WEIGHT_DOWN_FACTOR

    def __post_init__(self) -> None:
        if self.volume_cap_ratio <= 0:
            raise ValueError("volume_cap_ratio must be positive")
        if self.max_set_increase < 0:
            raise ValueError("max_set_increase must be non-negative")
        if self.rest_min_seconds > self.rest_max_seconds:
            raise ValueError("rest_min_seconds must not exceed rest_max_seconds")
        if self.duration_min_minutes > self.duration_max_minutes:
            raise ValueError("duration_min_minutes must not exceed duration_max_minutes")
        if len(self.cycle_multipliers) != 4:
            raise ValueError("cycle_multipliers must hold exactly four weeks")


DEFAULT_SETTINGS: Final[EngineSettings] = EngineSettings()


def round_half_up(value: float) -> int:
    """Round to the nearest integer; halves always round up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def round_to_step(value: float, step: float = WEIGHT_ROUNDING_STEP) -> float:
    """
    Round a load to the nearest plate step.

    round_to_step(101.3) = 101.5, round_to_step(101.2) = 101.0
    """
    return math.floor(value / step + 0.5) * step
