"""
Global recommendation: maps window metrics to one progression decision.

The decision ladder is evaluated top-down (first match wins), then the
high-RPE override is applied so near-maximal effort is never escalated.
"""

from .config import (
    HIGH_RPE_REASON,
    RPE_OVERRIDE_CONFIDENCE,
    RPE_OVERRIDE_THRESHOLD,
    TIER_DECREASE,
    TIER_DELOAD,
    TIER_INCREASE_GRADUAL,
    TIER_INCREASE_STRONG,
    TIER_MAINTAIN,
    TIER_MAINTAIN_REDUCED,
    WEIGHT_COMPLETION,
    WEIGHT_CONSISTENCY,
    WEIGHT_READINESS,
    WEIGHT_RECOVERY,
    RecommendationTier,
    round_half_up,
)
from .models import PerformanceMetrics, ProgressionRecommendation


def performance_score(metrics: PerformanceMetrics) -> float:
    """
    Weighted composite of the window metrics.

    score = completion*0.30 + consistency*0.20 + readiness*0.25 + recovery*0.25

    Volume progression is informational and not weighted in.

    Args:
        metrics: Window metrics

    Returns:
        Composite score (0-100)
    """
    return (
        metrics.completion_rate * WEIGHT_COMPLETION
        + metrics.consistency_score * WEIGHT_CONSISTENCY
        + metrics.readiness_score * WEIGHT_READINESS
        + metrics.recovery_score * WEIGHT_RECOVERY
    )


def _rpe_below(rpe: float | None, limit: float) -> bool:
    """A missing RPE never blocks a rung."""
    return rpe is None or rpe < limit


def select_tier(score: float, metrics: PerformanceMetrics) -> RecommendationTier:
    """
    Walk the decision ladder and return the first matching rung.

    Args:
        score: Output of performance_score()
        metrics: Window metrics (RPE and recovery gate the upper rungs)

    Returns:
        The selected RecommendationTier
    """
    rpe = metrics.rpe_average
    recovery = metrics.recovery_score

    if score >= 80 and _rpe_below(rpe, 7.5) and recovery >= 60:
        return TIER_INCREASE_STRONG
    if score >= 70 and _rpe_below(rpe, 8.5) and recovery >= 50:
        return TIER_INCREASE_GRADUAL
    if 60 <= score < 70:
        return TIER_MAINTAIN
    if score >= 50 and recovery >= 40:
        return TIER_MAINTAIN_REDUCED
    if 40 <= score < 50:
        return TIER_DECREASE
    return TIER_DELOAD


def determine_recommendation(metrics: PerformanceMetrics) -> ProgressionRecommendation:
    """
    Decide increase / maintain / decrease / deload for the next block.

    Pure function of ``metrics``: identical input yields an identical record.

    Args:
        metrics: Window metrics

    Returns:
        ProgressionRecommendation with deltas, rationale and confidence
    """
    score = performance_score(metrics)
    tier = select_tier(score, metrics)

    rpe = metrics.rpe_average
    if tier.action == "increase" and rpe is not None and rpe >= RPE_OVERRIDE_THRESHOLD:
        return ProgressionRecommendation(
            action="maintain",
            volume_adjustment=0.0,
            intensity_adjustment=0.0,
            rationale=HIGH_RPE_REASON,
            confidence=RPE_OVERRIDE_CONFIDENCE,
        )

    return ProgressionRecommendation(
        action=tier.action,  # type: ignore[arg-type]
        volume_adjustment=tier.volume_adjustment,
        intensity_adjustment=tier.intensity_adjustment,
        rationale=tier.reason,
        confidence=round_half_up(min(score, tier.confidence_cap)),
    )
