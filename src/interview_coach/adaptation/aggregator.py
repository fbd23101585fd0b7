"""Skill score aggregation: Bayesian shrinkage with recency weighting.

A single early score should not define a skill, so each estimate is shrunk
toward a neutral prior in proportion to how little evidence backs it:

    weighted_mean = sum(score_i * w_i) / sum(w_i),  w_i = DECAY ** (len - 1 - i)
    confidence    = n / (n + CONFIDENCE_K)
    score         = confidence * weighted_mean + (1 - confidence) * PRIOR_SCORE

The weighted mean only sees the last MAX_RECENT_SCORES observations, while
``n`` counts every observation ever made, so confidence keeps growing after the
window is full.
"""

from decimal import ROUND_HALF_UP, Decimal

from interview_coach.models.profile import MAX_RECENT_SCORES, SkillAggregate

PRIOR_SCORE = 5.0
CONFIDENCE_K = 3
DECAY_LAMBDA = 0.7
# Rounded confidence would reach 1.00 for n >= 597.
MAX_REPORTED_CONFIDENCE = 0.99


def round_half_up(value: float, ndigits: int) -> float:
    """Round half away from zero (6.25 -> 6.3), unlike the builtin ``round``."""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def weighted_mean(scores: list[float], decay: float = DECAY_LAMBDA) -> float:
    """Exponentially decayed mean; the most recent score has weight 1.0.

    Args:
        scores: Scores ordered oldest first.
        decay: Per-step decay factor.

    Returns:
        Weighted mean, or PRIOR_SCORE for an empty window.
    """
    if not scores:
        return PRIOR_SCORE
    weight_sum = 0.0
    value_sum = 0.0
    for i, score in enumerate(scores):
        weight = decay ** (len(scores) - 1 - i)
        weight_sum += weight
        value_sum += score * weight
    return value_sum / weight_sum


def update_aggregate(previous: SkillAggregate | None, new_score: float) -> SkillAggregate:
    """Fold a new observation into a skill estimate.

    The score is not range-checked here; callers validate at ingestion.

    Args:
        previous: Current estimate, or None for the first observation.
        new_score: Raw score for this session (nominally 1-10).

    Returns:
        A new SkillAggregate; ``previous`` is left untouched.
    """
    history = list(previous.recent_scores) if previous else []
    recent_scores = (history + [new_score])[-MAX_RECENT_SCORES:]
    n = (previous.observation_count if previous else 0) + 1

    mean = weighted_mean(recent_scores)
    confidence = n / (n + CONFIDENCE_K)
    score = confidence * mean + (1 - confidence) * PRIOR_SCORE

    return SkillAggregate(
        weighted_score=round_half_up(score, 1),
        confidence=min(round_half_up(confidence, 2), MAX_REPORTED_CONFIDENCE),
        observation_count=n,
        recent_scores=recent_scores,
    )
