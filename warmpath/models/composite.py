"""
Composite Scorer

Combines the four factor scores into one relationship strength.
"""

from warmpath.models.entities import ScoringFactors, ScoringWeights, check_weight_sum

DEFAULT_WEIGHTS = ScoringWeights(
    recency=0.30,
    frequency=0.25,
    bidirectional=0.25,
    channel_diversity=0.20,
)


def calculate_composite(
    factors: ScoringFactors,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Calculate the weighted sum of factor scores.

    Weights are never normalized: a set that does not sum to 1.0 is an
    error rather than a silent change in scoring semantics.

    Args:
        factors: Factor scores, each in [0, 1]
        weights: Weights summing to 1.0

    Returns:
        Composite score clamped to [0, 1]

    Raises:
        ValueError: If weights do not sum to 1.0 (tolerance 0.001)
    """
    check_weight_sum(weights.total)

    result = (
        factors.recency * weights.recency
        + factors.frequency * weights.frequency
        + factors.bidirectional * weights.bidirectional
        + factors.channel_diversity * weights.channel_diversity
    )

    return max(0.0, min(1.0, result))
