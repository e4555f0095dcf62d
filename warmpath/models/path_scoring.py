"""
Path Scoring

Scores paths from their edge strengths with a per-hop penalty, and
derives the detailed ranking factors used to explain a path.
"""

import math
from datetime import datetime
from typing import Optional, Union

from warmpath.models.entities import (
    Edge,
    Path,
    PathRankingFactors,
    ScoredPath,
    to_naive_utc,
    utc_now,
)

DEFAULT_EDGE_SCORE = 0.5
HOP_PENALTY = 0.9

EdgeScoreKey = Union[str, tuple[str, str]]


def _edge_score(
    edge: Edge,
    edge_scores: Optional[dict[EdgeScoreKey, float]],
    default_edge_score: float,
) -> float:
    if edge_scores:
        if edge.id in edge_scores:
            return edge_scores[edge.id]
        key = (edge.from_person_id, edge.to_person_id)
        if key in edge_scores:
            return edge_scores[key]
    if edge.strength is None:
        return default_edge_score
    return edge.strength


def score_path(
    path: Path,
    edge_scores: Optional[dict[EdgeScoreKey, float]] = None,
    hop_penalty: float = HOP_PENALTY,
    default_edge_score: float = DEFAULT_EDGE_SCORE,
) -> float:
    """Calculate the score for a single path.

    score = product(edge scores) * hop_penalty^(hops - 1)

    Args:
        path: Path to score
        edge_scores: Overrides keyed by edge id or (from_id, to_id)
        hop_penalty: Discount per hop beyond the first
        default_edge_score: Score for edges without a stored strength

    Returns:
        Score in [0, 1]; 0 for a path without edges
    """
    if not path.edges:
        return 0.0

    score = 1.0
    for edge in path.edges:
        score *= _edge_score(edge, edge_scores, default_edge_score)

    score *= math.pow(hop_penalty, path.hops - 1)

    return max(0.0, min(1.0, score))


def score_paths(
    paths: list[Path],
    edge_scores: Optional[dict[EdgeScoreKey, float]] = None,
    hop_penalty: float = HOP_PENALTY,
    default_edge_score: float = DEFAULT_EDGE_SCORE,
) -> list[ScoredPath]:
    """Score multiple paths, keeping their order."""
    return [
        ScoredPath(
            node_ids=path.node_ids,
            edges=path.edges,
            score=score_path(path, edge_scores, hop_penalty, default_edge_score),
        )
        for path in paths
    ]


def calculate_path_ranking_factors(
    path: Path,
    now: Optional[datetime] = None,
) -> PathRankingFactors:
    """Break a path down into the factors that make it a good intro path."""
    if not path.edges:
        return PathRankingFactors()

    now = to_naive_utc(now) or utc_now()

    def strength(edge: Edge) -> float:
        return DEFAULT_EDGE_SCORE if edge.strength is None else edge.strength

    downstream = path.edges[1:]
    downstream_avg = (
        sum(strength(e) for e in downstream) / len(downstream) if downstream else 1.0
    )

    # Half-life of 90 days; edges never seen count as fully decayed
    recency_total = 0.0
    for edge in path.edges:
        if edge.last_seen_at is not None:
            days = max(0.0, (now - edge.last_seen_at).total_seconds() / 86400)
            recency_total += math.exp(-(days / 90) * math.log(2))
    recency = recency_total / len(path.edges)

    evidence_quality = sum(
        1.0 if "interaction" in e.sources else 0.5 for e in path.edges
    ) / len(path.edges)

    return PathRankingFactors(
        introducer_relationship_strength=strength(path.edges[0]),
        downstream_relationship_strength=downstream_avg,
        path_length_penalty=math.pow(0.8, len(path.edges) - 1),
        recency_score=recency,
        evidence_quality=evidence_quality,
    )
