"""
Tests for Path Scoring
"""

import math
import pytest
from datetime import timedelta

from warmpath.models.entities import Edge, Path
from warmpath.models.path_scoring import (
    calculate_path_ranking_factors,
    score_path,
    score_paths,
)


def make_path(*strengths, sources=None, last_seen=None):
    node_ids = [f"n{i}" for i in range(len(strengths) + 1)]
    edges = [
        Edge(
            id=f"e{i}",
            from_person_id=node_ids[i],
            to_person_id=node_ids[i + 1],
            strength=strength,
            sources=sources or [],
            last_seen_at=last_seen,
        )
        for i, strength in enumerate(strengths)
    ]
    return Path(node_ids=node_ids, edges=edges)


class TestScorePath:
    """Tests for score_path."""

    def test_two_hop_penalty(self):
        assert score_path(make_path(0.8, 0.8)) == pytest.approx(0.576)

    def test_direct_path_no_penalty(self):
        assert score_path(make_path(0.9)) == pytest.approx(0.9)

    def test_shorter_preferred_at_equal_strength(self):
        assert score_path(make_path(0.8)) > score_path(make_path(0.8, 0.8))
        assert score_path(make_path(1.0, 1.0)) > score_path(make_path(1.0, 1.0, 1.0))

    def test_no_edges(self):
        assert score_path(Path(node_ids=["n0"])) == 0.0

    def test_missing_strength_uses_default(self):
        assert score_path(make_path(None)) == pytest.approx(0.5)
        assert score_path(make_path(None), default_edge_score=0.2) == pytest.approx(0.2)

    def test_override_by_edge_id(self):
        path = make_path(0.8, 0.8)
        assert score_path(path, edge_scores={"e1": 0.5}) == pytest.approx(0.8 * 0.5 * 0.9)

    def test_override_by_endpoints(self):
        path = make_path(0.8, 0.8)
        assert score_path(path, edge_scores={("n0", "n1"): 1.0}) == pytest.approx(0.8 * 0.9)

    def test_custom_hop_penalty(self):
        assert score_path(make_path(1.0, 1.0, 1.0), hop_penalty=0.5) == pytest.approx(0.25)

    def test_clamped(self):
        assert score_path(make_path(0.5), edge_scores={"e0": 3.0}) == 1.0

    def test_score_paths_keeps_order(self):
        paths = [make_path(0.3), make_path(0.9, 0.9)]
        scored = score_paths(paths)
        assert [p.score for p in scored] == pytest.approx([0.3, 0.729])
        assert scored[1].node_ids == paths[1].node_ids


class TestPathRankingFactors:
    """Tests for calculate_path_ranking_factors."""

    def test_direct_path(self, now):
        factors = calculate_path_ranking_factors(make_path(0.7), now=now)
        assert factors.introducer_relationship_strength == 0.7
        assert factors.downstream_relationship_strength == 1.0
        assert factors.path_length_penalty == 1.0

    def test_downstream_average(self, now):
        factors = calculate_path_ranking_factors(make_path(0.9, 0.6, 0.4), now=now)
        assert factors.downstream_relationship_strength == pytest.approx(0.5)
        assert factors.path_length_penalty == pytest.approx(0.64)

    def test_recency_half_life(self, now):
        factors = calculate_path_ranking_factors(
            make_path(0.5, 0.5, last_seen=now - timedelta(days=90)), now=now
        )
        assert factors.recency_score == pytest.approx(0.5)

    def test_unseen_edges_count_as_stale(self, now):
        factors = calculate_path_ranking_factors(make_path(0.5), now=now)
        assert factors.recency_score == 0.0

    def test_evidence_quality(self, now):
        direct = calculate_path_ranking_factors(make_path(0.5, sources=["interaction"]), now=now)
        inferred = calculate_path_ranking_factors(make_path(0.5, sources=["import"]), now=now)
        assert direct.evidence_quality == 1.0
        assert inferred.evidence_quality == 0.5

    def test_empty_path(self):
        factors = calculate_path_ranking_factors(Path(node_ids=["n0"]))
        assert factors.introducer_relationship_strength == 0.0
        assert factors.path_length_penalty == 1.0

    def test_recency_formula(self, now):
        factors = calculate_path_ranking_factors(
            make_path(0.5, last_seen=now - timedelta(days=30)), now=now
        )
        assert factors.recency_score == pytest.approx(math.exp(-(30 / 90) * math.log(2)))
