"""
Warm Path Discovery

Finds, scores, ranks and explains introduction paths between two people.
"""

import logging
from typing import TYPE_CHECKING, Optional

from warmpath.models.entities import PathfindingRequest, PathfindingResult, ScoredPath
from warmpath.models.path_scoring import (
    DEFAULT_EDGE_SCORE,
    HOP_PENALTY,
    EdgeScoreKey,
    score_paths,
)
from warmpath.models.pathfinder import EXPLORATION_BUDGET, MAX_HOPS, PathFinder

if TYPE_CHECKING:
    from warmpath.graph.service import GraphService

logger = logging.getLogger(__name__)


def get_strength_description(score: float) -> str:
    if score >= 0.8:
        return "strong"
    if score >= 0.5:
        return "moderate"
    return "weak"


def explain_path(path: ScoredPath, names: dict[str, str]) -> str:
    """Generate a human-readable explanation for a path.

    Args:
        path: Scored path to explain
        names: Display names keyed by person id (ids used when missing)
    """
    if len(path.node_ids) < 2:
        return "Invalid path"

    labels = [names.get(node_id, node_id) for node_id in path.node_ids]
    target = labels[-1]
    strength = get_strength_description(path.score)

    if len(labels) == 2:
        return f"Direct {strength} connection to {target}"

    intermediaries = " → ".join(labels[1:-1])
    return f"Connect through {intermediaries} to reach {target} ({strength} path)"


def rank_paths(
    paths: list[ScoredPath],
    max_paths: Optional[int] = None,
) -> list[ScoredPath]:
    """Sort paths by score (shorter first on ties) and assign ranks from 1."""
    ordered = sorted(paths, key=lambda p: (-p.score, p.hops))
    if max_paths is not None:
        ordered = ordered[:max_paths]

    return [
        path.model_copy(update={"rank": index})
        for index, path in enumerate(ordered, 1)
    ]


class WarmPathFinder:
    """Finds warm introduction paths between two people."""

    def __init__(
        self,
        graph: "GraphService",
        max_hops: int = MAX_HOPS,
        exploration_budget: int = EXPLORATION_BUDGET,
        hop_penalty: float = HOP_PENALTY,
        default_edge_score: float = DEFAULT_EDGE_SCORE,
    ):
        """Initialize warm path finder.

        Args:
            graph: Bidirectional graph service
            max_hops: Default maximum hops per path
            exploration_budget: Default maximum node expansions per search
            hop_penalty: Score discount per hop beyond the first
            default_edge_score: Score for edges without a stored strength
        """
        self.graph = graph
        self.finder = PathFinder(graph, max_hops=max_hops, exploration_budget=exploration_budget)
        self.hop_penalty = hop_penalty
        self.default_edge_score = default_edge_score

    async def find_warm_paths(
        self,
        request: PathfindingRequest,
        edge_scores: Optional[dict[EdgeScoreKey, float]] = None,
    ) -> PathfindingResult:
        """Find ranked warm introduction paths.

        Args:
            request: Source, target and search bounds
            edge_scores: Optional edge score overrides

        Returns:
            PathfindingResult with ranked, explained paths and telemetry
        """
        search = await self.finder.find_paths(
            request.source_id,
            request.target_id,
            max_hops=request.max_hops,
            exploration_budget=request.exploration_budget,
            min_strength=request.min_strength,
        )

        if not search.paths:
            logger.info(f"No paths found from {request.source_id} to {request.target_id}")
            return PathfindingResult(search_metadata=search.search_metadata)

        scored = score_paths(
            search.paths,
            edge_scores=edge_scores,
            hop_penalty=self.hop_penalty,
            default_edge_score=self.default_edge_score,
        )
        ranked = rank_paths(scored, request.max_paths)

        node_ids = {node_id for path in ranked for node_id in path.node_ids}
        people = await self.graph.get_people(list(node_ids))
        names = {person_id: person.display_name for person_id, person in people.items()}

        explained = [
            path.model_copy(update={"explanation": explain_path(path, names)})
            for path in ranked
        ]

        logger.info(
            f"Found {len(search.paths)} paths from {request.source_id} to "
            f"{request.target_id}, returning top {len(explained)}"
        )

        return PathfindingResult(paths=explained, search_metadata=search.search_metadata)

    def get_summary(self, result: PathfindingResult) -> dict:
        """Get summary of a path search.

        Returns:
            Summary dictionary
        """
        paths = result.paths
        best = paths[0] if paths else None

        return {
            "total_paths": len(paths),
            "direct_paths": sum(1 for p in paths if p.hops == 1),
            "best_path": {
                "node_ids": best.node_ids,
                "score": best.score,
                "explanation": best.explanation,
            } if best else None,
            "avg_score": sum(p.score for p in paths) / len(paths) if paths else 0,
            "search_metadata": result.search_metadata.model_dump(),
        }
