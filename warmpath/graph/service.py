"""
Graph Service

Presents directed edge storage as a bidirectional graph, batches lookups
for many people at once, and computes aggregate statistics.
"""

import logging
from typing import Optional

from warmpath.graph.provider import DataProvider
from warmpath.models.composite import DEFAULT_WEIGHTS, calculate_composite
from warmpath.models.entities import (
    Edge,
    GraphStats,
    Introducer,
    Path,
    PathExplanation,
    Person,
    ScoringFactors,
    ScoringWeights,
)
from warmpath.models.path_scoring import calculate_path_ranking_factors

logger = logging.getLogger(__name__)

CHANNEL_PRIORITY = ["email", "linkedin", "message", "call", "meeting"]
FACTOR_NAMES = ("recency", "frequency", "bidirectional", "channel_diversity")


def merge_bidirectional(
    person_id: str,
    outgoing: list[Edge],
    incoming: list[Edge],
) -> list[Edge]:
    """Merge stored outgoing and incoming edges into one outgoing view.

    Incoming edges are re-oriented to start at person_id. Each neighbor
    appears once; the originally stored outgoing edge wins.
    """
    merged: dict[str, Edge] = {}

    for edge in outgoing:
        merged.setdefault(edge.to_person_id, edge)

    for edge in incoming:
        oriented = edge if edge.from_person_id == person_id else edge.reversed()
        merged.setdefault(oriented.to_person_id, oriented)

    return list(merged.values())


class GraphService:
    """Bidirectional view over a data provider."""

    def __init__(
        self,
        provider: DataProvider,
        strong_edge_threshold: float = 0.7,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ):
        self.provider = provider
        self.strong_edge_threshold = strong_edge_threshold
        self.weights = weights

    async def get_person(self, person_id: str) -> Optional[Person]:
        return await self.provider.get_person(person_id)

    async def get_people(self, person_ids: list[str]) -> dict[str, Person]:
        """Fetch many people in one call, keyed by id.

        Unknown ids are absent from the result.
        """
        if not person_ids:
            return {}
        people = await self.provider.get_people(list(dict.fromkeys(person_ids)))
        return {person.id: person for person in people}

    async def get_all_people(self) -> list[Person]:
        return await self.provider.get_all_people()

    async def get_outgoing_edges(self, person_id: str) -> list[Edge]:
        """Get edges from a person, treating every stored edge as bidirectional."""
        outgoing = await self.provider.get_outgoing_edges(person_id)
        incoming = await self.provider.get_incoming_edges(person_id)
        return merge_bidirectional(person_id, outgoing, incoming)

    async def get_outgoing_edges_for_many(
        self, person_ids: list[str]
    ) -> dict[str, list[Edge]]:
        """Bidirectional outgoing edges for many people.

        Issues one provider call per direction regardless of input size.
        Every input id is present in the result.
        """
        unique_ids = list(dict.fromkeys(person_ids))
        if not unique_ids:
            return {}

        outgoing = await self.provider.get_outgoing_edges_for_many(unique_ids)
        incoming = await self.provider.get_incoming_edges_for_many(unique_ids)

        return {
            person_id: merge_bidirectional(
                person_id,
                outgoing.get(person_id, []),
                incoming.get(person_id, []),
            )
            for person_id in unique_ids
        }

    async def get_stats(self) -> GraphStats:
        """Get aggregate counts over the graph."""
        stats = await self.provider.get_stats(self.strong_edge_threshold)

        average = 0.0
        if stats.total_people > 0:
            average = stats.total_edges / stats.total_people

        return stats.model_copy(update={"average_edges_per_person": average})

    async def find_edge(self, person_a: str, person_b: str) -> Optional[Edge]:
        """Find the edge between two people, in either direction."""
        edges = await self.get_outgoing_edges(person_a)
        return next((e for e in edges if e.to_person_id == person_b), None)

    async def calculate_strength(
        self,
        person_a: str,
        person_b: str,
        weights: Optional[ScoringWeights] = None,
    ) -> float:
        """Composite strength from the stored factor breakdown of an edge.

        Returns 0 when there is no edge or it has no composite factors.
        """
        edge = await self.find_edge(person_a, person_b)
        if edge is None:
            return 0.0

        if not all(name in edge.strength_factors for name in FACTOR_NAMES):
            return 0.0

        factors = ScoringFactors(**{
            name: edge.strength_factors[name] for name in FACTOR_NAMES
        })
        return calculate_composite(factors, weights or self.weights)

    async def explain_path(self, path: Path) -> PathExplanation:
        """Explain why a path is a good route for an introduction."""
        factors = calculate_path_ranking_factors(path)

        if not path.edges:
            return PathExplanation(
                path=path,
                factors=factors,
                reasoning="No connection on this path.",
            )

        people = await self.get_people(path.node_ids)
        introducer_id = path.node_ids[1]
        introducer = people.get(introducer_id)
        first_edge = path.edges[0]

        strength_pct = factors.introducer_relationship_strength * 100
        recommended = Introducer(
            person_id=introducer_id,
            name=introducer.display_name if introducer else introducer_id,
            rationale=f"Strong relationship ({strength_pct:.0f}% strength) with recent interactions",
        )

        return PathExplanation(
            path=path,
            factors=factors,
            reasoning=self._generate_reasoning(path, factors),
            recommended_introducer=recommended,
            suggested_channel=suggest_channel(first_edge),
        )

    def _generate_reasoning(self, path: Path, factors) -> str:
        reasons = []

        if factors.introducer_relationship_strength >= 0.8:
            reasons.append("Very strong relationship with introducer")
        elif factors.introducer_relationship_strength >= 0.6:
            reasons.append("Good relationship with introducer")

        if factors.recency_score >= 0.8:
            reasons.append("Recent interactions on path")

        if len(path.edges) == 1:
            reasons.append("Direct connection")
        elif len(path.edges) == 2:
            reasons.append("Short 2-hop path")

        if factors.evidence_quality >= 0.8:
            reasons.append("Strong evidence from interactions")

        if not reasons:
            return "Limited evidence on this path."
        return ". ".join(reasons) + "."


def suggest_channel(edge: Edge) -> str:
    """Pick the best channel to ask the introducer through."""
    channels = [c.lower() for c in edge.channels]
    for channel in CHANNEL_PRIORITY:
        if channel in channels:
            return channel
    return edge.channels[0] if edge.channels else "email"
