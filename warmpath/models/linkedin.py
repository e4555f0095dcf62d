"""
LinkedIn Relationship Scorer

Scores a relationship from LinkedIn evidence events (connections and
messages) on a 0-100 scale with an A-D tier, the most important evidence
and a short explanation.
"""

import logging
import math
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from warmpath.models.entities import (
    Edge,
    EdgeScoreUpdate,
    EvidenceEvent,
    EvidenceType,
    to_naive_utc,
    utc_now,
)
from warmpath.models.relationship import collect_person_edges, rescore_edges

logger = logging.getLogger(__name__)

Tier = Literal["A", "B", "C", "D"]

TOP_EVIDENCE_LIMIT = 5

EVIDENCE_TYPE_WEIGHTS = {
    EvidenceType.LINKEDIN_CONNECTION: 2,
    EvidenceType.LINKEDIN_MESSAGE_SENT: 3,
    EvidenceType.LINKEDIN_MESSAGE_RECEIVED: 3,
}


class LinkedInScoringFactors(BaseModel):
    """Factor scores derived from LinkedIn evidence, each in [0, 1]."""
    connection_age: float = 0.0
    message_recency: float = 0.0
    message_frequency: float = 0.0
    reciprocity: float = 0.0
    thread_depth: float = 0.0
    multi_party: float = 0.0


class LinkedInWeights(BaseModel):
    """Weights for combining LinkedIn factors."""
    model_config = ConfigDict(frozen=True)

    connection_age: float = 0.15
    message_recency: float = 0.30
    message_frequency: float = 0.25
    reciprocity: float = 0.15
    thread_depth: float = 0.10
    multi_party: float = 0.05


class TierThresholds(BaseModel):
    """Minimum 0-100 score for each tier above D."""
    model_config = ConfigDict(frozen=True)

    a: int = 80
    b: int = 60
    c: int = 40


DEFAULT_LINKEDIN_WEIGHTS = LinkedInWeights()
DEFAULT_TIER_THRESHOLDS = TierThresholds()


class LinkedInScoringResult(BaseModel):
    """Result of scoring one relationship from LinkedIn evidence."""
    strength_score: int = Field(default=0, ge=0, le=100)
    strength_tier: Tier = "D"
    factors: LinkedInScoringFactors = Field(default_factory=LinkedInScoringFactors)
    top_evidence_ids: list[str] = Field(default_factory=list)
    explanation: str = "No LinkedIn evidence found"

    def to_edge_update(self) -> EdgeScoreUpdate:
        """Convert to an edge update with strength stored as 0-1."""
        return EdgeScoreUpdate(
            strength=self.strength_score / 100,
            factors=self.factors.model_dump(),
            top_evidence_ids=list(self.top_evidence_ids),
        )


def _days_since(timestamp: datetime, now: datetime) -> int:
    """Whole days elapsed, floored."""
    return math.floor((to_naive_utc(now) - to_naive_utc(timestamp)).total_seconds() / 86400)


class LinkedInRelationshipScorer:
    """Calculates relationship strength from LinkedIn evidence.

    Formula:
        score = round(100 * sum(factor * weight))
        tier  = A >= 80, B >= 60, C >= 40, else D
    """

    def __init__(
        self,
        provider=None,
        weights: LinkedInWeights = DEFAULT_LINKEDIN_WEIGHTS,
        tiers: TierThresholds = DEFAULT_TIER_THRESHOLDS,
        source_prefix: str = "linkedin",
        rescore_sources: tuple[str, ...] = ("linkedin_archive", "linkedin_api"),
        batch_size: int = 5,
    ):
        """Initialize scorer.

        Args:
            provider: Data provider for evidence lookups and edge updates
            weights: Factor weights
            tiers: Tier thresholds on the 0-100 scale
            source_prefix: Evidence sources considered LinkedIn evidence
            rescore_sources: Edge sources that mark an edge for re-scoring
            batch_size: Number of edges scored concurrently
        """
        self.provider = provider
        self.weights = weights
        self.tiers = tiers
        self.source_prefix = source_prefix
        self.rescore_sources = tuple(rescore_sources)
        self.batch_size = batch_size

    def score_evidence(
        self,
        evidence: list[EvidenceEvent],
        now: Optional[datetime] = None,
    ) -> LinkedInScoringResult:
        """Score a relationship from its evidence events.

        Args:
            evidence: Evidence between two people, in either direction
            now: Reference time (default: now)

        Returns:
            LinkedInScoringResult (zero result with tier D if no evidence)
        """
        if not evidence:
            return LinkedInScoringResult()

        now = to_naive_utc(now) or utc_now()
        evidence = sorted(evidence, key=lambda e: e.timestamp, reverse=True)

        factors = self._calculate_factors(evidence, now)

        weighted = sum(
            getattr(factors, name) * weight
            for name, weight in self.weights.model_dump().items()
        )
        strength_score = max(0, min(100, math.floor(weighted * 100 + 0.5)))

        return LinkedInScoringResult(
            strength_score=strength_score,
            strength_tier=self.get_tier(strength_score),
            factors=factors,
            top_evidence_ids=self._get_top_evidence(evidence, now),
            explanation=self._generate_explanation(factors, len(evidence)),
        )

    def _calculate_factors(
        self,
        evidence: list[EvidenceEvent],
        now: datetime,
    ) -> LinkedInScoringFactors:
        """Calculate factors from evidence sorted most-recent-first."""
        factors = LinkedInScoringFactors()

        connection = next(
            (e for e in evidence if e.type == EvidenceType.LINKEDIN_CONNECTION),
            None,
        )
        if connection is not None:
            days = _days_since(connection.timestamp, now)
            if days < 365:
                age = days / 365
            elif days < 1095:
                age = 1.0
            else:
                age = max(0.3, 1.0 - (days - 1095) / 3650)
            factors.connection_age = max(0.0, min(1.0, age))

        messages = [e for e in evidence if e.is_message]
        if not messages:
            return factors

        days_since_last = _days_since(messages[0].timestamp, now)
        factors.message_recency = min(1.0, math.exp(-days_since_last / 60))

        message_days = [_days_since(m.timestamp, now) for m in messages]
        last_30 = sum(1 for d in message_days if d <= 30)
        last_90 = sum(1 for d in message_days if d <= 90)
        last_365 = sum(1 for d in message_days if d <= 365)
        factors.message_frequency = min(
            1.0, (last_30 * 0.5 + last_90 * 0.3 + last_365 * 0.2) / 10
        )

        sent = sum(1 for m in messages if m.type == EvidenceType.LINKEDIN_MESSAGE_SENT)
        received = len(messages) - sent
        if sent > 0 and received > 0:
            factors.reciprocity = min(sent, received) / max(sent, received)
        else:
            factors.reciprocity = 0.3

        if len(messages) > 1:
            factors.thread_depth = min(1.0, len(messages) / 20)

        # No participant data yet: many messages stand in for group threads
        if len(messages) > 5:
            factors.multi_party = 0.5

        return factors

    def get_tier(self, score: int) -> Tier:
        """Map a 0-100 score to its tier."""
        if score >= self.tiers.a:
            return "A"
        if score >= self.tiers.b:
            return "B"
        if score >= self.tiers.c:
            return "C"
        return "D"

    def _get_top_evidence(self, evidence: list[EvidenceEvent], now: datetime) -> list[str]:
        """Pick the most important evidence: messages, then recent events."""
        def weight(event: EvidenceEvent) -> int:
            days = _days_since(event.timestamp, now)
            bonus = 2 if days < 30 else 1 if days < 90 else 0
            return EVIDENCE_TYPE_WEIGHTS.get(event.type, 0) + bonus

        ranked = sorted(evidence, key=weight, reverse=True)
        return [e.id for e in ranked[:TOP_EVIDENCE_LIMIT]]

    def _generate_explanation(
        self,
        factors: LinkedInScoringFactors,
        evidence_count: int,
    ) -> str:
        parts = []
        if factors.message_recency > 0.7:
            parts.append("Recent communication")
        if factors.message_frequency > 0.5:
            parts.append("Frequent interactions")
        if factors.reciprocity > 0.7:
            parts.append("Two-way relationship")
        if factors.connection_age > 0.7:
            parts.append("Established connection")

        if not parts:
            plural = "s" if evidence_count != 1 else ""
            return f"{evidence_count} LinkedIn interaction{plural}"

        return ", ".join(parts) + f" ({evidence_count} evidence events)"

    async def score_relationship(
        self,
        person_a: str,
        person_b: str,
        now: Optional[datetime] = None,
    ) -> LinkedInScoringResult:
        """Score the relationship between two people from stored evidence."""
        evidence = await self.provider.get_evidence_between(person_a, person_b)
        linkedin_evidence = [
            e for e in evidence if e.source.startswith(self.source_prefix)
        ]
        return self.score_evidence(linkedin_evidence, now=now)

    async def score_edge(self, edge: Edge) -> EdgeScoreUpdate:
        result = await self.score_relationship(edge.from_person_id, edge.to_person_id)
        logger.debug(
            f"Edge {edge.id}: {result.strength_score} ({result.strength_tier}) - "
            f"{result.explanation}"
        )
        return result.to_edge_update()

    async def rescore_person_edges(self, person_id: str) -> int:
        """Re-score every LinkedIn-sourced edge touching a person.

        Intended to run after a batch of LinkedIn evidence is ingested.

        Returns:
            Number of edges updated
        """
        edges = [
            edge for edge in await collect_person_edges(self.provider, person_id)
            if any(source in self.rescore_sources for source in edge.sources)
        ]

        updated = await rescore_edges(self.provider, self, edges, self.batch_size)
        logger.info(f"Re-scored {updated} LinkedIn edges for person {person_id}")
        return updated
