"""
Relationship Strength Calculator

Orchestrates the four factor scorers into one composite relationship
strength with a confidence estimate, and applies it to stored edges.
"""

import asyncio
import logging
from datetime import datetime
from typing import Iterable, Optional, Protocol

from pydantic import BaseModel, Field, field_validator

from warmpath.models.composite import DEFAULT_WEIGHTS, calculate_composite
from warmpath.models.entities import (
    Edge,
    EdgeScoreUpdate,
    EvidenceEvent,
    EvidenceType,
    ScoringFactors,
    ScoringWeights,
    to_naive_utc,
    utc_now,
)
from warmpath.models.factors import (
    calculate_bidirectional,
    calculate_channel_diversity,
    calculate_frequency,
    calculate_recency,
    days_between,
)

logger = logging.getLogger(__name__)

SENT_TYPES = {EvidenceType.LINKEDIN_MESSAGE_SENT, EvidenceType.EMAIL_SENT}
RECEIVED_TYPES = {EvidenceType.LINKEDIN_MESSAGE_RECEIVED, EvidenceType.EMAIL_RECEIVED}

EVIDENCE_CHANNELS = {
    EvidenceType.LINKEDIN_CONNECTION: "linkedin",
    EvidenceType.LINKEDIN_MESSAGE_SENT: "linkedin",
    EvidenceType.LINKEDIN_MESSAGE_RECEIVED: "linkedin",
    EvidenceType.EMAIL_SENT: "email",
    EvidenceType.EMAIL_RECEIVED: "email",
    EvidenceType.MEETING: "meeting",
    EvidenceType.CALL: "call",
}

CONFIDENCE_CHECKS = 4
RECENT_INTERACTION_DAYS = 365
TOP_EVIDENCE_LIMIT = 5


class ScoringInput(BaseModel):
    """Interaction history between two people."""
    interactions: list[datetime] = Field(default_factory=list)
    channels: list[str] = Field(default_factory=list)
    last_interaction: Optional[datetime] = None
    first_interaction: Optional[datetime] = None
    sent_count: int = 0
    received_count: int = 0

    @field_validator("interactions")
    @classmethod
    def _normalize_interactions(cls, value: list[datetime]) -> list[datetime]:
        return [to_naive_utc(ts) for ts in value]

    @field_validator("last_interaction", "first_interaction")
    @classmethod
    def _normalize_bounds(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @property
    def is_empty(self) -> bool:
        return (
            not self.interactions
            and not self.channels
            and self.last_interaction is None
        )

    @classmethod
    def from_evidence(
        cls,
        events: Iterable[EvidenceEvent],
        subject_id: str,
    ) -> "ScoringInput":
        """Build scoring input from evidence, seen from subject_id's side.

        Sent/received types describe the event's subject, so events
        recorded by the other person count in the opposite direction.
        """
        events = list(events)
        if not events:
            return cls()

        timestamps = [e.timestamp for e in events]
        channels: list[str] = []
        sent = received = 0

        for event in events:
            channel = event.metadata.get("channel") or EVIDENCE_CHANNELS.get(event.type)
            if channel:
                channels.append(channel)

            own = event.subject_person_id == subject_id
            if event.type in SENT_TYPES:
                if own:
                    sent += 1
                else:
                    received += 1
            elif event.type in RECEIVED_TYPES:
                if own:
                    received += 1
                else:
                    sent += 1

        return cls(
            interactions=timestamps,
            channels=channels,
            last_interaction=max(timestamps),
            first_interaction=min(timestamps),
            sent_count=sent,
            received_count=received,
        )


class ScoringResult(BaseModel):
    """Composite relationship strength with its factors."""
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    factors: ScoringFactors = Field(default_factory=ScoringFactors)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class ScoreCalculator:
    """Calculates composite relationship strength.

    Formula:
        score = w_r * recency + w_f * frequency
              + w_b * bidirectional + w_c * channel_diversity
    """

    def __init__(
        self,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        recency_time_constant_days: float = 180,
    ):
        """Initialize calculator with configuration.

        Args:
            weights: Factor weights, must sum to 1.0
            recency_time_constant_days: Time constant for recency decay
        """
        self.weights = weights
        self.recency_time_constant_days = recency_time_constant_days

    def calculate(
        self,
        scoring_input: ScoringInput,
        now: Optional[datetime] = None,
    ) -> ScoringResult:
        """Calculate relationship strength from interaction history.

        Args:
            scoring_input: Interaction history between two people
            now: Reference time (default: now)

        Returns:
            ScoringResult with score, factors and confidence
        """
        if scoring_input.is_empty:
            return ScoringResult()

        now = to_naive_utc(now) or utc_now()

        recency = calculate_recency(
            scoring_input.last_interaction,
            now=now,
            time_constant_days=self.recency_time_constant_days,
        )

        frequency = 0.0
        if (
            scoring_input.first_interaction
            and scoring_input.last_interaction
            and scoring_input.interactions
        ):
            time_span_days = max(
                1.0,
                days_between(scoring_input.first_interaction, scoring_input.last_interaction),
            )
            frequency = calculate_frequency(len(scoring_input.interactions), time_span_days)

        factors = ScoringFactors(
            recency=recency,
            frequency=frequency,
            bidirectional=calculate_bidirectional(
                scoring_input.sent_count, scoring_input.received_count
            ),
            channel_diversity=calculate_channel_diversity(scoring_input.channels),
        )

        return ScoringResult(
            score=calculate_composite(factors, self.weights),
            factors=factors,
            confidence=self._calculate_confidence(scoring_input, now),
        )

    def _calculate_confidence(self, scoring_input: ScoringInput, now: datetime) -> float:
        """Estimate confidence from data completeness and volume."""
        satisfied = 0

        if scoring_input.interactions:
            satisfied += 1
        if scoring_input.sent_count > 0 or scoring_input.received_count > 0:
            satisfied += 1
        if scoring_input.channels:
            satisfied += 1
        if scoring_input.last_interaction is not None:
            if days_between(scoring_input.last_interaction, now) < RECENT_INTERACTION_DAYS:
                satisfied += 1

        base = satisfied / CONFIDENCE_CHECKS
        volume_boost = min(0.2, len(scoring_input.interactions) / 100)

        return min(1.0, base + volume_boost)


class EdgeScorer(Protocol):
    """A strategy that produces a new score for a stored edge."""

    async def score_edge(self, edge: Edge) -> EdgeScoreUpdate: ...


async def collect_person_edges(provider, person_id: str) -> list[Edge]:
    """Get every stored edge touching a person, in either direction."""
    outgoing = await provider.get_outgoing_edges(person_id)
    incoming = await provider.get_incoming_edges(person_id)

    edges: dict[str, Edge] = {}
    for edge in [*outgoing, *incoming]:
        edges.setdefault(edge.id, edge)
    return list(edges.values())


async def rescore_edges(
    provider,
    scorer: EdgeScorer,
    edges: list[Edge],
    batch_size: int = 5,
) -> int:
    """Score edges in concurrent batches and write each result back.

    Returns:
        Number of edges updated
    """
    updated = 0
    batch_size = max(1, batch_size)

    for i in range(0, len(edges), batch_size):
        batch = edges[i:i + batch_size]
        updates = await asyncio.gather(*(scorer.score_edge(edge) for edge in batch))

        for edge, update in zip(batch, updates):
            await provider.update_edge_score(edge.id, update)
            updated += 1

    return updated


class CompositeEdgeScorer:
    """Scores edges with the composite four-factor model.

    Uses all evidence between the edge's endpoints. Edges without evidence
    fall back to their stored channels and timestamps.
    """

    def __init__(
        self,
        provider,
        calculator: Optional[ScoreCalculator] = None,
        batch_size: int = 5,
    ):
        self.provider = provider
        self.calculator = calculator or ScoreCalculator()
        self.batch_size = batch_size

    async def score_edge(
        self,
        edge: Edge,
        now: Optional[datetime] = None,
    ) -> EdgeScoreUpdate:
        evidence = await self.provider.get_evidence_between(
            edge.from_person_id, edge.to_person_id
        )

        if evidence:
            scoring_input = ScoringInput.from_evidence(evidence, edge.from_person_id)
        else:
            scoring_input = ScoringInput(
                channels=edge.channels,
                last_interaction=edge.last_seen_at,
                first_interaction=edge.first_seen_at,
            )

        result = self.calculator.calculate(scoring_input, now=now)
        recent_first = sorted(evidence, key=lambda e: e.timestamp, reverse=True)

        return EdgeScoreUpdate(
            strength=result.score,
            factors=result.factors.model_dump(),
            top_evidence_ids=[e.id for e in recent_first[:TOP_EVIDENCE_LIMIT]],
        )

    async def rescore_person_edges(self, person_id: str) -> int:
        """Re-score every edge touching a person.

        Returns:
            Number of edges updated
        """
        edges = await collect_person_edges(self.provider, person_id)
        updated = await rescore_edges(self.provider, self, edges, self.batch_size)
        logger.info(f"Re-scored {updated} edges for person {person_id}")
        return updated
