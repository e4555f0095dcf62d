"""
Core Data Models

Pydantic models for people, scored edges, evidence and paths in the
relationship graph.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEIGHT_SUM_TOLERANCE = 0.001


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware timestamp to naive UTC.

    All timestamps are compared as naive UTC. Naive values pass through.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    """Current time as naive UTC."""
    return to_naive_utc(datetime.now(timezone.utc))


class RelationshipType(str, Enum):
    """Relationship type tags carried by an edge."""
    KNOWS = "knows"
    CONNECTED_TO = "connected_to"
    INTERACTED_WITH = "interacted_with"
    WORKED_AT = "worked_at"
    ADVISED = "advised"
    INVESTED_IN = "invested_in"


class EvidenceType(str, Enum):
    """Types of observed interactions backing an edge."""
    LINKEDIN_CONNECTION = "linkedin_connection"
    LINKEDIN_MESSAGE_SENT = "linkedin_message_sent"
    LINKEDIN_MESSAGE_RECEIVED = "linkedin_message_received"
    EMAIL_SENT = "email_sent"
    EMAIL_RECEIVED = "email_received"
    MEETING = "meeting"
    CALL = "call"


class Person(BaseModel):
    """A person in the graph."""
    id: str
    names: list[str] = Field(default_factory=list)
    emails: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    title: Optional[str] = None
    organization_id: Optional[str] = None
    social_handles: dict[str, str] = Field(default_factory=dict)
    metadata: dict = Field(default_factory=dict)
    deleted_at: Optional[datetime] = None

    @field_validator("deleted_at")
    @classmethod
    def _normalize_deleted_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @property
    def display_name(self) -> str:
        """Human-readable name for display."""
        return self.names[0] if self.names else self.id

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Organization(BaseModel):
    """An organization people can belong to."""
    id: str
    name: str
    domain: Optional[str] = None
    metadata: dict = Field(default_factory=dict)


class Edge(BaseModel):
    """A scored relationship between two people.

    Stored with a direction, but traversed in both directions by the
    graph service.
    """
    id: str
    from_person_id: str
    to_person_id: str
    relationship_type: RelationshipType = RelationshipType.KNOWS
    strength: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Relationship strength (0-1), absent until first scored",
    )
    strength_factors: dict[str, float] = Field(default_factory=dict)
    channels: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    first_seen_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    interaction_count: int = Field(default=0, ge=0)
    top_evidence_ids: list[str] = Field(default_factory=list)

    @field_validator("first_seen_at", "last_seen_at")
    @classmethod
    def _normalize_seen_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    def reversed(self) -> "Edge":
        """Return a copy of this edge with its endpoints swapped."""
        return self.model_copy(update={
            "from_person_id": self.to_person_id,
            "to_person_id": self.from_person_id,
        })


class EvidenceEvent(BaseModel):
    """One immutable observed interaction between two people."""
    model_config = ConfigDict(frozen=True)

    id: str
    subject_person_id: str
    object_person_id: str
    type: EvidenceType
    timestamp: datetime
    source: str
    metadata: dict = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @property
    def is_message(self) -> bool:
        return self.type in (
            EvidenceType.LINKEDIN_MESSAGE_SENT,
            EvidenceType.LINKEDIN_MESSAGE_RECEIVED,
        )


class ScoringFactors(BaseModel):
    """The four normalized inputs to composite scoring."""
    recency: float = Field(default=0.0, ge=0.0, le=1.0)
    frequency: float = Field(default=0.0, ge=0.0, le=1.0)
    bidirectional: float = Field(default=0.0, ge=0.0, le=1.0)
    channel_diversity: float = Field(default=0.0, ge=0.0, le=1.0)


class ScoringWeights(BaseModel):
    """Weights for composite scoring. Must sum to 1.0."""
    model_config = ConfigDict(frozen=True)

    recency: float = Field(default=0.30, ge=0.0)
    frequency: float = Field(default=0.25, ge=0.0)
    bidirectional: float = Field(default=0.25, ge=0.0)
    channel_diversity: float = Field(default=0.20, ge=0.0)

    @property
    def total(self) -> float:
        return self.recency + self.frequency + self.bidirectional + self.channel_diversity

    @model_validator(mode="after")
    def _check_sum(self) -> "ScoringWeights":
        check_weight_sum(self.total)
        return self


def check_weight_sum(total: float) -> None:
    """Reject a weight set that does not sum to 1.0."""
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise ValueError(f"Weights must sum to 1.0, but got {total:.4f}")


class EdgeScoreUpdate(BaseModel):
    """New score for an edge, written back through the data provider."""
    strength: float = Field(ge=0.0, le=1.0)
    factors: dict[str, float] = Field(default_factory=dict)
    top_evidence_ids: list[str] = Field(default_factory=list)


class Path(BaseModel):
    """A cycle-free path through the graph."""
    node_ids: list[str]
    edges: list[Edge] = Field(default_factory=list)

    @property
    def hops(self) -> int:
        return max(len(self.node_ids) - 1, 0)


class ScoredPath(Path):
    """A path with its score, rank and explanation."""
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    explanation: str = ""
    rank: int = 0


class SearchMetadata(BaseModel):
    """Telemetry from a single path search."""
    nodes_explored: int = 0
    edges_evaluated: int = 0
    duration_ms: float = 0.0


class PathfindingRequest(BaseModel):
    """Caller request for warm introduction paths."""
    source_id: str
    target_id: str
    max_hops: int = Field(default=3, ge=1)
    exploration_budget: int = Field(default=10_000, ge=1)
    max_paths: int = Field(default=5, ge=1)
    min_strength: float = Field(default=0.0, ge=0.0, le=1.0)


class PathfindingResult(BaseModel):
    """Ranked paths with search telemetry."""
    paths: list[ScoredPath] = Field(default_factory=list)
    search_metadata: SearchMetadata = Field(default_factory=SearchMetadata)


class PathRankingFactors(BaseModel):
    """Detailed factors explaining how good a path is."""
    introducer_relationship_strength: float = 0.0
    downstream_relationship_strength: float = 0.0
    path_length_penalty: float = 1.0
    recency_score: float = 0.0
    evidence_quality: float = 0.0


class Introducer(BaseModel):
    """The first intermediary on a path."""
    person_id: str
    name: str
    rationale: str


class PathExplanation(BaseModel):
    """Detailed explanation of a path for the person asking for the intro."""
    path: Path
    factors: PathRankingFactors
    reasoning: str
    recommended_introducer: Optional[Introducer] = None
    suggested_channel: str = "email"


class GraphStats(BaseModel):
    """Aggregate counts over the graph."""
    total_people: int = 0
    total_edges: int = 0
    total_organizations: int = 0
    strong_edges: int = 0
    average_edges_per_person: float = 0.0
