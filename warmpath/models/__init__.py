"""
Data Models and Analytical Components

Pydantic models for entities and the scoring and pathfinding implementations.
"""

from warmpath.models.entities import (
    Person,
    Organization,
    Edge,
    EvidenceEvent,
    EvidenceType,
    RelationshipType,
    ScoringFactors,
    ScoringWeights,
    Path,
    ScoredPath,
    PathfindingRequest,
    PathfindingResult,
)
from warmpath.models.composite import calculate_composite
from warmpath.models.relationship import CompositeEdgeScorer, ScoreCalculator, ScoringInput
from warmpath.models.linkedin import LinkedInRelationshipScorer
from warmpath.models.pathfinder import PathFinder
from warmpath.models.path_scoring import score_path
from warmpath.models.warm_paths import WarmPathFinder, rank_paths

__all__ = [
    "Person",
    "Organization",
    "Edge",
    "EvidenceEvent",
    "EvidenceType",
    "RelationshipType",
    "ScoringFactors",
    "ScoringWeights",
    "Path",
    "ScoredPath",
    "PathfindingRequest",
    "PathfindingResult",
    "calculate_composite",
    "CompositeEdgeScorer",
    "ScoreCalculator",
    "ScoringInput",
    "LinkedInRelationshipScorer",
    "PathFinder",
    "score_path",
    "WarmPathFinder",
    "rank_paths",
]
