"""
Data Provider

The read/write data-access contract consumed by the graph service and the
scorers, plus an in-memory implementation backed by plain dictionaries.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional, Protocol

from warmpath.models.entities import (
    Edge,
    EdgeScoreUpdate,
    EvidenceEvent,
    GraphStats,
    Organization,
    Person,
)

logger = logging.getLogger(__name__)


class DataProvider(Protocol):
    """Storage-facing contract. All lookups are scoped to one tenant."""

    async def get_person(self, person_id: str) -> Optional[Person]: ...

    async def get_people(self, person_ids: list[str]) -> list[Person]: ...

    async def get_outgoing_edges(self, person_id: str) -> list[Edge]: ...

    async def get_incoming_edges(self, person_id: str) -> list[Edge]: ...

    async def get_outgoing_edges_for_many(
        self, person_ids: list[str]
    ) -> dict[str, list[Edge]]: ...

    async def get_incoming_edges_for_many(
        self, person_ids: list[str]
    ) -> dict[str, list[Edge]]: ...

    async def get_all_people(self) -> list[Person]: ...

    async def get_stats(self, strong_threshold: float = 0.7) -> GraphStats: ...

    async def get_evidence_between(
        self, person_a: str, person_b: str
    ) -> list[EvidenceEvent]: ...

    async def update_edge_score(self, edge_id: str, update: EdgeScoreUpdate) -> None: ...


class InMemoryDataProvider:
    """Data provider holding the whole graph in memory.

    Soft-deleted people are hidden from person lookups and counts; edges
    are returned as stored, ordered by strength (strongest first).
    """

    def __init__(
        self,
        people: Optional[Iterable[Person]] = None,
        edges: Optional[Iterable[Edge]] = None,
        evidence: Optional[Iterable[EvidenceEvent]] = None,
        organizations: Optional[Iterable[Organization]] = None,
    ):
        self._people: dict[str, Person] = {}
        self._edges: dict[str, Edge] = {}
        self._outgoing: dict[str, list[str]] = defaultdict(list)
        self._incoming: dict[str, list[str]] = defaultdict(list)
        self._evidence: list[EvidenceEvent] = []
        self._organizations: dict[str, Organization] = {}

        for person in people or []:
            self.add_person(person)
        for edge in edges or []:
            self.add_edge(edge)
        for event in evidence or []:
            self.add_evidence(event)
        for org in organizations or []:
            self._organizations[org.id] = org

    def add_person(self, person: Person) -> None:
        self._people[person.id] = person

    def add_edge(self, edge: Edge) -> None:
        if edge.id in self._edges:
            logger.warning(f"Replacing duplicate edge {edge.id}")
            self._remove_edge(edge.id)
        self._edges[edge.id] = edge
        self._outgoing[edge.from_person_id].append(edge.id)
        self._incoming[edge.to_person_id].append(edge.id)

    def add_evidence(self, event: EvidenceEvent) -> None:
        self._evidence.append(event)

    def _remove_edge(self, edge_id: str) -> None:
        edge = self._edges.pop(edge_id)
        self._outgoing[edge.from_person_id].remove(edge_id)
        self._incoming[edge.to_person_id].remove(edge_id)

    def _sorted_edges(self, edge_ids: list[str]) -> list[Edge]:
        edges = [self._edges[edge_id] for edge_id in edge_ids]
        return sorted(edges, key=lambda e: e.strength or 0.0, reverse=True)

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges.values())

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges.get(edge_id)

    async def get_person(self, person_id: str) -> Optional[Person]:
        person = self._people.get(person_id)
        if person is None or person.is_deleted:
            return None
        return person

    async def get_people(self, person_ids: list[str]) -> list[Person]:
        people = []
        for person_id in dict.fromkeys(person_ids):
            person = self._people.get(person_id)
            if person is not None and not person.is_deleted:
                people.append(person)
        return people

    async def get_outgoing_edges(self, person_id: str) -> list[Edge]:
        return self._sorted_edges(self._outgoing.get(person_id, []))

    async def get_incoming_edges(self, person_id: str) -> list[Edge]:
        return self._sorted_edges(self._incoming.get(person_id, []))

    async def get_outgoing_edges_for_many(
        self, person_ids: list[str]
    ) -> dict[str, list[Edge]]:
        return {
            person_id: self._sorted_edges(self._outgoing.get(person_id, []))
            for person_id in person_ids
        }

    async def get_incoming_edges_for_many(
        self, person_ids: list[str]
    ) -> dict[str, list[Edge]]:
        return {
            person_id: self._sorted_edges(self._incoming.get(person_id, []))
            for person_id in person_ids
        }

    async def get_all_people(self) -> list[Person]:
        return [p for p in self._people.values() if not p.is_deleted]

    async def get_stats(self, strong_threshold: float = 0.7) -> GraphStats:
        return GraphStats(
            total_people=sum(1 for p in self._people.values() if not p.is_deleted),
            total_edges=len(self._edges),
            total_organizations=len(self._organizations),
            strong_edges=sum(
                1 for e in self._edges.values()
                if e.strength is not None and e.strength >= strong_threshold
            ),
        )

    async def get_evidence_between(
        self, person_a: str, person_b: str
    ) -> list[EvidenceEvent]:
        pair = {person_a, person_b}
        events = [
            e for e in self._evidence
            if {e.subject_person_id, e.object_person_id} == pair
        ]
        return sorted(events, key=lambda e: e.timestamp, reverse=True)

    async def update_edge_score(self, edge_id: str, update: EdgeScoreUpdate) -> None:
        edge = self._edges.get(edge_id)
        if edge is None:
            raise KeyError(f"Edge not found: {edge_id}")

        self._edges[edge_id] = edge.model_copy(update={
            "strength": update.strength,
            "strength_factors": dict(update.factors),
            "top_evidence_ids": list(update.top_evidence_ids),
        })
        logger.debug(f"Updated edge {edge_id} strength to {update.strength:.3f}")
