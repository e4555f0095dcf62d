"""
Pytest Configuration and Shared Fixtures
"""

import pytest
from datetime import datetime, timedelta

from warmpath.graph.provider import InMemoryDataProvider
from warmpath.graph.service import GraphService
from warmpath.models.entities import (
    Edge,
    EvidenceEvent,
    EvidenceType,
    Organization,
    Person,
)

NOW = datetime(2024, 6, 1, 12, 0)


class CountingProvider(InMemoryDataProvider):
    """In-memory provider that records how often each lookup is called."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls: dict[str, int] = {}

    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    async def get_people(self, person_ids):
        self._count("get_people")
        return await super().get_people(person_ids)

    async def get_outgoing_edges_for_many(self, person_ids):
        self._count("get_outgoing_edges_for_many")
        return await super().get_outgoing_edges_for_many(person_ids)

    async def get_incoming_edges_for_many(self, person_ids):
        self._count("get_incoming_edges_for_many")
        return await super().get_incoming_edges_for_many(person_ids)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for scoring tests."""
    return NOW


@pytest.fixture
def sample_people() -> list[Person]:
    """Create a small set of people."""
    return [
        Person(id="alice", names=["Alice Johnson"], emails=["alice@example.com"], organization_id="org_1"),
        Person(id="bob", names=["Bob Williams"], title="Founder"),
        Person(id="carol", names=["Carol Davis"], organization_id="org_2"),
        Person(id="dave", names=["Dave Brown"]),
        Person(id="erin", names=["Erin Moore"]),
        Person(id="ghost", names=["Gone Person"], deleted_at=NOW - timedelta(days=10)),
    ]


@pytest.fixture
def sample_edges() -> list[Edge]:
    """Create edges forming a small network.

    alice - bob - dave
      |            |
    carol ---------+
    erin - ghost (deleted)
    """
    return [
        Edge(
            id="e_alice_bob",
            from_person_id="alice",
            to_person_id="bob",
            strength=0.9,
            channels=["email", "linkedin"],
            sources=["interaction"],
            last_seen_at=NOW - timedelta(days=5),
        ),
        Edge(
            id="e_bob_dave",
            from_person_id="bob",
            to_person_id="dave",
            strength=0.8,
            channels=["linkedin"],
            sources=["linkedin_archive"],
        ),
        # Stored in the opposite direction of travel from alice
        Edge(
            id="e_carol_alice",
            from_person_id="carol",
            to_person_id="alice",
            strength=0.6,
            channels=["meeting"],
        ),
        Edge(
            id="e_carol_dave",
            from_person_id="carol",
            to_person_id="dave",
            strength=0.7,
        ),
        Edge(
            id="e_erin_ghost",
            from_person_id="erin",
            to_person_id="ghost",
            strength=0.9,
        ),
    ]


@pytest.fixture
def sample_evidence() -> list[EvidenceEvent]:
    """Create evidence between alice and bob."""
    return [
        EvidenceEvent(
            id="ev_connect",
            subject_person_id="alice",
            object_person_id="bob",
            type=EvidenceType.LINKEDIN_CONNECTION,
            timestamp=NOW - timedelta(days=400),
            source="linkedin_archive",
        ),
        EvidenceEvent(
            id="ev_sent",
            subject_person_id="alice",
            object_person_id="bob",
            type=EvidenceType.LINKEDIN_MESSAGE_SENT,
            timestamp=NOW - timedelta(days=10),
            source="linkedin_archive",
        ),
        EvidenceEvent(
            id="ev_reply",
            subject_person_id="bob",
            object_person_id="alice",
            type=EvidenceType.LINKEDIN_MESSAGE_SENT,
            timestamp=NOW - timedelta(days=9),
            source="linkedin_archive",
        ),
        EvidenceEvent(
            id="ev_email",
            subject_person_id="alice",
            object_person_id="bob",
            type=EvidenceType.EMAIL_SENT,
            timestamp=NOW - timedelta(days=3),
            source="gmail",
        ),
    ]


@pytest.fixture
def sample_organizations() -> list[Organization]:
    return [
        Organization(id="org_1", name="Acme Corp", domain="acme.example"),
        Organization(id="org_2", name="Globex"),
    ]


@pytest.fixture
def provider(sample_people, sample_edges, sample_evidence, sample_organizations) -> InMemoryDataProvider:
    """In-memory provider loaded with the sample network."""
    return InMemoryDataProvider(
        people=sample_people,
        edges=sample_edges,
        evidence=sample_evidence,
        organizations=sample_organizations,
    )


@pytest.fixture
def counting_provider(sample_people, sample_edges) -> CountingProvider:
    """Provider that counts batched lookups."""
    return CountingProvider(people=sample_people, edges=sample_edges)


@pytest.fixture
def graph(provider) -> GraphService:
    """Graph service over the sample network."""
    return GraphService(provider)
