"""
Tests for Path Finder
"""

import itertools
import pytest

from warmpath.graph.provider import InMemoryDataProvider
from warmpath.graph.service import GraphService
from warmpath.models.entities import Edge, Person
from warmpath.models.pathfinder import PathFinder


def assert_valid(paths, source_id, target_id):
    for path in paths:
        assert path.node_ids[0] == source_id
        assert path.node_ids[-1] == target_id
        assert len(set(path.node_ids)) == len(path.node_ids)
        assert len(path.edges) == len(path.node_ids) - 1
        for edge, (a, b) in zip(path.edges, zip(path.node_ids, path.node_ids[1:])):
            assert (edge.from_person_id, edge.to_person_id) == (a, b)


class TestPathFinder:
    """Tests for PathFinder.find_paths."""

    @pytest.fixture
    def finder(self, graph):
        return PathFinder(graph)

    @pytest.mark.asyncio
    async def test_finds_all_simple_paths(self, finder):
        result = await finder.find_paths("alice", "dave")

        routes = {tuple(p.node_ids) for p in result.paths}
        assert routes == {("alice", "bob", "dave"), ("alice", "carol", "dave")}
        assert_valid(result.paths, "alice", "dave")

    @pytest.mark.asyncio
    async def test_traverses_edges_against_stored_direction(self, finder):
        result = await finder.find_paths("dave", "alice")

        routes = {tuple(p.node_ids) for p in result.paths}
        assert routes == {("dave", "bob", "alice"), ("dave", "carol", "alice")}
        assert_valid(result.paths, "dave", "alice")

    @pytest.mark.asyncio
    async def test_respects_max_hops(self, finder):
        result = await finder.find_paths("alice", "dave", max_hops=1)
        assert result.paths == []

        result = await finder.find_paths("alice", "bob", max_hops=1)
        assert [p.node_ids for p in result.paths] == [["alice", "bob"]]

    @pytest.mark.asyncio
    async def test_shortest_paths_first(self, finder):
        result = await finder.find_paths("alice", "bob")
        hops = [p.hops for p in result.paths]
        assert hops == sorted(hops)
        assert hops[0] == 1

    @pytest.mark.asyncio
    async def test_same_source_and_target(self, finder):
        result = await finder.find_paths("alice", "alice")
        assert result.paths == []
        assert result.search_metadata.nodes_explored == 0

    @pytest.mark.asyncio
    async def test_unknown_target(self, finder):
        result = await finder.find_paths("alice", "nobody")
        assert result.paths == []
        assert result.search_metadata.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_deleted_target(self, finder):
        result = await finder.find_paths("erin", "ghost")
        assert result.paths == []

    @pytest.mark.asyncio
    async def test_deleted_intermediary_skipped(self):
        provider = InMemoryDataProvider(
            people=[
                Person(id="a"),
                Person(id="x", deleted_at="2024-01-01T00:00:00"),
                Person(id="b"),
            ],
            edges=[
                Edge(id="ax", from_person_id="a", to_person_id="x"),
                Edge(id="xb", from_person_id="x", to_person_id="b"),
            ],
        )
        result = await PathFinder(GraphService(provider)).find_paths("a", "b")
        assert result.paths == []

    @pytest.mark.asyncio
    async def test_min_strength_filters_edges(self, finder):
        result = await finder.find_paths("alice", "dave", min_strength=0.75)
        assert [p.node_ids for p in result.paths] == [["alice", "bob", "dave"]]

    @pytest.mark.asyncio
    async def test_budget_stops_search(self, finder):
        result = await finder.find_paths("alice", "dave", exploration_budget=1)

        assert result.paths == []
        assert result.search_metadata.nodes_explored == 1
        assert result.search_metadata.edges_evaluated == 2

    @pytest.mark.asyncio
    async def test_telemetry(self, finder):
        result = await finder.find_paths("alice", "dave")
        metadata = result.search_metadata

        assert metadata.nodes_explored == 3
        assert metadata.edges_evaluated == 6
        assert metadata.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_invalid_limits(self, finder):
        with pytest.raises(ValueError, match="maxHops must be at least 1"):
            await finder.find_paths("alice", "dave", max_hops=0)
        with pytest.raises(ValueError, match="explorationBudget must be at least 1"):
            await finder.find_paths("alice", "dave", exploration_budget=0)

    @pytest.mark.asyncio
    async def test_batches_lookups_per_level(self, counting_provider):
        finder = PathFinder(GraphService(counting_provider))

        await finder.find_paths("alice", "dave")

        assert counting_provider.calls["get_outgoing_edges_for_many"] == 2
        assert counting_provider.calls["get_incoming_edges_for_many"] == 2
        assert counting_provider.calls["get_people"] == 2

    @pytest.mark.asyncio
    async def test_dense_graph_paths_are_simple(self):
        ids = ["a", "b", "c", "d", "e"]
        edges = [
            Edge(id=f"{x}{y}", from_person_id=x, to_person_id=y, strength=0.5)
            for x, y in itertools.combinations(ids, 2)
        ]
        provider = InMemoryDataProvider(people=[Person(id=i) for i in ids], edges=edges)

        result = await PathFinder(GraphService(provider), max_hops=4).find_paths("a", "e")

        # direct + 3 one-stop + 6 two-stop + 6 three-stop routes
        assert len(result.paths) == 16
        assert len({tuple(p.node_ids) for p in result.paths}) == 16
        assert_valid(result.paths, "a", "e")
