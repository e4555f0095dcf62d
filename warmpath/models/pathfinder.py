"""
Path Finder

Breadth-first discovery of all simple paths between two people, bounded
by hop count and an exploration budget.
"""

import logging
import time
from typing import TYPE_CHECKING, NamedTuple, Optional

from pydantic import BaseModel, Field

from warmpath.models.entities import Edge, Path, Person, SearchMetadata
from warmpath.models.path_scoring import DEFAULT_EDGE_SCORE

if TYPE_CHECKING:
    from warmpath.graph.service import GraphService

logger = logging.getLogger(__name__)

MAX_HOPS = 3
EXPLORATION_BUDGET = 10_000


class PathSearchResult(BaseModel):
    """Candidate paths with search telemetry."""
    paths: list[Path] = Field(default_factory=list)
    search_metadata: SearchMetadata = Field(default_factory=SearchMetadata)


class _PartialPath(NamedTuple):
    node_ids: tuple[str, ...]
    edges: tuple[Edge, ...]

    @property
    def tail(self) -> str:
        return self.node_ids[-1]


class PathFinder:
    """Finds every simple path from a source to a target person.

    The search expands one hop level at a time. Each level loads the
    adjacency of all new frontier nodes with a single batched lookup and
    their neighbors with a single batched person lookup. Each expansion
    of a partial path counts against the exploration budget.
    """

    def __init__(
        self,
        graph: "GraphService",
        max_hops: int = MAX_HOPS,
        exploration_budget: int = EXPLORATION_BUDGET,
    ):
        """Initialize path finder.

        Args:
            graph: Bidirectional graph service
            max_hops: Default maximum number of hops per path
            exploration_budget: Default maximum number of node expansions
        """
        self.graph = graph
        self.max_hops = max_hops
        self.exploration_budget = exploration_budget

    async def find_paths(
        self,
        source_id: str,
        target_id: str,
        max_hops: Optional[int] = None,
        exploration_budget: Optional[int] = None,
        min_strength: float = 0.0,
    ) -> PathSearchResult:
        """Find all simple paths from source to target.

        Args:
            source_id: Person the path starts at
            target_id: Person the path ends at
            max_hops: Maximum edges per path (default: finder setting)
            exploration_budget: Maximum node expansions (default: finder setting)
            min_strength: Skip edges weaker than this

        Returns:
            PathSearchResult with paths in discovery order (shortest first)

        Raises:
            ValueError: If max_hops or exploration_budget is below 1
        """
        max_hops = self.max_hops if max_hops is None else max_hops
        budget = self.exploration_budget if exploration_budget is None else exploration_budget
        if max_hops < 1:
            raise ValueError("maxHops must be at least 1")
        if budget < 1:
            raise ValueError("explorationBudget must be at least 1")

        started = time.perf_counter()
        metadata = SearchMetadata()
        paths: list[Path] = []

        def finish() -> PathSearchResult:
            metadata.duration_ms = (time.perf_counter() - started) * 1000
            logger.debug(
                f"Path search {source_id} -> {target_id}: {len(paths)} paths, "
                f"{metadata.nodes_explored} nodes explored, "
                f"{metadata.edges_evaluated} edges evaluated"
            )
            return PathSearchResult(paths=paths, search_metadata=metadata)

        if source_id == target_id:
            return finish()

        people: dict[str, Optional[Person]] = dict(
            await self.graph.get_people([source_id, target_id])
        )
        if source_id not in people or target_id not in people:
            logger.info(f"Source or target not found: {source_id} -> {target_id}")
            return finish()

        adjacency: dict[str, list[Edge]] = {}
        frontier = [_PartialPath((source_id,), ())]

        for depth in range(max_hops):
            if not frontier:
                break

            missing = list(dict.fromkeys(p.tail for p in frontier if p.tail not in adjacency))
            if missing:
                adjacency.update(await self.graph.get_outgoing_edges_for_many(missing))

            unknown = {
                edge.to_person_id
                for partial in frontier
                for edge in adjacency.get(partial.tail, [])
                if edge.to_person_id not in people
            }
            if unknown:
                found = await self.graph.get_people(list(unknown))
                for person_id in unknown:
                    people[person_id] = found.get(person_id)

            next_frontier: list[_PartialPath] = []
            last_level = depth + 1 >= max_hops

            for partial in frontier:
                if metadata.nodes_explored >= budget:
                    logger.info(
                        f"Exploration budget of {budget} reached at depth {depth}"
                    )
                    return finish()
                metadata.nodes_explored += 1

                for edge in adjacency.get(partial.tail, []):
                    metadata.edges_evaluated += 1
                    neighbor = edge.to_person_id

                    if neighbor in partial.node_ids:
                        continue
                    if min_strength > 0 and _strength(edge) < min_strength:
                        continue
                    person = people.get(neighbor)
                    if person is None or person.is_deleted:
                        continue

                    extended = _PartialPath(
                        partial.node_ids + (neighbor,),
                        partial.edges + (edge,),
                    )

                    if neighbor == target_id:
                        paths.append(Path(
                            node_ids=list(extended.node_ids),
                            edges=list(extended.edges),
                        ))
                    elif not last_level:
                        next_frontier.append(extended)

            frontier = next_frontier

        return finish()


def _strength(edge: Edge) -> float:
    return DEFAULT_EDGE_SCORE if edge.strength is None else edge.strength
