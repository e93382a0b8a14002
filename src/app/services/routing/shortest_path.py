"""Single-source shortest paths over a graph snapshot (Dijkstra).

Tie-breaking is deterministic and follows discovery order:

* when two frontier nodes have the same tentative distance, the one that was
  pushed onto the frontier first is finalized first;
* when two paths to a node have the same length, the first one relaxed keeps
  the predecessor slot (relaxation only replaces on a strictly shorter path).

Neighbors are relaxed in the order their edges were supplied to the snapshot,
so for a fixed store ordering the result is reproducible run to run.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ...errors import InvalidWeight, UnknownLocation
from ...models.domain import Location
from .graph import GraphSnapshot
from .priority_queue import MinPriorityQueue

logger = logging.getLogger(__name__)

StopPredicate = Callable[[Location], bool]


@dataclass(slots=True)
class ShortestPathTree:
    """Distances and predecessors produced by one search.

    When the search stopped early only nodes listed in ``settled`` carry final
    distances; other reachable nodes hold tentative values.
    """

    graph: GraphSnapshot
    source: int
    distances: list[float]
    predecessors: list[Optional[int]]
    settled: list[int] = field(default_factory=list)
    stopped_at: Optional[int] = None

    @property
    def source_location(self) -> Location:
        return self.graph.locations[self.source]

    @property
    def match(self) -> Optional[Location]:
        """Node that satisfied the stopping predicate, if any."""
        if self.stopped_at is None:
            return None
        return self.graph.locations[self.stopped_at]

    def distance_to(self, code: str) -> float:
        return self.distances[self.graph.index_of(code)]

    def is_reachable(self, code: str) -> bool:
        return not math.isinf(self.distance_to(code))

    def path_to(self, code: str) -> list[Location]:
        """Ordered locations from the source to ``code`` inclusive; empty when unreachable."""
        target = self.graph.index_of(code)
        if math.isinf(self.distances[target]):
            return []
        chain: list[int] = []
        current: Optional[int] = target
        while current is not None:
            chain.append(current)
            current = self.predecessors[current]
        chain.reverse()
        return [self.graph.locations[i] for i in chain]

    def as_mapping(self) -> dict[str, float]:
        return {location.code: self.distances[i] for i, location in enumerate(self.graph.locations)}


def dijkstra(
    graph: GraphSnapshot,
    source: str,
    *,
    stop_when: Optional[StopPredicate] = None,
) -> ShortestPathTree:
    """Run Dijkstra from ``source``.

    ``stop_when`` is evaluated on each node as it is finalized, in
    non-decreasing distance order; the search ends at the first node for which
    it returns True, so that node is a nearest match.
    """
    if not len(graph):
        raise UnknownLocation(source, "Cannot search an empty graph.")
    start = graph.index_of(source)

    size = len(graph)
    distances = [math.inf] * size
    predecessors: list[Optional[int]] = [None] * size
    visited = [False] * size
    tree = ShortestPathTree(graph=graph, source=start, distances=distances, predecessors=predecessors)

    distances[start] = 0.0
    frontier: MinPriorityQueue[int] = MinPriorityQueue()
    frontier.push(start, 0.0)

    while frontier:
        current, distance = frontier.pop()
        if visited[current] or distance > distances[current]:
            continue  # stale entry
        visited[current] = True
        tree.settled.append(current)

        if stop_when is not None and stop_when(graph.locations[current]):
            tree.stopped_at = current
            break

        for neighbor, weight in graph.adjacency[current]:
            if weight < 0 or math.isnan(weight):
                raise InvalidWeight(graph.locations[current].code, graph.locations[neighbor].code, weight)
            if visited[neighbor]:
                continue
            candidate = distance + weight
            if candidate < distances[neighbor]:
                distances[neighbor] = candidate
                predecessors[neighbor] = current
                frontier.push(neighbor, candidate)

    logger.debug(
        f"Dijkstra from {source}: settled {len(tree.settled)}/{size} nodes"
        + (f", stopped at {graph.locations[tree.stopped_at].code}" if tree.stopped_at is not None else "")
    )
    return tree


def shortest_paths_to(graph: GraphSnapshot, source: str, targets: Iterable[str]) -> ShortestPathTree:
    """Search from ``source`` until every target is settled or the graph is exhausted."""
    remaining = set(targets)
    for code in remaining:
        graph.index_of(code)
    if not remaining:
        return dijkstra(graph, source)

    def _all_targets_settled(location: Location) -> bool:
        remaining.discard(location.code)
        return not remaining

    return dijkstra(graph, source, stop_when=_all_targets_settled)


def shortest_path(graph: GraphSnapshot, source: str, target: str) -> tuple[list[Location], float]:
    """Return ``(path, distance)`` between two locations; ``([], inf)`` when unreachable."""
    tree = shortest_paths_to(graph, source, [target])
    return tree.path_to(target), tree.distance_to(target)
