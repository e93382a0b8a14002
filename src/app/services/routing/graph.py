"""Immutable graph snapshot with index-based adjacency."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from ...errors import InvalidWeight, UnknownLocation
from ...models.domain import Edge, Location


def _validate_weight(edge: Edge) -> float:
    try:
        weight = float(edge.distance)
    except (TypeError, ValueError) as exc:
        raise InvalidWeight(edge.source, edge.target, edge.distance) from exc
    if math.isnan(weight) or weight < 0:
        raise InvalidWeight(edge.source, edge.target, weight)
    return weight


@dataclass(frozen=True)
class GraphSnapshot:
    """Read-only view of the service-area graph.

    Locations are stored in a tuple and referenced by position. ``adjacency[i]``
    lists ``(neighbor_index, weight)`` pairs in the order the edges were
    supplied, which is the order neighbors are discovered during a search.
    """

    locations: tuple[Location, ...]
    index: dict[str, int]
    adjacency: tuple[tuple[tuple[int, float], ...], ...]
    version: object = None

    @classmethod
    def build(
        cls,
        locations: Iterable[Location],
        edges: Iterable[Edge],
        *,
        version: object = None,
    ) -> "GraphSnapshot":
        ordered: list[Location] = []
        index: dict[str, int] = {}
        for location in locations:
            if location.code in index:
                continue
            index[location.code] = len(ordered)
            ordered.append(location)

        # Parallel edges collapse onto the first arc, keeping the smallest weight.
        arcs: list[dict[int, float]] = [dict() for _ in ordered]
        for edge in edges:
            weight = _validate_weight(edge)
            for code in (edge.source, edge.target):
                if code not in index:
                    raise UnknownLocation(code, f"Edge {edge.source} <-> {edge.target} references unknown location '{code}'.")
            u, v = index[edge.source], index[edge.target]
            pairs = [(u, v)] if edge.directed else [(u, v), (v, u)]
            for a, b in pairs:
                current = arcs[a].get(b)
                if current is None or weight < current:
                    arcs[a][b] = weight

        adjacency = tuple(tuple(neighbors.items()) for neighbors in arcs)
        return cls(locations=tuple(ordered), index=index, adjacency=adjacency, version=version)

    def __len__(self) -> int:
        return len(self.locations)

    def __contains__(self, code: object) -> bool:
        return code in self.index

    def index_of(self, code: str) -> int:
        try:
            return self.index[code]
        except KeyError:
            raise UnknownLocation(code) from None

    def location(self, code: str) -> Location:
        return self.locations[self.index_of(code)]

    def neighbors(self, code: str) -> list[tuple[Location, float]]:
        return [(self.locations[i], weight) for i, weight in self.adjacency[self.index_of(code)]]

    def edges(self) -> list[Edge]:
        """Return each connection once; undirected pairs are reported from the lower index."""
        result: list[Edge] = []
        for u, neighbors in enumerate(self.adjacency):
            for v, weight in neighbors:
                reverse = dict(self.adjacency[v]).get(u)
                if reverse == weight and v < u:
                    continue
                result.append(
                    Edge(
                        source=self.locations[u].code,
                        target=self.locations[v].code,
                        distance=weight,
                        directed=reverse != weight,
                    )
                )
        return result

    def locations_for(self, codes: Sequence[str]) -> list[Location]:
        return [self.location(code) for code in codes]
