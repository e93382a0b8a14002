"""Nearest location holding an available vehicle of a requested type."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from ...models.domain import InventoryRecord, Location, VehicleType
from .graph import GraphSnapshot
from .shortest_path import dijkstra

logger = logging.getLogger(__name__)


class InventorySnapshot:
    """Point-in-time copy of available counts keyed by (location code, vehicle type)."""

    def __init__(self, counts: Mapping[tuple[str, VehicleType], int] | None = None) -> None:
        self._counts: dict[tuple[str, VehicleType], int] = dict(counts or {})

    @classmethod
    def from_records(cls, records: Iterable[InventoryRecord]) -> "InventorySnapshot":
        counts: dict[tuple[str, VehicleType], int] = {}
        for record in records:
            key = (record.location_code, record.vehicle_type)
            counts[key] = counts.get(key, 0) + max(0, int(record.available_count))
        return cls(counts)

    def available(self, location_code: str, vehicle_type: VehicleType) -> int:
        return self._counts.get((location_code, vehicle_type), 0)

    def has_available(self, location_code: str, vehicle_type: VehicleType) -> bool:
        return self.available(location_code, vehicle_type) > 0

    def without(self, location_code: str, vehicle_type: VehicleType) -> "InventorySnapshot":
        """Copy with one record zeroed, used after a decrement lost its race."""
        counts = dict(self._counts)
        counts[(location_code, vehicle_type)] = 0
        return InventorySnapshot(counts)

    def __len__(self) -> int:
        return len(self._counts)


@dataclass(slots=True)
class NearestResource:
    location: Location
    path: list[Location]
    total_distance: float

    @property
    def is_source(self) -> bool:
        return len(self.path) == 1


def find_nearest_available(
    graph: GraphSnapshot,
    inventory: InventorySnapshot,
    source: str,
    vehicle_type: VehicleType,
    *,
    include_source: bool = True,
) -> Optional[NearestResource]:
    """Expand outward from ``source`` and stop at the first location holding the vehicle.

    The availability check runs as each node is finalized, which happens in
    non-decreasing distance order, so the first hit is a nearest one. Returns
    None when no reachable location has the vehicle; that is a normal outcome,
    not an error.
    """
    origin = graph.location(source)
    if include_source and inventory.has_available(origin.code, vehicle_type):
        return NearestResource(location=origin, path=[origin], total_distance=0.0)

    def _holds_vehicle(location: Location) -> bool:
        if location.code == origin.code:
            return False
        return inventory.has_available(location.code, vehicle_type)

    tree = dijkstra(graph, origin.code, stop_when=_holds_vehicle)
    match = tree.match
    if match is None:
        logger.info(f"No {vehicle_type.value} reachable from {origin.code} ({len(tree.settled)} locations searched)")
        return None

    return NearestResource(
        location=match,
        path=tree.path_to(match.code),
        total_distance=tree.distance_to(match.code),
    )
