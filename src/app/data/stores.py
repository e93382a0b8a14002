"""Store contracts and thread-safe in-memory implementations."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Iterable, Optional, Protocol

from ..errors import UnknownLocation
from ..models.domain import Edge, InventoryRecord, Location, VehicleType
from ..services.routing.graph import GraphSnapshot

logger = logging.getLogger(__name__)


class GraphStore(Protocol):
    """Source of locations and the connections between them."""

    def list_locations(self) -> list[Location]:
        ...

    def list_edges(self) -> list[Edge]:
        ...

    def snapshot(self) -> GraphSnapshot:
        """Locations and edges read consistently and frozen into a snapshot."""
        ...


class InventoryStore(Protocol):
    """Available vehicle counts per (location, vehicle type)."""

    def get_availability(self, location_code: str, vehicle_type: VehicleType) -> int:
        ...

    def get_all_availability(self) -> list[InventoryRecord]:
        ...

    def decrement_if_available(self, location_code: str, vehicle_type: VehicleType) -> bool:
        """Atomically take one unit if the count is positive; False when nothing was taken."""
        ...

    def increment(self, location_code: str, vehicle_type: VehicleType, amount: int = 1) -> int:
        """Add ``amount`` units and return the new count."""
        ...


class InMemoryGraphStore:
    """Versioned graph held in process memory.

    Every administrative change bumps ``version``; snapshots are built under the
    store lock, so a search never sees a half-applied change.
    """

    def __init__(self, locations: Iterable[Location] = (), edges: Iterable[Edge] = ()) -> None:
        self._lock = threading.RLock()
        self._locations: dict[str, Location] = {}
        self._edges: list[Edge] = []
        self._version = 0
        self._snapshot: Optional[GraphSnapshot] = None
        for location in locations:
            self.add_location(location)
        for edge in edges:
            self.add_edge(edge)

    @property
    def version(self) -> int:
        return self._version

    def list_locations(self) -> list[Location]:
        with self._lock:
            return list(self._locations.values())

    def list_edges(self) -> list[Edge]:
        with self._lock:
            return list(self._edges)

    def snapshot(self) -> GraphSnapshot:
        with self._lock:
            if self._snapshot is None or self._snapshot.version != self._version:
                self._snapshot = GraphSnapshot.build(
                    self._locations.values(), self._edges, version=self._version
                )
            return self._snapshot

    def add_location(self, location: Location) -> None:
        with self._lock:
            self._locations[location.code] = location
            self._version += 1

    def remove_location(self, code: str) -> None:
        with self._lock:
            if code not in self._locations:
                raise UnknownLocation(code)
            del self._locations[code]
            self._edges = [edge for edge in self._edges if code not in (edge.source, edge.target)]
            self._version += 1

    def add_edge(self, edge: Edge) -> None:
        with self._lock:
            for code in (edge.source, edge.target):
                if code not in self._locations:
                    raise UnknownLocation(code)
            self._edges.append(edge)
            self._version += 1

    def remove_edge(self, source: str, target: str) -> int:
        """Drop every edge joining the two codes; returns how many were removed."""
        with self._lock:
            pair = {source, target}
            kept = [edge for edge in self._edges if {edge.source, edge.target} != pair]
            removed = len(self._edges) - len(kept)
            if removed:
                self._edges = kept
                self._version += 1
            return removed


class InMemoryInventoryStore:
    """Vehicle counts guarded by one lock per (location, vehicle type) record.

    Check-and-decrement holds the record lock for its whole duration, so
    concurrent dispatches on different records never wait on each other and
    dispatches on the same record cannot drive it below zero.
    """

    def __init__(self, records: Iterable[InventoryRecord] = ()) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[tuple[str, VehicleType], threading.Lock] = defaultdict(threading.Lock)
        self._counts: dict[tuple[str, VehicleType], int] = {}
        for record in records:
            if record.available_count < 0:
                raise ValueError(
                    f"Negative count {record.available_count} for {record.vehicle_type.value} at {record.location_code}."
                )
            key = (record.location_code, record.vehicle_type)
            self._counts[key] = self._counts.get(key, 0) + record.available_count

    def _lock_for(self, key: tuple[str, VehicleType]) -> threading.Lock:
        with self._registry_lock:
            return self._locks[key]

    def get_availability(self, location_code: str, vehicle_type: VehicleType) -> int:
        return self._counts.get((location_code, vehicle_type), 0)

    def get_all_availability(self) -> list[InventoryRecord]:
        with self._registry_lock:
            items = list(self._counts.items())
        return [
            InventoryRecord(location_code=code, vehicle_type=vehicle_type, available_count=count)
            for (code, vehicle_type), count in items
        ]

    def decrement_if_available(self, location_code: str, vehicle_type: VehicleType) -> bool:
        key = (location_code, vehicle_type)
        with self._lock_for(key):
            count = self._counts.get(key, 0)
            if count <= 0:
                return False
            with self._registry_lock:
                self._counts[key] = count - 1
            return True

    def increment(self, location_code: str, vehicle_type: VehicleType, amount: int = 1) -> int:
        if amount < 1:
            raise ValueError(f"Increment amount must be positive, got {amount}.")
        key = (location_code, vehicle_type)
        with self._lock_for(key):
            count = self._counts.get(key, 0) + amount
            with self._registry_lock:
                self._counts[key] = count
            return count
