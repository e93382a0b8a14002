import itertools
import math
import random

import pytest

from src.app.errors import UnknownLocation
from src.app.models.domain import Edge, InventoryRecord, Location, VehicleType
from src.app.services.routing.graph import GraphSnapshot
from src.app.services.routing.resolver import InventorySnapshot, find_nearest_available
from src.app.services.routing.shortest_path import dijkstra


def _graph(codes, edges) -> GraphSnapshot:
    return GraphSnapshot.build(
        [Location(code=code, name=f"Area {code}") for code in codes],
        [Edge(source=a, target=b, distance=w) for a, b, w in edges],
    )


def _inventory(*rows) -> InventorySnapshot:
    return InventorySnapshot.from_records(
        InventoryRecord(location_code=code, vehicle_type=vehicle_type, available_count=count)
        for code, vehicle_type, count in rows
    )


@pytest.fixture
def triangle() -> GraphSnapshot:
    return _graph("ABCD", [("A", "B", 5), ("B", "C", 3), ("A", "C", 10)])


def test_finds_nearest_location_through_shortest_path(triangle):
    inventory = _inventory(("C", VehicleType.AMBULANCE, 1))

    nearest = find_nearest_available(triangle, inventory, "A", VehicleType.AMBULANCE)

    assert nearest.location.code == "C"
    assert [location.code for location in nearest.path] == ["A", "B", "C"]
    assert nearest.total_distance == 8
    assert not nearest.is_source


def test_source_with_vehicle_short_circuits(triangle):
    inventory = _inventory(("A", VehicleType.FIRE_TRUCK, 2), ("B", VehicleType.FIRE_TRUCK, 1))

    nearest = find_nearest_available(triangle, inventory, "A", VehicleType.FIRE_TRUCK)

    assert nearest.location.code == "A"
    assert [location.code for location in nearest.path] == ["A"]
    assert nearest.total_distance == 0
    assert nearest.is_source


def test_source_can_be_excluded(triangle):
    inventory = _inventory(("A", VehicleType.FIRE_TRUCK, 2), ("B", VehicleType.FIRE_TRUCK, 1))

    nearest = find_nearest_available(triangle, inventory, "A", VehicleType.FIRE_TRUCK, include_source=False)

    assert nearest.location.code == "B"
    assert nearest.total_distance == 5


def test_other_vehicle_types_are_ignored(triangle):
    inventory = _inventory(("B", VehicleType.POLICE, 4), ("C", VehicleType.AMBULANCE, 1))

    nearest = find_nearest_available(triangle, inventory, "A", VehicleType.AMBULANCE)

    assert nearest.location.code == "C"


def test_returns_none_when_no_vehicle_anywhere(triangle):
    inventory = _inventory(("C", VehicleType.AMBULANCE, 1))

    assert find_nearest_available(triangle, inventory, "A", VehicleType.POLICE) is None


def test_zero_counts_do_not_match(triangle):
    inventory = _inventory(("B", VehicleType.POLICE, 0))

    assert find_nearest_available(triangle, inventory, "A", VehicleType.POLICE) is None


def test_unreachable_vehicle_is_not_found(triangle):
    inventory = _inventory(("D", VehicleType.AMBULANCE, 3))

    assert find_nearest_available(triangle, inventory, "A", VehicleType.AMBULANCE) is None


def test_unknown_source_propagates(triangle):
    with pytest.raises(UnknownLocation):
        find_nearest_available(triangle, _inventory(), "Z", VehicleType.AMBULANCE)


def test_inventory_snapshot_without_zeroes_one_record():
    inventory = _inventory(("A", VehicleType.POLICE, 2), ("B", VehicleType.POLICE, 1))

    reduced = inventory.without("A", VehicleType.POLICE)

    assert reduced.available("A", VehicleType.POLICE) == 0
    assert reduced.available("B", VehicleType.POLICE) == 1
    assert inventory.available("A", VehicleType.POLICE) == 2


@pytest.mark.parametrize("seed", range(20))
def test_match_is_no_farther_than_any_other_match(seed):
    rng = random.Random(seed)
    codes = [f"Z{i}" for i in range(8)]
    edges = [
        (codes[a], codes[b], rng.randint(1, 15))
        for a, b in itertools.combinations(range(len(codes)), 2)
        if rng.random() < 0.35
    ]
    graph = _graph(codes, edges)
    holders = rng.sample(codes[1:], 3)
    inventory = _inventory(*[(code, VehicleType.AMBULANCE, 1) for code in holders])

    nearest = find_nearest_available(graph, inventory, codes[0], VehicleType.AMBULANCE)
    full = dijkstra(graph, codes[0])

    reachable = [code for code in holders if not math.isinf(full.distance_to(code))]
    if not reachable:
        assert nearest is None
        return
    assert nearest.location.code in holders
    assert all(nearest.total_distance <= full.distance_to(code) for code in reachable)
    assert nearest.total_distance == full.distance_to(nearest.location.code)
