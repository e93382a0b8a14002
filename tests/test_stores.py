import json
from pathlib import Path

import pytest

from src.app.data import repository
from src.app.data.repository import GraphSnapshotCache, _stores_from_seed
from src.app.data.seed import load_seed, parse_seed
from src.app.data.stores import InMemoryGraphStore, InMemoryInventoryStore
from src.app.errors import InvalidWeight, UnknownLocation
from src.app.models.domain import Edge, InventoryRecord, Location, VehicleType


def _store() -> InMemoryGraphStore:
    return InMemoryGraphStore(
        [Location("A", "Alpha"), Location("B", "Bravo"), Location("C", "Charlie")],
        [Edge("A", "B", 2), Edge("B", "C", 4)],
    )


def test_graph_store_reuses_snapshot_until_changed():
    store = _store()

    first = store.snapshot()
    assert store.snapshot() is first

    store.add_edge(Edge("A", "C", 1))
    second = store.snapshot()

    assert second is not first
    assert second.version == store.version
    assert len(first.edges()) == 2
    assert len(second.edges()) == 3


def test_remove_location_drops_incident_edges():
    store = _store()

    store.remove_location("B")

    assert [location.code for location in store.list_locations()] == ["A", "C"]
    assert store.list_edges() == []
    with pytest.raises(UnknownLocation):
        store.remove_location("B")


def test_add_edge_requires_known_endpoints():
    store = _store()

    with pytest.raises(UnknownLocation):
        store.add_edge(Edge("A", "Z", 1))


def test_remove_edge_matches_either_direction():
    store = _store()
    version = store.version

    assert store.remove_edge("B", "A") == 1
    assert store.version == version + 1
    assert store.remove_edge("A", "B") == 0


def test_snapshot_rejects_negative_weights():
    store = InMemoryGraphStore([Location("A", "A"), Location("B", "B")], [Edge("A", "B", -3)])

    with pytest.raises(InvalidWeight):
        store.snapshot()


def test_snapshot_cache_follows_store_version():
    store = _store()
    cache = GraphSnapshotCache(store, ttl_seconds=3600)

    first = cache.get()
    assert cache.get() is first

    store.add_location(Location("D", "Delta"))

    assert "D" in cache.get()


def test_snapshot_cache_uses_ttl_for_unversioned_stores():
    class Unversioned:
        version = None

        def __init__(self):
            self.reads = 0

        def snapshot(self):
            self.reads += 1
            return _store().snapshot()

    store = Unversioned()

    cached = GraphSnapshotCache(store, ttl_seconds=3600)
    cached.get()
    cached.get()
    assert store.reads == 1

    expiring = GraphSnapshotCache(store, ttl_seconds=0)
    expiring.get()
    expiring.get()
    assert store.reads == 3


def test_inventory_rejects_negative_counts():
    with pytest.raises(ValueError):
        InMemoryInventoryStore([InventoryRecord("A", VehicleType.POLICE, -1)])


def test_inventory_decrement_and_increment():
    inventory = InMemoryInventoryStore([InventoryRecord("A", VehicleType.POLICE, 1)])

    assert inventory.decrement_if_available("A", VehicleType.POLICE) is True
    assert inventory.decrement_if_available("A", VehicleType.POLICE) is False
    assert inventory.get_availability("A", VehicleType.POLICE) == 0
    assert inventory.increment("A", VehicleType.POLICE, 2) == 2
    assert inventory.decrement_if_available("B", VehicleType.AMBULANCE) is False
    with pytest.raises(ValueError):
        inventory.increment("A", VehicleType.POLICE, 0)


def test_get_availability_is_idempotent():
    inventory = InMemoryInventoryStore([InventoryRecord("A", VehicleType.AMBULANCE, 3)])

    assert inventory.get_availability("A", VehicleType.AMBULANCE) == 3
    assert inventory.get_availability("A", VehicleType.AMBULANCE) == 3


def test_parse_seed_accepts_column_names_and_aliases():
    seed = parse_seed(
        {
            "locations": [{"zip_code": "10001", "location_name": "Chelsea"}, {"code": "10002"}],
            "neighbors": [{"from": "10001", "to": "10002", "distance": "2.5"}],
            "vehicles": [{"zip_code": "10002", "vehicle_type": "fire truck", "available_count": 2}],
        }
    )

    assert seed.locations == [Location("10001", "Chelsea"), Location("10002", "10002")]
    assert seed.edges == [Edge("10001", "10002", 2.5)]
    assert seed.vehicles == [InventoryRecord("10002", VehicleType.FIRE_TRUCK, 2)]


def test_parse_seed_rejects_unknown_vehicle_type():
    with pytest.raises(ValueError):
        parse_seed({"vehicles": [{"zip_code": "1", "vehicle_type": "Hovercraft"}]})


def test_load_seed_reads_file(tmp_path: Path):
    path = tmp_path / "seed.json"
    path.write_text(
        json.dumps(
            {
                "locations": [{"zip_code": "1", "location_name": "One"}, {"zip_code": "2", "location_name": "Two"}],
                "neighbors": [{"zip_code": "1", "neighbor_zip_code": "2", "distance": 3}],
                "vehicles": [{"zip_code": "2", "vehicle_type": "Police", "available_count": 1}],
            }
        ),
        encoding="utf-8",
    )

    stores = _stores_from_seed(path)

    assert stores.backend == "memory"
    assert len(stores.graph.snapshot()) == 2
    assert stores.inventory.get_availability("2", VehicleType.POLICE) == 1
    assert len(load_seed(path).edges) == 1


def test_missing_seed_starts_empty(tmp_path: Path):
    stores = _stores_from_seed(tmp_path / "missing.json")

    assert stores.graph.list_locations() == []
    assert stores.inventory.get_all_availability() == []


def test_get_stores_falls_back_to_seed_without_database(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(repository, "get_supabase_client", lambda: None)
    monkeypatch.setattr(repository, "_stores_from_seed", lambda: _stores_from_seed(tmp_path / "none.json"))
    repository.get_stores.cache_clear()
    try:
        assert repository.get_stores().backend == "memory"
    finally:
        repository.get_stores.cache_clear()
