"""Load locations, neighbors and vehicle counts from a JSON seed file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import settings
from ..models.domain import Edge, InventoryRecord, Location, VehicleType


@dataclass(slots=True)
class SeedData:
    locations: list[Location]
    edges: list[Edge]
    vehicles: list[InventoryRecord]


def _require(row: dict, *names: str) -> Any:
    for name in names:
        if name in row and row[name] not in (None, ""):
            return row[name]
    raise ValueError(f"Seed row {row!r} is missing '{names[0]}'.")


def parse_seed(payload: dict) -> SeedData:
    """Convert a decoded seed document into domain objects.

    Keys follow the database column names (``zip_code``, ``location_name``,
    ``neighbor_zip_code``...) with short aliases accepted for hand-written files.
    """
    locations = [
        Location(
            code=str(_require(row, "zip_code", "code")).strip(),
            name=str(row.get("location_name") or row.get("name") or _require(row, "zip_code", "code")).strip(),
        )
        for row in payload.get("locations", [])
    ]
    edges = [
        Edge(
            source=str(_require(row, "zip_code", "from")).strip(),
            target=str(_require(row, "neighbor_zip_code", "to")).strip(),
            distance=float(_require(row, "distance")),
            directed=bool(row.get("directed", False)),
        )
        for row in payload.get("neighbors", payload.get("edges", []))
    ]
    vehicles = [
        InventoryRecord(
            location_code=str(_require(row, "zip_code", "code")).strip(),
            vehicle_type=VehicleType.parse(_require(row, "vehicle_type", "type")),
            available_count=int(row.get("available_count", 0)),
        )
        for row in payload.get("vehicles", [])
    ]
    return SeedData(locations=locations, edges=edges, vehicles=vehicles)


def load_seed(source: Path | None = None) -> SeedData:
    seed_path = source or settings.seed_file
    if not seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_path}")
    with seed_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Seed file '{seed_path}' must contain a JSON object.")
    return parse_seed(payload)
