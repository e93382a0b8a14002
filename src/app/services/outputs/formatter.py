"""Shape routing-core results into API payloads."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from ...models.domain import DispatchResult, InventoryRecord, Location, VehicleType
from ...schemas.dispatch import (
    AvailabilityRow,
    DispatchResponse,
    DistanceRow,
    LocationModel,
    ShortestPathResponse,
)
from ..routing.graph import GraphSnapshot


def location_model(location: Location) -> LocationModel:
    return LocationModel(zip_code=location.code, location_name=location.name)


def dispatch_message(result: DispatchResult) -> str:
    source = result.source_location
    return f"{result.vehicle_type.value} dispatched from {source.name} ({source.code})"


def not_found_message(vehicle_type: VehicleType) -> str:
    return f"No {vehicle_type.value} available in any nearby location"


def dispatch_response(result: DispatchResult) -> DispatchResponse:
    return DispatchResponse(
        message=dispatch_message(result),
        from_requested=result.dispatched_from_local,
        vehicle_type=result.vehicle_type.value,
        requested_location=location_model(result.requested_location),
        source_location=location_model(result.source_location),
        path=[location_model(location) for location in result.path],
        distance=result.total_distance,
        correlation_id=result.correlation_id or "",
    )


def availability_rows(locations: Sequence[Location], records: Iterable[InventoryRecord]) -> list[AvailabilityRow]:
    """Pivot inventory into one row per location, zero-filling missing vehicle types."""
    counts: dict[tuple[str, VehicleType], int] = {}
    for record in records:
        key = (record.location_code, record.vehicle_type)
        counts[key] = counts.get(key, 0) + record.available_count

    rows: list[AvailabilityRow] = []
    for location in locations:
        columns = {f"{vehicle_type.slug}_count": counts.get((location.code, vehicle_type), 0) for vehicle_type in VehicleType}
        rows.append(AvailabilityRow(zip_code=location.code, location_name=location.name, **columns))
    return rows


def distance_rows(snapshot: GraphSnapshot) -> list[DistanceRow]:
    return [
        DistanceRow(from_zip_code=edge.source, to_zip_code=edge.target, distance=edge.distance, directed=edge.directed)
        for edge in snapshot.edges()
    ]


def shortest_path_response(source: str, target: str, path: Sequence[Location], distance: float) -> ShortestPathResponse:
    reachable = not math.isinf(distance)
    return ShortestPathResponse(
        source=source,
        target=target,
        reachable=reachable,
        path=[location_model(location) for location in path],
        distance=distance if reachable else None,
    )
