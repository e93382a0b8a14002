"""Domain models for locations, connections and vehicle inventory."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class VehicleType(str, Enum):
    """Dispatchable emergency resource categories.

    The routing core treats the value as an opaque inventory key, so adding a
    member here is all a new category needs.
    """

    AMBULANCE = "Ambulance"
    FIRE_TRUCK = "Fire Truck"
    POLICE = "Police"

    @classmethod
    def parse(cls, value: "str | VehicleType") -> "VehicleType":
        """Resolve a display name, member name or slug ("fire_truck") to a member."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        normalized = text.lower().replace("_", " ").replace("-", " ")
        for member in cls:
            if normalized in {member.value.lower(), member.name.lower().replace("_", " ")}:
                return member
        raise ValueError(f"Unrecognized vehicle type '{text}'.")

    @property
    def slug(self) -> str:
        return self.name.lower()


@dataclass(slots=True, frozen=True)
class Location:
    """A service area identified by a unique code such as a ZIP code."""

    code: str
    name: str


@dataclass(slots=True, frozen=True)
class Edge:
    """Weighted connection between two locations.

    Edges are traversable in both directions unless ``directed`` is set.
    """

    source: str
    target: str
    distance: float
    directed: bool = False


@dataclass(slots=True, frozen=True)
class InventoryRecord:
    location_code: str
    vehicle_type: VehicleType
    available_count: int


@dataclass(slots=True)
class DispatchResult:
    """Outcome of a committed dispatch."""

    vehicle_type: VehicleType
    requested_location: Location
    source_location: Location
    path: list[Location]
    total_distance: float
    dispatched_from_local: bool
    correlation_id: Optional[str] = None
    metadata: dict = field(default_factory=dict)
