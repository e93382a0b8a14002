"""Dispatch request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LocationModel(BaseModel):
    zip_code: str
    location_name: str


class DispatchRequest(BaseModel):
    """Accepts the browser client's camelCase keys as well as snake_case."""

    zip_code: Optional[str] = Field(default=None, validation_alias=AliasChoices("zip_code", "zipCode"))
    vehicle_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("vehicle_type", "vehicleType"),
        description="Ambulance, Fire Truck or Police.",
    )


class DispatchResponse(BaseModel):
    success: bool = True
    message: str
    from_requested: bool
    vehicle_type: str
    requested_location: LocationModel
    source_location: LocationModel
    path: List[LocationModel]
    distance: float
    correlation_id: str


class DispatchFailure(BaseModel):
    success: bool = False
    reason: str
    message: str
    correlation_id: Optional[str] = None


class ReleaseRequest(BaseModel):
    zip_code: str = Field(..., validation_alias=AliasChoices("zip_code", "zipCode"))
    vehicle_type: str = Field(..., validation_alias=AliasChoices("vehicle_type", "vehicleType"))
    reason: str = Field(..., min_length=1, description="Why the committed dispatch is being undone.")
    correlation_id: Optional[str] = Field(default=None, description="Correlation id of the original dispatch.")


class RestockRequest(BaseModel):
    zip_code: str = Field(..., validation_alias=AliasChoices("zip_code", "zipCode"))
    vehicle_type: str = Field(..., validation_alias=AliasChoices("vehicle_type", "vehicleType"))
    amount: int = Field(default=1, ge=1)
    reason: Optional[str] = None


class InventoryChangeResponse(BaseModel):
    zip_code: str
    vehicle_type: str
    available_count: int


class AvailabilityRow(BaseModel):
    """One location with a ``<vehicle>_count`` column per vehicle type."""

    model_config = ConfigDict(extra="allow")

    zip_code: str
    location_name: str


class DistanceRow(BaseModel):
    from_zip_code: str
    to_zip_code: str
    distance: float
    directed: bool = False


class ShortestPathResponse(BaseModel):
    source: str
    target: str
    reachable: bool
    path: List[LocationModel]
    distance: Optional[float] = None
