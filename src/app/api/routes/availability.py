"""Vehicle availability endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, status

from ...errors import DispatchError, InvalidRequest, StoreUnavailable
from ...models.domain import VehicleType
from ...schemas.dispatch import AvailabilityRow, InventoryChangeResponse, RestockRequest
from ...services.dispatch import service as dispatch_service
from ...services.outputs.formatter import availability_rows

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=List[AvailabilityRow], status_code=status.HTTP_200_OK)
def get_availability() -> List[AvailabilityRow]:
    coordinator = dispatch_service.get_coordinator()
    try:
        snapshot = coordinator.snapshot()
        records = coordinator.availability_records()
    except StoreUnavailable as exc:
        logging.error(f"Availability listing failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Availability data is temporarily unavailable.",
        ) from exc
    except DispatchError as exc:
        logging.exception(f"Availability listing failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Availability listing failed because of an internal data problem.",
        ) from exc
    return availability_rows(snapshot.locations, records)


@router.post("/restock", response_model=InventoryChangeResponse, status_code=status.HTTP_200_OK)
def restock(payload: RestockRequest) -> InventoryChangeResponse:
    try:
        count = dispatch_service.get_coordinator().restock(
            payload.zip_code,
            payload.vehicle_type,
            payload.amount,
            reason=payload.reason,
        )
    except InvalidRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        logging.error(f"Restock failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Inventory is temporarily unavailable.",
        ) from exc
    except DispatchError as exc:
        logging.exception(f"Restock failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Restock failed because of a routing data problem.",
        ) from exc
    return InventoryChangeResponse(
        zip_code=payload.zip_code.strip(),
        vehicle_type=VehicleType.parse(payload.vehicle_type).value,
        available_count=count,
    )
