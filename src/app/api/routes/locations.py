"""Location and distance listing endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, status

from ...errors import DispatchError, StoreUnavailable
from ...schemas.dispatch import DistanceRow, LocationModel
from ...services.dispatch import service as dispatch_service
from ...services.outputs.formatter import distance_rows, location_model

router = APIRouter(tags=["locations"])


def _load_snapshot():
    try:
        return dispatch_service.get_coordinator().snapshot()
    except StoreUnavailable as exc:
        logging.error(f"Graph store unavailable: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Location data is temporarily unavailable.",
        ) from exc
    except DispatchError as exc:
        logging.exception(f"Graph data failed validation: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Location data failed validation.",
        ) from exc


@router.get("/zipcodes", response_model=List[LocationModel], status_code=status.HTTP_200_OK)
def list_zipcodes() -> List[LocationModel]:
    return [location_model(location) for location in _load_snapshot().locations]


@router.get("/distances", response_model=List[DistanceRow], status_code=status.HTTP_200_OK)
def list_distances() -> List[DistanceRow]:
    return distance_rows(_load_snapshot())
