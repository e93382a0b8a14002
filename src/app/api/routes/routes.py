"""Routing query endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...errors import DispatchError, StoreUnavailable, UnknownLocation
from ...schemas.dispatch import ShortestPathResponse
from ...services.dispatch import service as dispatch_service
from ...services.outputs.formatter import shortest_path_response
from ...services.routing.shortest_path import shortest_path

router = APIRouter(prefix="/routes", tags=["routes"])


@router.get("/shortest-path", response_model=ShortestPathResponse, status_code=status.HTTP_200_OK)
def get_shortest_path(
    source: str = Query(..., min_length=1, description="ZIP code to start from"),
    target: str = Query(..., min_length=1, description="ZIP code to reach"),
) -> ShortestPathResponse:
    try:
        snapshot = dispatch_service.get_coordinator().snapshot()
    except StoreUnavailable as exc:
        logging.error(f"Shortest path lookup failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Routing data is temporarily unavailable.",
        ) from exc
    except DispatchError as exc:
        logging.exception(f"Shortest path lookup failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Shortest path lookup failed because of a routing data problem.",
        ) from exc

    try:
        path, distance = shortest_path(snapshot, source.strip(), target.strip())
    except UnknownLocation as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return shortest_path_response(source.strip(), target.strip(), path, distance)
