"""Dispatch endpoints."""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ...errors import DispatchCancelled, DispatchError, InvalidRequest, StoreUnavailable
from ...models.domain import VehicleType
from ...schemas.dispatch import (
    DispatchFailure,
    DispatchRequest,
    DispatchResponse,
    InventoryChangeResponse,
    ReleaseRequest,
)
from ...services.dispatch import service as dispatch_service
from ...services.outputs.formatter import dispatch_response, not_found_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dispatch", tags=["dispatch"])

DISCONNECT_POLL_SECONDS = 0.1


def _failure(status_code: int, reason: str, message: str, correlation_id: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=DispatchFailure(reason=reason, message=message, correlation_id=correlation_id).model_dump(),
    )


def _translate(exc: DispatchError, correlation_id: str) -> HTTPException:
    """Map core errors to HTTP failures without leaking store internals."""
    if isinstance(exc, InvalidRequest):
        return _failure(status.HTTP_400_BAD_REQUEST, exc.reason, str(exc), correlation_id)
    if isinstance(exc, DispatchCancelled):
        return _failure(status.HTTP_409_CONFLICT, exc.reason, str(exc), correlation_id)
    if isinstance(exc, StoreUnavailable):
        logger.error(f"[{correlation_id}] Store unavailable: {exc}")
        return _failure(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            exc.reason,
            "Dispatch service is temporarily unavailable. Please retry shortly.",
            correlation_id,
        )
    logger.exception(f"[{correlation_id}] Dispatch failed: {exc}")
    return _failure(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        exc.reason,
        "Dispatch failed because of an internal data problem.",
        correlation_id,
    )


async def _watch_disconnect(request: Request, cancelled: threading.Event, interval: float = DISCONNECT_POLL_SECONDS) -> None:
    """Set ``cancelled`` once the client goes away; the coordinator checks it before each decrement."""
    while not cancelled.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected before dispatch commit")
            cancelled.set()
            return
        await asyncio.sleep(interval)


@router.post(
    "",
    response_model=DispatchResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": DispatchFailure},
        404: {"model": DispatchFailure},
        409: {"model": DispatchFailure},
        503: {"model": DispatchFailure},
    },
)
async def dispatch_vehicle(payload: DispatchRequest, request: Request):
    correlation_id = uuid.uuid4().hex
    cancelled = threading.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancelled))
    try:
        outcome = await run_in_threadpool(
            dispatch_service.get_coordinator().dispatch,
            payload.zip_code,
            payload.vehicle_type,
            correlation_id=correlation_id,
            is_cancelled=cancelled.is_set,
        )
    except DispatchError as exc:
        raise _translate(exc, correlation_id) from exc
    finally:
        watcher.cancel()

    if outcome.result is None:
        failure = DispatchFailure(
            reason="not_found",
            message=not_found_message(outcome.vehicle_type),
            correlation_id=correlation_id,
        )
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=failure.model_dump())
    return dispatch_response(outcome.result)


@router.post("/release", response_model=InventoryChangeResponse, status_code=status.HTTP_200_OK)
def release_vehicle(payload: ReleaseRequest) -> InventoryChangeResponse:
    """Undo a committed dispatch by returning one vehicle to its location (audited)."""
    correlation_id = payload.correlation_id or uuid.uuid4().hex
    coordinator = dispatch_service.get_coordinator()
    try:
        count = coordinator.release(
            payload.zip_code,
            payload.vehicle_type,
            reason=payload.reason,
            correlation_id=correlation_id,
        )
    except DispatchError as exc:
        raise _translate(exc, correlation_id) from exc
    return InventoryChangeResponse(
        zip_code=payload.zip_code.strip(),
        vehicle_type=VehicleType.parse(payload.vehicle_type).value,
        available_count=count,
    )
