"""End-to-end handling of a single dispatch request."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional, TypeVar

from ...config import settings
from ...data.repository import GraphSnapshotCache
from ...data.stores import GraphStore, InventoryStore
from ...errors import DispatchCancelled, InvalidRequest
from ...models.domain import DispatchResult, InventoryRecord, Location, VehicleType
from ...persistence.audit import AuditLog
from ..routing.graph import GraphSnapshot
from ..routing.resolver import InventorySnapshot, find_nearest_available
from .models import TRANSITIONS, DispatchOutcome, DispatchState
from .retry import call_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

CancelCheck = Callable[[], bool]


class DispatchCoordinator:
    """Runs the dispatch state machine against a graph and an inventory store.

    ``Received -> LocalCheck -> {LocalDispatch | RemoteSearch} -> {Committed | NotFound} -> Responded``

    Only this class retries store calls; the routing engine and resolver raise
    straight through. Inventory is only ever changed through the store's
    atomic ``decrement_if_available`` and ``increment`` primitives.
    """

    def __init__(
        self,
        graph: GraphStore | GraphSnapshotCache,
        inventory: InventoryStore,
        *,
        audit: AuditLog | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.graph = graph if isinstance(graph, GraphSnapshotCache) else GraphSnapshotCache(graph)
        self.inventory = inventory
        self.audit = audit
        self.max_retries = settings.store_max_retries if max_retries is None else max_retries
        self.backoff_seconds = settings.store_backoff_seconds if backoff_seconds is None else backoff_seconds
        self._sleep = sleep

    def _retry(self, description: str, operation: Callable[[], T]) -> T:
        return call_with_retry(
            operation,
            description=description,
            max_retries=self.max_retries,
            backoff_seconds=self.backoff_seconds,
            sleep=self._sleep,
        )

    def _audit(self, event: str, **fields) -> None:
        if self.audit is not None:
            self.audit.record(event, **fields)

    # Read side -----------------------------------------------------------------

    def snapshot(self) -> GraphSnapshot:
        return self._retry("graph snapshot", self.graph.get)

    def availability_records(self) -> list[InventoryRecord]:
        return self._retry("availability listing", self.inventory.get_all_availability)

    def validate(self, zip_code: Optional[str], vehicle_type: Optional[str | VehicleType]) -> tuple[GraphSnapshot, Location, VehicleType]:
        """Resolve request fields, raising InvalidRequest before any inventory call."""
        if not zip_code or not str(zip_code).strip() or not vehicle_type:
            raise InvalidRequest("ZIP code and vehicle type are required")
        try:
            parsed_type = VehicleType.parse(vehicle_type)
        except ValueError as exc:
            raise InvalidRequest(str(exc)) from exc
        code = str(zip_code).strip()
        snapshot = self.snapshot()
        if code not in snapshot:
            raise InvalidRequest(f"Unknown ZIP code '{code}'.")
        return snapshot, snapshot.location(code), parsed_type

    def availability(self, zip_code: str, vehicle_type: str | VehicleType) -> int:
        _, location, parsed_type = self.validate(zip_code, vehicle_type)
        return self._retry(
            "availability query",
            lambda: self.inventory.get_availability(location.code, parsed_type),
        )

    # Dispatch ------------------------------------------------------------------

    def dispatch(
        self,
        zip_code: Optional[str],
        vehicle_type: Optional[str | VehicleType],
        *,
        correlation_id: str | None = None,
        is_cancelled: CancelCheck | None = None,
    ) -> DispatchOutcome:
        correlation_id = correlation_id or uuid.uuid4().hex
        snapshot, origin, parsed_type = self.validate(zip_code, vehicle_type)

        outcome = DispatchOutcome(
            correlation_id=correlation_id,
            vehicle_type=parsed_type,
            requested_location=origin,
            result=None,
            history=[DispatchState.RECEIVED],
        )

        self._advance(outcome, DispatchState.LOCAL_CHECK)
        local_count = self._retry(
            "availability query",
            lambda: self.inventory.get_availability(origin.code, parsed_type),
        )

        if local_count > 0:
            self._advance(outcome, DispatchState.LOCAL_DISPATCH)
            if self._take(origin, parsed_type, is_cancelled):
                result = DispatchResult(
                    vehicle_type=parsed_type,
                    requested_location=origin,
                    source_location=origin,
                    path=[origin],
                    total_distance=0.0,
                    dispatched_from_local=True,
                    correlation_id=correlation_id,
                )
                return self._commit(outcome, result)
            logger.info(f"[{correlation_id}] Local {parsed_type.value} at {origin.code} taken concurrently; searching neighbors")

        self._advance(outcome, DispatchState.REMOTE_SEARCH)
        result = self._remote_search(snapshot, origin, parsed_type, outcome, is_cancelled)
        if result is not None:
            return self._commit(outcome, result)

        self._advance(outcome, DispatchState.NOT_FOUND)
        self._advance(outcome, DispatchState.RESPONDED)
        logger.info(f"[{correlation_id}] No {parsed_type.value} available for {origin.code}")
        return outcome

    def _remote_search(
        self,
        snapshot: GraphSnapshot,
        origin: Location,
        vehicle_type: VehicleType,
        outcome: DispatchOutcome,
        is_cancelled: CancelCheck | None,
    ) -> Optional[DispatchResult]:
        # Each lost race removes one location from the candidates, so the loop
        # ends after at most one attempt per location.
        lost: set[str] = set()
        while True:
            outcome.search_attempts += 1
            inventory = InventorySnapshot.from_records(self.availability_records())
            for code in lost:
                inventory = inventory.without(code, vehicle_type)

            nearest = find_nearest_available(snapshot, inventory, origin.code, vehicle_type, include_source=False)
            if nearest is None:
                return None

            if self._take(nearest.location, vehicle_type, is_cancelled):
                return DispatchResult(
                    vehicle_type=vehicle_type,
                    requested_location=origin,
                    source_location=nearest.location,
                    path=nearest.path,
                    total_distance=nearest.total_distance,
                    dispatched_from_local=False,
                    correlation_id=outcome.correlation_id,
                    metadata={"search_attempts": outcome.search_attempts},
                )

            lost.add(nearest.location.code)
            logger.info(
                f"[{outcome.correlation_id}] {vehicle_type.value} at {nearest.location.code} taken concurrently "
                f"(attempt {outcome.search_attempts}); searching again"
            )

    def _take(self, location: Location, vehicle_type: VehicleType, is_cancelled: CancelCheck | None) -> bool:
        if is_cancelled is not None and is_cancelled():
            raise DispatchCancelled(f"Dispatch of {vehicle_type.value} cancelled before commit.")
        return self._retry(
            "inventory decrement",
            lambda: self.inventory.decrement_if_available(location.code, vehicle_type),
        )

    def _advance(self, outcome: DispatchOutcome, state: DispatchState) -> None:
        current = outcome.state
        if state not in TRANSITIONS[current]:
            raise RuntimeError(f"Illegal dispatch transition {current.value} -> {state.value}")
        outcome.history.append(state)
        logger.debug(f"[{outcome.correlation_id}] {current.value} -> {state.value}")

    def _commit(self, outcome: DispatchOutcome, result: DispatchResult) -> DispatchOutcome:
        self._advance(outcome, DispatchState.COMMITTED)
        outcome.result = result
        self._audit(
            "dispatch_committed",
            correlation_id=outcome.correlation_id,
            vehicle_type=result.vehicle_type.value,
            requested_zip_code=result.requested_location.code,
            source_zip_code=result.source_location.code,
            path=[location.code for location in result.path],
            total_distance=result.total_distance,
            from_requested=result.dispatched_from_local,
        )
        logger.info(
            f"[{outcome.correlation_id}] {result.vehicle_type.value} dispatched from {result.source_location.code} "
            f"to {result.requested_location.code} (distance {result.total_distance:g})"
        )
        self._advance(outcome, DispatchState.RESPONDED)
        return outcome

    # Compensation and restock ------------------------------------------------------

    def release(
        self,
        zip_code: str,
        vehicle_type: str | VehicleType,
        *,
        reason: str,
        correlation_id: str | None = None,
    ) -> int:
        """Return one vehicle to ``zip_code``; the explicit undo for a committed dispatch."""
        if not reason or not reason.strip():
            raise InvalidRequest("A reason is required to release a dispatched vehicle.")
        _, location, parsed_type = self.validate(zip_code, vehicle_type)
        count = self._retry(
            "inventory increment",
            lambda: self.inventory.increment(location.code, parsed_type, 1),
        )
        self._audit(
            "dispatch_released",
            correlation_id=correlation_id,
            vehicle_type=parsed_type.value,
            zip_code=location.code,
            reason=reason.strip(),
            available_count=count,
        )
        logger.info(f"[{correlation_id}] Released {parsed_type.value} back to {location.code}: {reason.strip()}")
        return count

    def restock(self, zip_code: str, vehicle_type: str | VehicleType, amount: int = 1, *, reason: str | None = None) -> int:
        if amount < 1:
            raise InvalidRequest(f"Restock amount must be positive, got {amount}.")
        _, location, parsed_type = self.validate(zip_code, vehicle_type)
        count = self._retry(
            "inventory increment",
            lambda: self.inventory.increment(location.code, parsed_type, amount),
        )
        self._audit(
            "restocked",
            vehicle_type=parsed_type.value,
            zip_code=location.code,
            amount=amount,
            reason=reason,
            available_count=count,
        )
        return count
