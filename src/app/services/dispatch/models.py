"""Dispatch request lifecycle models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ...models.domain import DispatchResult, Location, VehicleType


class DispatchState(str, Enum):
    RECEIVED = "received"
    LOCAL_CHECK = "local_check"
    LOCAL_DISPATCH = "local_dispatch"
    REMOTE_SEARCH = "remote_search"
    COMMITTED = "committed"
    NOT_FOUND = "not_found"
    RESPONDED = "responded"


# Allowed successor states; anything else is a programming error.
TRANSITIONS: dict[DispatchState, frozenset[DispatchState]] = {
    DispatchState.RECEIVED: frozenset({DispatchState.LOCAL_CHECK}),
    DispatchState.LOCAL_CHECK: frozenset({DispatchState.LOCAL_DISPATCH, DispatchState.REMOTE_SEARCH}),
    DispatchState.LOCAL_DISPATCH: frozenset({DispatchState.COMMITTED, DispatchState.REMOTE_SEARCH}),
    DispatchState.REMOTE_SEARCH: frozenset({DispatchState.COMMITTED, DispatchState.NOT_FOUND}),
    DispatchState.COMMITTED: frozenset({DispatchState.RESPONDED}),
    DispatchState.NOT_FOUND: frozenset({DispatchState.RESPONDED}),
    DispatchState.RESPONDED: frozenset(),
}


@dataclass(slots=True)
class DispatchOutcome:
    """What the caller receives once a request reaches ``Responded``."""

    correlation_id: str
    vehicle_type: VehicleType
    requested_location: Location
    result: Optional[DispatchResult]
    history: List[DispatchState] = field(default_factory=list)
    search_attempts: int = 0

    @property
    def success(self) -> bool:
        return self.result is not None

    @property
    def state(self) -> DispatchState:
        return self.history[-1] if self.history else DispatchState.RECEIVED
