"""Process-wide dispatch coordinator wiring."""

from __future__ import annotations

import functools

from ...data.repository import GraphSnapshotCache, get_stores
from ...persistence.audit import AuditLog
from .coordinator import DispatchCoordinator


@functools.lru_cache(maxsize=1)
def get_coordinator() -> DispatchCoordinator:
    stores = get_stores()
    return DispatchCoordinator(
        GraphSnapshotCache(stores.graph),
        stores.inventory,
        audit=AuditLog(),
    )
