"""Store selection with a database-first approach, falling back to the JSON seed file."""

from __future__ import annotations

import functools
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import settings
from ..db.supabase import get_supabase_client
from ..services.routing.graph import GraphSnapshot
from .seed import load_seed
from .stores import GraphStore, InMemoryGraphStore, InMemoryInventoryStore, InventoryStore

logger = logging.getLogger(__name__)


class GraphSnapshotCache:
    """Hands out graph snapshots, rebuilding only when the graph may have changed.

    Versioned stores are rebuilt when their ``version`` moves; stores without a
    version (the database) are re-read once ``ttl_seconds`` have elapsed.
    """

    def __init__(self, store: GraphStore, ttl_seconds: float | None = None) -> None:
        self.store = store
        self.ttl_seconds = settings.graph_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._lock = threading.Lock()
        self._snapshot: Optional[GraphSnapshot] = None
        self._loaded_at = 0.0

    def _is_fresh(self) -> bool:
        if self._snapshot is None:
            return False
        version = getattr(self.store, "version", None)
        if version is not None:
            return self._snapshot.version == version
        return time.monotonic() - self._loaded_at < self.ttl_seconds

    def get(self) -> GraphSnapshot:
        with self._lock:
            if not self._is_fresh():
                self._snapshot = self.store.snapshot()
                self._loaded_at = time.monotonic()
                logger.debug(f"Loaded graph snapshot with {len(self._snapshot)} locations")
            return self._snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None


@dataclass(slots=True)
class Stores:
    graph: GraphStore
    inventory: InventoryStore
    backend: str


def _stores_from_seed(source: Path | None = None) -> Stores:
    try:
        seed = load_seed(source)
    except FileNotFoundError as exc:
        logger.warning(f"{exc}. Starting with an empty in-memory graph.")
        return Stores(graph=InMemoryGraphStore(), inventory=InMemoryInventoryStore(), backend="memory")
    logger.info(
        f"Loaded seed: {len(seed.locations)} locations, {len(seed.edges)} neighbors, {len(seed.vehicles)} vehicle records"
    )
    return Stores(
        graph=InMemoryGraphStore(seed.locations, seed.edges),
        inventory=InMemoryInventoryStore(seed.vehicles),
        backend="memory",
    )


@functools.lru_cache(maxsize=1)
def get_stores() -> Stores:
    """Use Supabase when credentials are configured, otherwise the in-memory seed."""
    client = get_supabase_client()
    if client is not None:
        from .supabase_stores import SupabaseGraphStore, SupabaseInventoryStore

        logger.info("Using Supabase graph and inventory stores")
        return Stores(
            graph=SupabaseGraphStore(client),
            inventory=SupabaseInventoryStore(client),
            backend="supabase",
        )
    return _stores_from_seed()
