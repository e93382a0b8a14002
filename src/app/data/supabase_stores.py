"""Supabase-backed graph and inventory stores.

Expected schema (see ``sql/schema.sql``):

* ``zip_codes(zip_id, zip_code, location_name)``
* ``neighbors(zip_id, neighbor_zip_id, distance)``
* ``vehicle_availability`` view: ``zip_code, vehicle_type, available_count``
* ``decrement_vehicle_if_available(p_zip_code, p_vehicle_type) -> boolean``
* ``increment_vehicle_count(p_zip_code, p_vehicle_type, p_amount) -> integer``
* ``graph_snapshot() -> json``: ``{"locations": [...], "neighbors": [...]}`` from one statement

The decrement function is a single conditional ``UPDATE ... WHERE
available_count > 0``, so the database performs check and write atomically.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from ..errors import StoreRejected, StoreUnavailable
from ..models.domain import Edge, InventoryRecord, Location, VehicleType
from ..services.routing.graph import GraphSnapshot

logger = logging.getLogger(__name__)


# PostgreSQL error classes that clear up on their own: connection exceptions,
# transaction rollbacks (deadlock, serialization), insufficient resources and
# operator intervention (shutdown, statement timeout).
TRANSIENT_SQLSTATE_CLASSES = ("08", "40", "53", "57")

# PostgREST could not reach the database, load its schema cache, or timed out.
TRANSIENT_POSTGREST_CODES = {"PGRST000", "PGRST001", "PGRST002", "PGRST003"}


def is_transient_api_error(exc: APIError) -> bool:
    """Classify a PostgREST error as retryable or permanent.

    Responses without a JSON body carry the HTTP status as their code; only
    5xx statuses are retried. Everything else (missing function or table,
    permission denied, bad input) is permanent.
    """
    code = str(exc.code or "")
    if code.isdigit() and len(code) == 3:
        return code.startswith("5")
    return code in TRANSIENT_POSTGREST_CODES or code[:2] in TRANSIENT_SQLSTATE_CLASSES


def _run(description: str, query: Callable[[], Any]) -> Any:
    """Execute a Supabase query, translating client failures into dispatch errors.

    Network failures and transient database errors become StoreUnavailable
    (retried by the coordinator); permanent PostgREST errors become
    StoreRejected and are not retried.
    """
    try:
        return query()
    except APIError as exc:
        if is_transient_api_error(exc):
            logger.warning(f"Supabase {description} failed: {exc}")
            raise StoreUnavailable(f"Supabase {description} failed.") from exc
        logger.error(f"Supabase {description} rejected (code {exc.code}): {exc}")
        raise StoreRejected(f"Supabase {description} was rejected.") from exc
    except (httpx.HTTPError, OSError) as exc:
        logger.warning(f"Supabase {description} failed: {exc}")
        raise StoreUnavailable(f"Supabase {description} failed.") from exc


class SupabaseGraphStore:
    """Reads locations and neighbor distances from Supabase tables."""

    version = None

    def __init__(self, client: Client) -> None:
        self.client = client

    def _location_rows(self) -> list[dict]:
        response = _run(
            "zip_codes query",
            lambda: self.client.table("zip_codes").select("zip_id, zip_code, location_name").execute(),
        )
        return response.data or []

    def _neighbor_rows(self) -> list[dict]:
        response = _run(
            "neighbors query",
            lambda: self.client.table("neighbors").select("zip_id, neighbor_zip_id, distance").execute(),
        )
        return response.data or []

    def list_locations(self) -> list[Location]:
        return [
            Location(code=str(row["zip_code"]).strip(), name=str(row.get("location_name") or row["zip_code"]).strip())
            for row in self._location_rows()
        ]

    def list_edges(self) -> list[Edge]:
        codes = {row["zip_id"]: str(row["zip_code"]).strip() for row in self._location_rows()}
        return self._edges_from(self._neighbor_rows(), codes)

    @staticmethod
    def _edges_from(rows: list[dict], codes: dict[Any, str]) -> list[Edge]:
        # A dangling zip_id keeps a placeholder code so snapshot building reports it.
        return [
            Edge(
                source=codes.get(row["zip_id"], f"zip_id:{row['zip_id']}"),
                target=codes.get(row["neighbor_zip_id"], f"zip_id:{row['neighbor_zip_id']}"),
                distance=float(row["distance"]),
            )
            for row in rows
        ]

    def snapshot(self) -> GraphSnapshot:
        """Build the graph from a single ``graph_snapshot`` call.

        Reading both tables in one statement keeps a location deleted or added
        between two separate reads from showing up as a dangling neighbor.
        """
        response = _run("graph snapshot", lambda: self.client.rpc("graph_snapshot", {}).execute())
        payload = response.data or {}
        location_rows = payload.get("locations") or []
        neighbor_rows = payload.get("neighbors") or []
        codes = {row["zip_id"]: str(row["zip_code"]).strip() for row in location_rows}
        locations = [
            Location(code=codes[row["zip_id"]], name=str(row.get("location_name") or row["zip_code"]).strip())
            for row in location_rows
        ]
        return GraphSnapshot.build(locations, self._edges_from(neighbor_rows, codes))


class SupabaseInventoryStore:
    """Vehicle counts held in the ``vehicles`` table."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def get_availability(self, location_code: str, vehicle_type: VehicleType) -> int:
        response = _run(
            "availability query",
            lambda: self.client.table("vehicle_availability")
            .select("available_count")
            .eq("zip_code", location_code)
            .eq("vehicle_type", vehicle_type.value)
            .execute(),
        )
        rows = response.data or []
        return sum(max(0, int(row.get("available_count") or 0)) for row in rows)

    def get_all_availability(self) -> list[InventoryRecord]:
        response = _run(
            "availability listing",
            lambda: self.client.table("vehicle_availability")
            .select("zip_code, vehicle_type, available_count")
            .execute(),
        )
        records: list[InventoryRecord] = []
        for row in response.data or []:
            try:
                vehicle_type = VehicleType.parse(row["vehicle_type"])
            except ValueError:
                logger.warning(f"Skipping vehicle row with unknown type {row.get('vehicle_type')!r}")
                continue
            records.append(
                InventoryRecord(
                    location_code=str(row["zip_code"]).strip(),
                    vehicle_type=vehicle_type,
                    available_count=max(0, int(row.get("available_count") or 0)),
                )
            )
        return records

    def decrement_if_available(self, location_code: str, vehicle_type: VehicleType) -> bool:
        response = _run(
            "decrement",
            lambda: self.client.rpc(
                "decrement_vehicle_if_available",
                {"p_zip_code": location_code, "p_vehicle_type": vehicle_type.value},
            ).execute(),
        )
        return bool(response.data)

    def increment(self, location_code: str, vehicle_type: VehicleType, amount: int = 1) -> int:
        if amount < 1:
            raise ValueError(f"Increment amount must be positive, got {amount}.")
        response = _run(
            "increment",
            lambda: self.client.rpc(
                "increment_vehicle_count",
                {"p_zip_code": location_code, "p_vehicle_type": vehicle_type.value, "p_amount": amount},
            ).execute(),
        )
        return int(response.data or 0)
