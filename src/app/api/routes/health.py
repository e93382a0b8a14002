"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Report which store backend is active and whether the graph can be loaded."""
    from ...data.repository import get_stores
    from ...errors import DispatchError
    from ...services.dispatch import service as dispatch_service

    backend = get_stores().backend
    try:
        snapshot = dispatch_service.get_coordinator().snapshot()
    except DispatchError as exc:
        return {
            "backend": backend,
            "connected": False,
            "error": type(exc).__name__,
            "message": "Graph store could not be loaded.",
        }
    return {
        "backend": backend,
        "connected": True,
        "locations_count": len(snapshot),
        "graph_version": snapshot.version,
        "message": f"Graph loaded with {len(snapshot)} locations.",
    }
