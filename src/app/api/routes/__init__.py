"""Route group exports."""

from . import availability, dispatch, health, locations, routes

__all__ = ["availability", "dispatch", "health", "locations", "routes"]
