"""Route group exports."""

from . import health, routes, saved_routes, sessions, stops

__all__ = ["health", "routes", "stops", "saved_routes", "sessions"]
