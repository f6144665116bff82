"""Failure taxonomy for route optimization."""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for optimization failures.

    ``code`` carries the OSRM response code when the service supplied one.
    """

    def __init__(self, message: str = "", code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class RemoteUnavailable(RoutingError):
    """The trip optimizer could not be reached (network, timeout, non-2xx)."""


class RemoteResponseInvalid(RoutingError):
    """The trip optimizer answered with something we cannot trust."""


class NoRouteFound(RoutingError):
    """The trip optimizer reports that no feasible route exists."""


class InsufficientStops(RoutingError, ValueError):
    """Optimization needs at least two stops."""

    def __init__(self, count: int) -> None:
        super().__init__(f"At least 2 stops are required for optimization, got {count}.")
        self.count = count


class OptimizationError(RoutingError):
    """A produced tour is not a permutation of the input stops."""
