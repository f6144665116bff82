"""Delegation of stop ordering to a remote trip optimizer."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from ...models.domain import Coordinate, StartingPoint, Stop
from ...schemas.osrm import RouteResponse, TripResponse
from .errors import NoRouteFound, RemoteResponseInvalid, RemoteUnavailable, RoutingError
from .models import OptimizationSource, RemoteAttempt

logger = logging.getLogger(__name__)

# Returned by OSRM for one-way trips whose destination is not pinned.
UNSUPPORTED_TRIP_CODE = "NotImplemented"


class TripOptimizer(Protocol):
    def trip(self, coordinates: Sequence[Coordinate], roundtrip: bool) -> TripResponse: ...

    def route(self, coordinates: Sequence[Coordinate]) -> RouteResponse: ...


def build_trip_points(
    stops: Sequence[Stop],
    start: Optional[StartingPoint] = None,
) -> tuple[list[Coordinate], list[Optional[Stop]]]:
    """Coordinates to submit, plus the stop behind each one (``None`` for the start).

    Exact coordinate repeats are sent once; OSRM mishandles duplicate points.
    """

    coordinates: list[Coordinate] = []
    owners: list[Optional[Stop]] = []
    seen: set[tuple[float, float]] = set()

    if start is not None:
        coordinates.append(start.coordinate)
        owners.append(None)
        seen.add((start.coordinate.lat, start.coordinate.lng))

    for stop in stops:
        key = (stop.coordinate.lat, stop.coordinate.lng)
        if key in seen:
            logger.debug(f"Skipping duplicate coordinate {stop.coordinate.as_lat_lng()} for stop {stop.id}")
            continue
        seen.add(key)
        coordinates.append(stop.coordinate)
        owners.append(stop)

    return coordinates, owners


def map_trip_waypoints(
    response: TripResponse,
    owners: Sequence[Optional[Stop]],
    stops: Sequence[Stop],
) -> list[Stop]:
    """Translate the optimizer's visiting order back onto stop identities."""

    mapped: list[Stop] = []
    seen: set[str] = set()
    for index in response.visiting_order():
        if index >= len(owners):
            raise RemoteResponseInvalid(
                f"Trip point {index} is out of range for {len(owners)} submitted points."
            )
        owner = owners[index]
        if owner is None or owner.id in seen:
            continue
        seen.add(owner.id)
        mapped.append(owner)

    if len(mapped) != len(stops):
        raise RemoteResponseInvalid(
            f"Optimizer order covers {len(mapped)} of {len(stops)} stops."
        )
    return mapped


class RemoteOptimizerAdapter:
    """Ask a trip optimizer for an order and map its answer back onto stops.

    Failures come back inside the ``RemoteAttempt`` rather than being raised,
    so the caller can fall back to the local heuristic.
    """

    def __init__(self, client: Optional[TripOptimizer]) -> None:
        self.client = client

    def try_remote(
        self,
        stops: Sequence[Stop],
        start: Optional[StartingPoint] = None,
        round_trip: bool = False,
    ) -> RemoteAttempt:
        if self.client is None:
            return RemoteAttempt.failed(RemoteUnavailable("No trip optimizer is configured."))

        coordinates, owners = build_trip_points(stops, start)
        requested_points = len(stops) + (1 if start is not None else 0)
        if len(coordinates) < 2:
            return RemoteAttempt.failed(RemoteResponseInvalid("Fewer than two distinct points to route."))
        if requested_points == 2 and len(coordinates) == 2:
            return self._direct(stops, coordinates)

        try:
            response = self.client.trip(coordinates, roundtrip=round_trip)
            tour = map_trip_waypoints(response, owners, stops)
        except RoutingError as exc:
            if exc.code == UNSUPPORTED_TRIP_CODE and not round_trip:
                logger.info(
                    "OSRM does not support one-way trips with source=first and no fixed destination; "
                    f"sequencing {len(stops)} stops locally"
                )
            else:
                logger.warning(f"Remote trip optimization failed: {exc}")
            return RemoteAttempt.failed(exc)
        except Exception as exc:
            logger.warning(f"Remote trip optimization raised {type(exc).__name__}: {exc}")
            return RemoteAttempt.failed(RemoteUnavailable(str(exc)))

        if [stop.id for stop in tour] == [stop.id for stop in stops]:
            return RemoteAttempt.failed(
                RemoteResponseInvalid("Optimizer returned the stops in their current order.")
            )

        trip = response.trips[0]
        return RemoteAttempt(
            tour=tour,
            source=OptimizationSource.REMOTE,
            distance_km=trip.distance / 1000.0,
            duration_min=trip.duration / 60.0,
            geometry=trip.geometry,
        )

    def direct_route(self, origin: Coordinate, destination: Coordinate) -> RouteResponse:
        """Plain two-point route request; errors propagate to the caller."""

        if self.client is None:
            raise RemoteUnavailable("No trip optimizer is configured.")
        return self.client.route([origin, destination])

    def _direct(self, stops: Sequence[Stop], coordinates: list[Coordinate]) -> RemoteAttempt:
        # Two points have only one sensible order, so the current order stands.
        try:
            response = self.direct_route(coordinates[0], coordinates[1])
        except RoutingError as exc:
            logger.warning(f"Direct route request failed: {exc}")
            return RemoteAttempt.failed(exc)
        except Exception as exc:
            logger.warning(f"Direct route request raised {type(exc).__name__}: {exc}")
            return RemoteAttempt.failed(RemoteUnavailable(str(exc)))

        route = response.routes[0]
        return RemoteAttempt(
            tour=list(stops),
            source=OptimizationSource.DIRECT,
            distance_km=route.distance / 1000.0,
            duration_min=route.duration / 60.0,
            geometry=route.geometry,
        )
