"""Route session orchestration: stop bookkeeping and the optimize pipeline."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import Coordinate, RouteFlags, StartingPoint, Stop, StopStatus, new_stop_id
from ..geocoding.addresses import extract_addresses
from ..geocoding.nominatim import position_label
from ..navigation.batcher import NavigationBatch, build_navigation_points, split_into_batches
from .errors import InsufficientStops, NoRouteFound
from .models import OptimizationResult, OptimizationSource, RemoteAttempt, ensure_permutation
from .remote import UNSUPPORTED_TRIP_CODE, RemoteOptimizerAdapter, TripOptimizer
from .sequencer import nearest_neighbor_tour
from .two_opt import TwoOptPolicy, improve_tour, route_distance_km

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    def geocode(self, address: str) -> Optional[Coordinate]: ...

    def reverse(self, coordinate: Coordinate) -> Optional[str]: ...


def local_fallback(
    stops: Sequence[Stop],
    start: Optional[StartingPoint] = None,
    round_trip: bool = False,
    policy: Optional[TwoOptPolicy] = None,
    priority_bonus: float | None = None,
) -> list[Stop]:
    """Nearest-neighbour construction refined by 2-opt; always a full permutation."""

    initial = nearest_neighbor_tour(stops, start, priority_bonus)
    return improve_tour(initial, start, round_trip, policy)


class RouteSession:
    """Everything one driver is planning: stops, starting point and flags.

    Collaborators are injected; the session keeps no global state. Callers
    must not run two ``optimize`` calls on the same session at once.
    """

    def __init__(
        self,
        optimizer: Optional[TripOptimizer] = None,
        geocoder: Optional[Geocoder] = None,
        stops: Sequence[Stop] | None = None,
        starting_point: Optional[StartingPoint] = None,
        flags: Optional[RouteFlags] = None,
        policy: Optional[TwoOptPolicy] = None,
    ) -> None:
        self.remote = RemoteOptimizerAdapter(optimizer)
        self.geocoder = geocoder
        self.stops: list[Stop] = list(stops or [])
        self.starting_point = starting_point
        self.flags = flags or RouteFlags()
        self.policy = policy or TwoOptPolicy.from_settings()
        self.last_result: Optional[OptimizationResult] = None

    # -- stop bookkeeping -------------------------------------------------

    def _require_geocoder(self) -> Geocoder:
        if self.geocoder is None:
            raise RuntimeError("No geocoder configured for this session.")
        return self.geocoder

    def add_stop(self, address: str) -> Optional[Stop]:
        """Geocode ``address`` and append it; ``None`` when it cannot be found."""

        address = address.strip()
        if not address:
            return None
        coordinate = self._require_geocoder().geocode(address)
        if coordinate is None:
            logger.warning(f"Could not geocode stop address: {address}")
            return None
        stop = Stop(id=new_stop_id(), address=address, coordinate=coordinate)
        self.stops.append(stop)
        self._invalidate()
        return stop

    def add_stops_from_text(self, text: str) -> tuple[list[Stop], list[str]]:
        """Add every address found in ``text``; returns the added stops and the failed addresses."""

        added: list[Stop] = []
        failed: list[str] = []
        for address in extract_addresses(text):
            stop = self.add_stop(address)
            if stop is None:
                failed.append(address)
            else:
                added.append(stop)
        logger.info(f"Bulk import added {len(added)} stops, {len(failed)} failed")
        return added, failed

    def set_starting_point(self, address: str) -> Optional[StartingPoint]:
        coordinate = self._require_geocoder().geocode(address)
        if coordinate is None:
            logger.warning(f"Could not geocode starting point: {address}")
            return None
        self.starting_point = StartingPoint(address=address.strip(), coordinate=coordinate)
        self._invalidate()
        return self.starting_point

    def use_current_location(self, coordinate: Coordinate) -> StartingPoint:
        label = self.geocoder.reverse(coordinate) if self.geocoder is not None else None
        self.starting_point = StartingPoint(address=label or position_label(coordinate), coordinate=coordinate)
        self._invalidate()
        return self.starting_point

    def clear_starting_point(self) -> None:
        self.starting_point = None
        self._invalidate()

    def get_stop(self, stop_id: str) -> Stop:
        for stop in self.stops:
            if stop.id == stop_id:
                return stop
        raise KeyError(stop_id)

    def remove_stop(self, stop_id: str) -> bool:
        remaining = [stop for stop in self.stops if stop.id != stop_id]
        removed = len(remaining) != len(self.stops)
        if removed:
            self.stops = remaining
            self._invalidate()
        return removed

    def toggle_priority(self, stop_id: str) -> bool:
        priority = self.get_stop(stop_id).toggle_priority()
        self._invalidate()
        return priority

    def toggle_status(self, stop_id: str) -> StopStatus:
        return self.get_stop(stop_id).toggle_status()

    def set_round_trip(self, round_trip: bool) -> None:
        self.flags.round_trip = bool(round_trip)
        self._invalidate()

    def _invalidate(self) -> None:
        self.last_result = None

    # -- optimization ------------------------------------------------------

    def try_remote(self) -> RemoteAttempt:
        return self.remote.try_remote(self.stops, self.starting_point, self.flags.round_trip)

    def local_fallback(self) -> list[Stop]:
        return local_fallback(
            self.stops,
            self.starting_point,
            self.flags.round_trip,
            self.policy,
            settings.priority_bonus,
        )

    def optimize(self) -> OptimizationResult:
        """Reorder the session's stops, remotely when possible and locally otherwise.

        Raises ``InsufficientStops`` for fewer than two stops and
        ``NoRouteFound`` when a two-point route is reported unreachable twice.
        The stop order is replaced only once a complete permutation exists.
        """

        original = list(self.stops)
        if len(original) < 2:
            raise InsufficientStops(len(original))

        attempt = self.try_remote()
        total_points = len(original) + (1 if self.starting_point is not None else 0)

        if isinstance(attempt.error, NoRouteFound) and total_points < 3:
            attempt = self._last_resort_direct(original, attempt.error)

        notice = None
        remote_error = None
        if attempt.ok:
            tour = attempt.tour
            source = attempt.source
        else:
            remote_error = str(attempt.error)
            if attempt.error.code == UNSUPPORTED_TRIP_CODE:
                logger.info(f"Using local sequencing for {len(original)} stops: {remote_error}")
            else:
                logger.warning(f"Falling back to local sequencing for {len(original)} stops: {remote_error}")
            tour = self.local_fallback()
            source = OptimizationSource.LOCAL
            notice = "Route optimized locally; the online optimizer was unavailable or gave no better order."

        ordered = ensure_permutation(original, tour)
        result = OptimizationResult(
            tour=ordered,
            source=source,
            total_distance_km=route_distance_km(ordered, self.starting_point, self.flags.round_trip),
            notice=notice,
            remote_error=remote_error,
            road_distance_km=attempt.distance_km if attempt.ok else None,
            road_duration_min=attempt.duration_min if attempt.ok else None,
            geometry=attempt.geometry if attempt.ok else None,
            metadata={
                "stop_count": len(ordered),
                "round_trip": self.flags.round_trip,
                "has_starting_point": self.starting_point is not None,
            },
        )
        self.stops = list(ordered)
        self.last_result = result
        logger.info(
            f"Optimized {len(ordered)} stops via {source.value}: {result.total_distance_km:.2f} km great-circle"
        )
        return result

    def _last_resort_direct(self, stops: list[Stop], error: NoRouteFound) -> RemoteAttempt:
        origin = self.starting_point.coordinate if self.starting_point is not None else stops[0].coordinate
        destination = stops[-1].coordinate
        try:
            response = self.remote.direct_route(origin, destination)
        except Exception as exc:
            logger.error(f"Last-resort direct route failed: {exc}")
            raise NoRouteFound(
                f"No route between {origin.as_lat_lng()} and {destination.as_lat_lng()}: {exc}",
                code=error.code,
            ) from exc
        route = response.routes[0]
        return RemoteAttempt(
            tour=list(stops),
            source=OptimizationSource.DIRECT,
            distance_km=route.distance / 1000.0,
            duration_min=route.duration / 60.0,
            geometry=route.geometry,
        )

    # -- navigation --------------------------------------------------------

    def navigation_batches(
        self,
        max_waypoints: int | None = None,
        delay_seconds: float | None = None,
    ) -> list[NavigationBatch]:
        points = build_navigation_points(self.stops, self.starting_point, self.flags.round_trip)
        return split_into_batches(points, max_waypoints=max_waypoints, delay_seconds=delay_seconds)

    # -- persistence -------------------------------------------------------

    def to_state(self) -> dict[str, Any]:
        return {
            "stops": [stop.to_dict() for stop in self.stops],
            "starting_point": self.starting_point.to_dict() if self.starting_point else None,
            "round_trip": self.flags.round_trip,
        }

    @classmethod
    def from_state(
        cls,
        state: dict[str, Any],
        optimizer: Optional[TripOptimizer] = None,
        geocoder: Optional[Geocoder] = None,
    ) -> "RouteSession":
        return cls(
            optimizer=optimizer,
            geocoder=geocoder,
            stops=[Stop.from_dict(item) for item in state.get("stops") or []],
            starting_point=StartingPoint.from_dict(state.get("starting_point")),
            flags=RouteFlags(round_trip=bool(state.get("round_trip", False))),
        )
