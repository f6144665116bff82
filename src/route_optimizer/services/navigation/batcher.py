"""Split an ordered route into turn-by-turn navigation sessions.

Consumer navigation links accept a limited number of points (Google Maps: an
origin, eight waypoints and a destination), so longer routes are handed off as
consecutive batches that share their boundary point.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from urllib.parse import urlencode

from ...config import settings
from ...models.domain import Coordinate, StartingPoint, Stop, coordinate_of
from ..geospatial import is_same_place

logger = logging.getLogger(__name__)

GOOGLE_MAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/"

RoutePoint = Stop | StartingPoint | Coordinate


@dataclass(slots=True)
class NavigationBatch:
    index: int
    points: list[RoutePoint]
    closes_loop: bool
    dispatch_delay_seconds: float = 0.0

    @property
    def origin(self) -> Coordinate:
        return coordinate_of(self.points[0])

    @property
    def destination(self) -> Coordinate:
        return coordinate_of(self.points[-1])

    @property
    def waypoints(self) -> list[Coordinate]:
        interior = [coordinate_of(point) for point in self.points[1:-1]]
        if self.closes_loop:
            # Besides the plain interior slice, stops within the same-place radius of
            # the origin are left out as well; the loop already ends there.
            interior = [point for point in interior if not is_same_place(point, self.origin)]
        return interior

    def url(self, travel_mode: str = "driving") -> str:
        params = {
            "api": "1",
            "origin": self.origin.as_lat_lng(),
            "destination": self.destination.as_lat_lng(),
        }
        waypoints = self.waypoints
        if waypoints:
            params["waypoints"] = "|".join(point.as_lat_lng() for point in waypoints)
        params["travelmode"] = travel_mode
        return f"{GOOGLE_MAPS_DIRECTIONS_URL}?{urlencode(params, safe=',|')}"


def build_navigation_points(
    tour: Sequence[Stop],
    start: Optional[StartingPoint] = None,
    round_trip: bool = False,
) -> list[RoutePoint]:
    """Points to drive through: start (unless a stop is already there), stops, and the return leg."""

    points: list[RoutePoint] = list(tour)
    if start is not None and not any(is_same_place(stop, start) for stop in tour):
        points.insert(0, start)
    if round_trip and points:
        points.append(start if start is not None else points[0])
    return points


def split_into_batches(
    points: Sequence[RoutePoint],
    max_waypoints: int | None = None,
    single_session_limit: int | None = None,
    delay_seconds: float | None = None,
) -> list[NavigationBatch]:
    """Chunk ``points`` so that every batch fits one navigation session.

    Chunks hold at most ``max_waypoints + 1`` points and start every
    ``max_waypoints`` points, so each chunk begins where the previous one ended.
    Fewer than two points yields no batches.
    """

    max_waypoints = max_waypoints or settings.navigation_max_waypoints
    single_session_limit = single_session_limit or settings.navigation_single_session_limit
    delay_seconds = settings.navigation_batch_delay_seconds if delay_seconds is None else delay_seconds

    if len(points) < 2:
        return []

    if len(points) <= single_session_limit:
        chunks = [list(points)]
    else:
        chunks = []
        for offset in range(0, len(points), max_waypoints):
            chunk = list(points[offset : offset + max_waypoints + 1])
            if len(chunk) >= 2:
                chunks.append(chunk)

    batches = [
        NavigationBatch(
            index=index,
            points=chunk,
            closes_loop=is_same_place(chunk[0], chunk[-1]),
            dispatch_delay_seconds=index * delay_seconds,
        )
        for index, chunk in enumerate(chunks)
    ]
    logger.info(f"Split {len(points)} navigation points into {len(batches)} batch(es)")
    return batches


def dispatch_batches(
    batches: Sequence[NavigationBatch],
    open_url: Callable[[str, int], object],
    delay_seconds: float | None = None,
    sleep: Callable[[float], object] = time.sleep,
) -> int:
    """Open each batch in turn, the first immediately and the rest after a fixed delay."""

    delay_seconds = settings.navigation_batch_delay_seconds if delay_seconds is None else delay_seconds
    for batch in batches:
        if batch.index > 0 and delay_seconds > 0:
            sleep(delay_seconds)
        open_url(batch.url(), batch.index)
    return len(batches)
