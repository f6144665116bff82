"""2-opt local search over a stop sequence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import StartingPoint, Stop
from ..geospatial import distance_km

logger = logging.getLogger(__name__)

# Guards against float noise turning an equal-length reversal into an "improvement".
_EPSILON_KM = 1e-9


@dataclass(frozen=True, slots=True)
class TwoOptPolicy:
    """Acceptance policy mixing the distance and priority-ordering objectives."""

    tie_tolerance_km: float = 0.1
    priority_weight: float = 10.0
    max_passes: int = 1000

    @classmethod
    def from_settings(cls) -> "TwoOptPolicy":
        return cls(
            tie_tolerance_km=settings.two_opt_tie_tolerance_km,
            priority_weight=settings.two_opt_priority_weight,
            max_passes=settings.two_opt_max_passes,
        )


class _LegCache:
    """Memoises leg lengths by stop identity for one improvement run."""

    _START = object()

    def __init__(self, start: Optional[StartingPoint]) -> None:
        self.start = start
        self._legs: dict[tuple[object, object], float] = {}

    def leg(self, a: Stop | StartingPoint, b: Stop | StartingPoint) -> float:
        key = (self._key(a), self._key(b))
        value = self._legs.get(key)
        if value is None:
            value = distance_km(a, b)
            self._legs[key] = value
            self._legs[(key[1], key[0])] = value
        return value

    def _key(self, point: Stop | StartingPoint) -> object:
        return self._START if isinstance(point, StartingPoint) else point.id


def route_distance_km(
    tour: Sequence[Stop],
    start: Optional[StartingPoint] = None,
    round_trip: bool = False,
    _cache: Optional[_LegCache] = None,
) -> float:
    """Total great-circle length of a tour.

    Includes the leg from the starting point and, for round trips, the leg back
    to the starting point (or to the first stop when there is none).
    """

    if not tour:
        return 0.0
    leg = (_cache or _LegCache(start)).leg
    total = leg(start, tour[0]) if start is not None else 0.0
    for previous, following in zip(tour, tour[1:]):
        total += leg(previous, following)
    if round_trip:
        total += leg(tour[-1], start if start is not None else tour[0])
    return total


def priority_score(tour: Sequence[Stop], weight: float = 10.0) -> float:
    """Higher when priority stops sit earlier in the tour."""

    length = len(tour)
    return sum((length - position) * weight for position, stop in enumerate(tour) if stop.priority)


def improve_tour(
    tour: Sequence[Stop],
    start: Optional[StartingPoint] = None,
    round_trip: bool = False,
    policy: Optional[TwoOptPolicy] = None,
) -> list[Stop]:
    """Refine ``tour`` with first-improvement 2-opt.

    A reversal of ``[i..j]`` (``1 <= i < j < len``) is taken when it shortens
    the route, or when it keeps the length within the tie tolerance and moves
    priority stops earlier. Tie moves never leave the route longer than the
    tour we started from. The scan restarts after every accepted move and
    gives up after ``policy.max_passes`` passes.
    """

    policy = policy or TwoOptPolicy()
    best = list(tour)
    length = len(best)
    if length < 3:
        return best

    cache = _LegCache(start)
    baseline = route_distance_km(best, start, round_trip, cache)
    current_distance = baseline
    current_score = priority_score(best, policy.priority_weight)

    passes = 0
    improved = True
    while improved and passes < policy.max_passes:
        improved = False
        passes += 1
        for i in range(1, length - 1):
            for j in range(i + 1, length):
                candidate = best[:i] + best[i : j + 1][::-1] + best[j + 1 :]
                candidate_distance = route_distance_km(candidate, start, round_trip, cache)
                accept = candidate_distance < current_distance - _EPSILON_KM
                if (
                    not accept
                    and abs(candidate_distance - current_distance) <= policy.tie_tolerance_km
                    and candidate_distance <= baseline + _EPSILON_KM
                ):
                    accept = priority_score(candidate, policy.priority_weight) > current_score
                if accept:
                    best = candidate
                    current_distance = candidate_distance
                    current_score = priority_score(best, policy.priority_weight)
                    improved = True
                    break
            if improved:
                break

    if improved:
        logger.warning(f"2-opt stopped after {passes} passes without converging ({length} stops)")
    else:
        logger.debug(f"2-opt converged after {passes} passes: {baseline:.2f} km -> {current_distance:.2f} km")
    return best
