"""Greedy nearest-neighbour tour construction."""

from __future__ import annotations

from typing import Optional, Sequence

from ...models.domain import StartingPoint, Stop
from ..geospatial import weighted_distance_km


def nearest_neighbor_tour(
    stops: Sequence[Stop],
    start: Optional[StartingPoint] = None,
    priority_bonus: float | None = None,
) -> list[Stop]:
    """Build an initial tour by always stepping to the closest remaining stop.

    Without a starting point the first stop opens the tour and becomes the
    reference. Closeness is the priority-weighted distance, and ties keep the
    earliest stop in input order, so the result is deterministic.
    """

    remaining = list(stops)
    if not remaining:
        return []

    tour: list[Stop] = []
    if start is not None:
        current: Stop | StartingPoint = start
    else:
        current = remaining.pop(0)
        tour.append(current)

    while remaining:
        best_index = 0
        best_distance = weighted_distance_km(current, remaining[0], priority_bonus)
        for index in range(1, len(remaining)):
            candidate_distance = weighted_distance_km(current, remaining[index], priority_bonus)
            if candidate_distance < best_distance:
                best_index = index
                best_distance = candidate_distance
        current = remaining.pop(best_index)
        tour.append(current)

    return tour
