"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..config import settings
from ..models.domain import Coordinate, StartingPoint, Stop, coordinate_of

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Stop | StartingPoint | Coordinate, b: Stop | StartingPoint | Coordinate) -> float:
    """Great-circle distance between any two located points."""

    first, second = coordinate_of(a), coordinate_of(b)
    return haversine_km(first.lat, first.lng, second.lat, second.lng)


def weighted_distance_km(
    origin: Stop | StartingPoint | Coordinate,
    to: Stop,
    priority_bonus: float | None = None,
) -> float:
    """Distance shrunk towards priority stops so greedy sequencing prefers them.

    This is a bias, not a constraint: a far-away priority stop can still be
    visited after a nearby ordinary one.
    """

    bonus = settings.priority_bonus if priority_bonus is None else priority_bonus
    return distance_km(origin, to) * (1 + (bonus if to.priority else 0.0))


def is_same_place(
    a: Stop | StartingPoint | Coordinate,
    b: Stop | StartingPoint | Coordinate,
    threshold_km: float | None = None,
) -> bool:
    limit = settings.same_place_threshold_km if threshold_km is None else threshold_km
    return distance_km(a, b) < limit
