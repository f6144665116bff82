"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from ...models.domain import Stop
from .errors import OptimizationError, RoutingError


class OptimizationSource(str, Enum):
    REMOTE = "remote"
    DIRECT = "direct"
    LOCAL = "local"


@dataclass(slots=True)
class RemoteAttempt:
    """Outcome of asking the trip optimizer: either a tour or the reason it failed."""

    tour: Optional[list[Stop]] = None
    error: Optional[RoutingError] = None
    source: OptimizationSource = OptimizationSource.REMOTE
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None
    geometry: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return self.tour is not None and self.error is None

    @classmethod
    def failed(cls, error: RoutingError) -> "RemoteAttempt":
        return cls(tour=None, error=error)


@dataclass(slots=True)
class OptimizationResult:
    tour: tuple[Stop, ...]
    source: OptimizationSource
    total_distance_km: float
    notice: Optional[str] = None
    remote_error: Optional[str] = None
    road_distance_km: Optional[float] = None
    road_duration_min: Optional[float] = None
    geometry: Optional[dict] = None
    metadata: dict = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return self.source is OptimizationSource.LOCAL


def ensure_permutation(original: Sequence[Stop], tour: Sequence[Stop]) -> tuple[Stop, ...]:
    """Return ``tour`` as a tuple, or raise if it is not a reordering of ``original``."""

    original_ids = [stop.id for stop in original]
    tour_ids = [stop.id for stop in tour]
    if len(tour_ids) != len(original_ids):
        raise OptimizationError(
            f"Tour has {len(tour_ids)} stops but {len(original_ids)} were requested."
        )
    if len(set(tour_ids)) != len(tour_ids):
        raise OptimizationError("Tour visits a stop more than once.")
    if set(tour_ids) != set(original_ids):
        raise OptimizationError("Tour contains stops that were not requested.")
    return tuple(tour)
