"""Domain models for stops, starting points and route flags."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 position in decimal degrees."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude {self.lat} is outside [-90, 90].")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude {self.lng} is outside [-180, 180].")

    def as_lat_lng(self) -> str:
        return f"{self.lat},{self.lng}"

    def as_lng_lat(self) -> str:
        return f"{self.lng},{self.lat}"


class StopStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


def new_stop_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True, eq=False)
class Stop:
    """A geocoded delivery address.

    Identity is the ``id``; two stops at the same coordinate are still distinct.
    Only ``priority`` and ``status`` change after creation.
    """

    id: str
    address: str
    coordinate: Coordinate
    priority: bool = False
    status: StopStatus = StopStatus.PENDING

    def toggle_priority(self) -> bool:
        self.priority = not self.priority
        return self.priority

    def toggle_status(self) -> StopStatus:
        self.status = StopStatus.COMPLETED if self.status is StopStatus.PENDING else StopStatus.PENDING
        return self.status

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "lat": self.coordinate.lat,
            "lng": self.coordinate.lng,
            "priority": self.priority,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Stop":
        # Older stored sessions have neither priority nor status.
        return cls(
            id=str(data["id"]),
            address=str(data.get("address") or ""),
            coordinate=Coordinate(float(data["lat"]), float(data["lng"])),
            priority=bool(data.get("priority", False)),
            status=StopStatus(data.get("status") or StopStatus.PENDING.value),
        )


@dataclass(frozen=True, slots=True)
class StartingPoint:
    """Where the driver sets off; context for sequencing, never a tour member."""

    address: str
    coordinate: Coordinate

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "lat": self.coordinate.lat, "lng": self.coordinate.lng}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["StartingPoint"]:
        if not data:
            return None
        return cls(
            address=str(data.get("address") or ""),
            coordinate=Coordinate(float(data["lat"]), float(data["lng"])),
        )


@dataclass(slots=True)
class RouteFlags:
    round_trip: bool = False


@dataclass(slots=True)
class SavedRoute:
    """A named snapshot of a session as stored in the remote database."""

    id: str
    name: str
    stops: list[Stop]
    starting_point: Optional[StartingPoint]
    round_trip: bool
    user_id: Optional[str] = None
    share_token: Optional[str] = None
    is_public: bool = False
    created_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


def coordinate_of(point: Stop | StartingPoint | Coordinate) -> Coordinate:
    if isinstance(point, Coordinate):
        return point
    return point.coordinate
