"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import Coordinate, StartingPoint, Stop, StopStatus


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


class StopModel(CoordinateModel):
    id: str = Field(..., min_length=1, description="Opaque identifier, stable across reordering.")
    address: str = ""
    priority: bool = False
    status: Literal["pending", "completed"] = "pending"

    def to_domain(self) -> Stop:
        return Stop(
            id=self.id,
            address=self.address,
            coordinate=Coordinate(self.lat, self.lng),
            priority=self.priority,
            status=StopStatus(self.status),
        )

    @classmethod
    def from_domain(cls, stop: Stop) -> "StopModel":
        return cls(**stop.to_dict())


class StartingPointModel(CoordinateModel):
    address: str = ""

    def to_domain(self) -> StartingPoint:
        return StartingPoint(address=self.address, coordinate=Coordinate(self.lat, self.lng))

    @classmethod
    def from_domain(cls, start: StartingPoint) -> "StartingPointModel":
        return cls(**start.to_dict())


class RouteStateModel(BaseModel):
    stops: List[StopModel] = Field(default_factory=list)
    starting_point: Optional[StartingPointModel] = None
    round_trip: bool = False


class OptimizeRequest(RouteStateModel):
    pass


class OptimizeResponse(BaseModel):
    stops: List[StopModel]
    source: Literal["remote", "direct", "local"]
    total_distance_km: float = Field(..., description="Great-circle length of the ordered route.")
    road_distance_km: Optional[float] = None
    road_duration_min: Optional[float] = None
    notice: Optional[str] = None
    remote_error: Optional[str] = None
    geometry: Optional[dict] = None
    metadata: dict = Field(default_factory=dict)


class NavigationRequest(RouteStateModel):
    max_waypoints: Optional[int] = Field(default=None, ge=1, description="Waypoints allowed between origin and destination.")


class NavigationBatchModel(BaseModel):
    index: int
    origin: str
    destination: str
    waypoints: List[str]
    closes_loop: bool
    dispatch_delay_seconds: float
    url: str


class NavigationResponse(BaseModel):
    batch_count: int
    batches: List[NavigationBatchModel]
