"""Validated shapes of OSRM trip and route responses."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..services.routing.errors import NoRouteFound, RemoteResponseInvalid

NO_ROUTE_CODES = frozenset({"NoRoute", "NoTrips", "NoSegment"})


class OSRMWaypoint(BaseModel):
    model_config = ConfigDict(extra="ignore")

    location: List[float] = Field(..., min_length=2, max_length=2, description="[lng, lat]")
    waypoint_index: int = Field(..., ge=0)
    trips_index: int = Field(default=0, ge=0)
    name: Optional[str] = None


class OSRMTrip(BaseModel):
    model_config = ConfigDict(extra="ignore")

    distance: float = Field(default=0.0, ge=0.0, description="Metres.")
    duration: float = Field(default=0.0, ge=0.0, description="Seconds.")
    geometry: Optional[dict] = None
    waypoints: List[OSRMWaypoint] = Field(default_factory=list)

    @field_validator("geometry", mode="before")
    @classmethod
    def _drop_encoded_geometry(cls, value):
        # Polyline-encoded geometry arrives as a string; only GeoJSON is kept.
        return value if isinstance(value, dict) else None


class TripResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    message: Optional[str] = None
    trips: List[OSRMTrip] = Field(default_factory=list)
    waypoints: List[OSRMWaypoint] = Field(default_factory=list)

    def visiting_order(self) -> list[int]:
        """Input point indices of the first trip, in the order they are visited.

        OSRM lists top-level waypoints in input order, each carrying its
        position within its trip as ``waypoint_index``. A waypoint list nested
        in the trip is already in visiting order and names input points instead.
        """

        if self.trips and self.trips[0].waypoints:
            return [waypoint.waypoint_index for waypoint in self.trips[0].waypoints]
        first_trip = [index for index, waypoint in enumerate(self.waypoints) if waypoint.trips_index == 0]
        return sorted(first_trip, key=lambda index: self.waypoints[index].waypoint_index)


class RouteResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    message: Optional[str] = None
    routes: List[OSRMTrip] = Field(default_factory=list)


def _check_code(code: str, message: str | None) -> None:
    if code == "Ok":
        return
    detail = message or "no message"
    if code in NO_ROUTE_CODES:
        raise NoRouteFound(f"OSRM found no route ({code}): {detail}", code=code)
    raise RemoteResponseInvalid(f"OSRM returned code {code}: {detail}", code=code)


def parse_trip_response(payload: object) -> TripResponse:
    """Validate a decoded trip response or raise a routing error."""

    if not isinstance(payload, dict):
        raise RemoteResponseInvalid(f"Expected a JSON object from OSRM trip, got {type(payload).__name__}.")
    try:
        response = TripResponse.model_validate(payload)
    except ValidationError as exc:
        raise RemoteResponseInvalid(f"Malformed OSRM trip response: {exc.error_count()} validation errors") from exc
    _check_code(response.code, response.message)
    if not response.trips:
        raise RemoteResponseInvalid("OSRM trip response contains no trips.")
    if not response.visiting_order():
        raise RemoteResponseInvalid("OSRM trip response contains no waypoints.")
    return response


def parse_route_response(payload: object) -> RouteResponse:
    """Validate a decoded route response or raise a routing error."""

    if not isinstance(payload, dict):
        raise RemoteResponseInvalid(f"Expected a JSON object from OSRM route, got {type(payload).__name__}.")
    try:
        response = RouteResponse.model_validate(payload)
    except ValidationError as exc:
        raise RemoteResponseInvalid(f"Malformed OSRM route response: {exc.error_count()} validation errors") from exc
    _check_code(response.code, response.message)
    if not response.routes:
        raise NoRouteFound("OSRM route response contains no routes.", code="NoRoute")
    return response
