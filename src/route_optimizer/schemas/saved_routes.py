"""Saved route and session schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import SavedRoute
from .routing import RouteStateModel, StartingPointModel, StopModel


class SaveRouteRequest(RouteStateModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)


class SavedRouteModel(RouteStateModel):
    id: str
    name: str
    user_id: Optional[str] = None
    share_token: Optional[str] = None
    is_public: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_domain(cls, route: SavedRoute) -> "SavedRouteModel":
        return cls(
            id=route.id,
            name=route.name,
            user_id=route.user_id,
            share_token=route.share_token,
            is_public=route.is_public,
            created_at=route.created_at,
            stops=[StopModel.from_domain(stop) for stop in route.stops],
            starting_point=StartingPointModel.from_domain(route.starting_point) if route.starting_point else None,
            round_trip=route.round_trip,
        )


class SavedRoutesResponse(BaseModel):
    user_id: str
    routes: List[SavedRouteModel]


class SessionStateModel(RouteStateModel):
    saved_routes: List[SavedRouteModel] = Field(default_factory=list, description="Offline copy of saved routes.")
