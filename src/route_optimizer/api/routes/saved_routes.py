"""Saved route endpoints backed by Supabase."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...persistence.database import (
    delete_route,
    load_routes,
    load_shared_route,
    merge_routes,
    route_from_row,
    save_route,
    track_route_usage,
)
from ...persistence.filesystem import SessionStore
from ...schemas.saved_routes import SaveRouteRequest, SavedRouteModel, SavedRoutesResponse

router = APIRouter(prefix="/saved-routes", tags=["saved-routes"])
logger = logging.getLogger(__name__)


@router.post("", response_model=SavedRouteModel, status_code=status.HTTP_201_CREATED)
def create_saved_route(payload: SaveRouteRequest) -> SavedRouteModel:
    if len(payload.stops) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A saved route needs at least 2 stops.",
        )
    try:
        route = save_route(
            user_id=payload.user_id,
            name=payload.name.strip(),
            stops=[stop.to_domain() for stop in payload.stops],
            starting_point=payload.starting_point.to_domain() if payload.starting_point else None,
            round_trip=payload.round_trip,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error saving route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save route: {str(exc)}"
        ) from exc
    return SavedRouteModel.from_domain(route)


@router.get("", response_model=SavedRoutesResponse, status_code=status.HTTP_200_OK)
def list_saved_routes(user_id: str = Query(..., min_length=1)) -> SavedRoutesResponse:
    """Remote routes, plus any offline copies kept in the local session."""
    try:
        state = SessionStore().load(user_id) or {}
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    local = [route_from_row(row) for row in state.get("saved_routes") or []]
    routes = merge_routes(local, load_routes(user_id))
    return SavedRoutesResponse(user_id=user_id, routes=[SavedRouteModel.from_domain(route) for route in routes])


@router.delete("/{route_id}", status_code=status.HTTP_200_OK)
def remove_saved_route(route_id: str, user_id: str = Query(..., min_length=1)) -> dict:
    try:
        deleted = delete_route(route_id, user_id)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error deleting route {route_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete route: {str(exc)}"
        ) from exc
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Route {route_id} not found for user {user_id}",
        )
    return {"success": True, "message": f"Route {route_id} deleted"}


@router.get("/shared/{share_token}", response_model=SavedRouteModel, status_code=status.HTTP_200_OK)
def get_shared_route(share_token: str, user_id: str | None = Query(default=None)) -> SavedRouteModel:
    try:
        route = load_shared_route(share_token)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if route is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shared route not found")
    if user_id:
        track_route_usage(route.id, user_id, "open_shared")
    return SavedRouteModel.from_domain(route)
