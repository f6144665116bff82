"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import (
    NavigationBatchModel,
    NavigationRequest,
    NavigationResponse,
    OptimizeRequest,
    OptimizeResponse,
    RouteStateModel,
    StopModel,
)
from ...services.routing.errors import InsufficientStops, NoRouteFound
from ...services.routing.osrm_client import OSRMClient
from ...services.routing.service import RouteSession

router = APIRouter(prefix="/routes", tags=["routes"])
logger = logging.getLogger(__name__)


def _build_optimizer() -> OSRMClient | None:
    try:
        return OSRMClient()
    except ValueError as exc:
        logger.warning(f"OSRM client unavailable, optimizing locally only: {exc}")
        return None


def _session_from_payload(payload: RouteStateModel, optimizer: OSRMClient | None = None) -> RouteSession:
    stop_ids = [stop.id for stop in payload.stops]
    if len(set(stop_ids)) != len(stop_ids):
        raise ValueError("Stop ids must be unique.")
    session = RouteSession(
        optimizer=optimizer,
        stops=[stop.to_domain() for stop in payload.stops],
        starting_point=payload.starting_point.to_domain() if payload.starting_point else None,
    )
    session.set_round_trip(payload.round_trip)
    return session


@router.post("/optimize", response_model=OptimizeResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizeRequest) -> OptimizeResponse:
    try:
        session = _session_from_payload(payload, _build_optimizer())
        result = session.optimize()
    except NoRouteFound as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except (InsufficientStops, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}"
        ) from exc

    return OptimizeResponse(
        stops=[StopModel.from_domain(stop) for stop in result.tour],
        source=result.source.value,
        total_distance_km=result.total_distance_km,
        road_distance_km=result.road_distance_km,
        road_duration_min=result.road_duration_min,
        notice=result.notice,
        remote_error=result.remote_error,
        geometry=result.geometry,
        metadata=result.metadata,
    )


@router.post("/navigation", response_model=NavigationResponse, status_code=status.HTTP_200_OK)
def navigation(payload: NavigationRequest) -> NavigationResponse:
    """Split the already ordered stops into navigation links."""
    try:
        session = _session_from_payload(payload)
        batches = session.navigation_batches(max_waypoints=payload.max_waypoints)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return NavigationResponse(
        batch_count=len(batches),
        batches=[
            NavigationBatchModel(
                index=batch.index,
                origin=batch.origin.as_lat_lng(),
                destination=batch.destination.as_lat_lng(),
                waypoints=[point.as_lat_lng() for point in batch.waypoints],
                closes_loop=batch.closes_loop,
                dispatch_delay_seconds=batch.dispatch_delay_seconds,
                url=batch.url(),
            )
            for batch in batches
        ],
    )
