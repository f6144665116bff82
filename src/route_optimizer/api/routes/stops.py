"""Stop geocoding endpoints."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, HTTPException, Query, status

from ...schemas.routing import StartingPointModel, StopModel
from ...schemas.stops import (
    GeocodeRequest,
    ParseTextRequest,
    ParseTextResponse,
    ReverseGeocodeRequest,
    ReverseGeocodeResponse,
    SuggestionModel,
    SuggestionsResponse,
)
from ...services.geocoding.nominatim import NominatimGeocoder
from ...services.routing.service import RouteSession

router = APIRouter(prefix="/stops", tags=["stops"])
logger = logging.getLogger(__name__)


@router.post("/geocode", response_model=StopModel, status_code=status.HTTP_201_CREATED)
def geocode_stop(payload: GeocodeRequest) -> StopModel:
    session = RouteSession(geocoder=NominatimGeocoder())
    stop = session.add_stop(payload.address)
    if stop is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Address could not be found: {payload.address}",
        )
    return StopModel.from_domain(stop)


@router.post("/parse", response_model=ParseTextResponse, status_code=status.HTTP_200_OK)
def parse_text(payload: ParseTextRequest) -> ParseTextResponse:
    """Extract addresses from pasted text and geocode each of them."""
    session = RouteSession(geocoder=NominatimGeocoder())
    added, failed = session.add_stops_from_text(payload.text)
    if not added and not failed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No addresses found in text.")
    return ParseTextResponse(added=[StopModel.from_domain(stop) for stop in added], failed=failed)


@router.post("/reverse", response_model=ReverseGeocodeResponse, status_code=status.HTTP_200_OK)
def reverse_geocode(payload: ReverseGeocodeRequest) -> ReverseGeocodeResponse:
    """Turn the device position into a starting point."""
    session = RouteSession(geocoder=NominatimGeocoder())
    start = session.use_current_location(payload.to_domain())
    resolved = not start.address.startswith("Position:")
    return ReverseGeocodeResponse(starting_point=StartingPointModel.from_domain(start), resolved=resolved)


@router.get("/suggestions", response_model=SuggestionsResponse, status_code=status.HTTP_200_OK)
def suggestions(q: str = Query(..., min_length=3, description="Partial address")) -> SuggestionsResponse:
    try:
        results = NominatimGeocoder().search(q, limit=5, biased=True)
    except httpx.HTTPError as exc:
        logger.warning(f"Address suggestions failed for '{q}': {exc}")
        return SuggestionsResponse(query=q, suggestions=[], error=str(exc))

    items: list[SuggestionModel] = []
    for result in results:
        try:
            items.append(
                SuggestionModel(
                    address=str(result.get("display_name") or q),
                    lat=float(result["lat"]),
                    lng=float(result["lon"]),
                )
            )
        except (KeyError, TypeError, ValueError):
            continue
    return SuggestionsResponse(query=q, suggestions=items)
