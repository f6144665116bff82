"""Stop creation and geocoding schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .routing import CoordinateModel, StartingPointModel, StopModel


class GeocodeRequest(BaseModel):
    address: str = Field(..., min_length=1)


class ParseTextRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Free text containing one or more addresses.")


class ParseTextResponse(BaseModel):
    added: List[StopModel]
    failed: List[str]


class ReverseGeocodeRequest(CoordinateModel):
    pass


class ReverseGeocodeResponse(BaseModel):
    starting_point: StartingPointModel
    resolved: bool = Field(..., description="False when the address is a coordinate label.")


class SuggestionModel(BaseModel):
    address: str
    lat: float
    lng: float


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[SuggestionModel]
    error: Optional[str] = None
