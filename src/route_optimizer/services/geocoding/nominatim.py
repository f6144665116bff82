"""Nominatim geocoding client."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ...config import settings
from ...models.domain import Coordinate

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Address lookups against a Nominatim-compatible service.

    Searches inside the configured countries and viewbox first and only then
    worldwide. Lookup failures are logged and reported as "not found".
    """

    def __init__(
        self,
        base_url: str | None = None,
        country_codes: str | None = None,
        viewbox: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.geocoder_base_url).rstrip("/")
        self.country_codes = settings.geocoder_country_codes if country_codes is None else country_codes
        self.viewbox = settings.geocoder_viewbox if viewbox is None else viewbox
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.timeout = timeout if timeout is not None else settings.geocoder_timeout_seconds
        self.transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self.transport,
        )

    def _get(self, path: str, params: dict) -> object:
        with self._get_client() as client:
            response = client.get(f"{self.base_url}/{path}", params={"format": "json", **params})
            response.raise_for_status()
            return response.json()

    def search(self, query: str, limit: int = 5, biased: bool = True) -> list[dict]:
        """Raw search results, used for address suggestions."""

        params: dict = {"q": query, "limit": limit, "dedupe": 1}
        if biased and self.country_codes:
            params["countrycodes"] = self.country_codes
            if self.viewbox:
                params["viewbox"] = self.viewbox
                params["bounded"] = 1
        data = self._get("search", params)
        return data if isinstance(data, list) else []

    def geocode(self, address: str) -> Optional[Coordinate]:
        query = address.strip()
        if not query:
            return None
        try:
            results = self.search(query, limit=3, biased=True)
            if not results and self.country_codes:
                logger.info(f"No biased results, trying worldwide search for: {query}")
                results = self.search(query, limit=3, biased=False)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Geocoding error for address '{query}': {exc}")
            return None

        for result in results:
            try:
                return Coordinate(float(result["lat"]), float(result["lon"]))
            except (KeyError, TypeError, ValueError):
                continue
        logger.warning(f"No geocoding results found for address: {query}")
        return None

    def reverse(self, coordinate: Coordinate) -> Optional[str]:
        params = {"lat": coordinate.lat, "lon": coordinate.lng, "zoom": 18, "addressdetails": 1}
        try:
            data = self._get("reverse", params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Reverse geocoding error for {coordinate.as_lat_lng()}: {exc}")
            return None
        if isinstance(data, dict) and data.get("display_name"):
            return str(data["display_name"])
        return None


def position_label(coordinate: Coordinate) -> str:
    return f"Position: {coordinate.lat:.6f}, {coordinate.lng:.6f}"
