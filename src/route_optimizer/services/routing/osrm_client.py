"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinate
from ...schemas.osrm import (
    NO_ROUTE_CODES,
    RouteResponse,
    TripResponse,
    parse_route_response,
    parse_trip_response,
)
from .errors import NoRouteFound, RemoteResponseInvalid, RemoteUnavailable

logger = logging.getLogger(__name__)


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self.transport,
        )

    def _get_json(self, service: str, coordinates: Sequence[Coordinate], params: dict) -> object:
        """GET an OSRM service, retrying transient failures with exponential backoff."""

        coordinate_str = ";".join(coordinate.as_lng_lat() for coordinate in coordinates)
        url = f"{self.base_url}/{service}/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    # OSRM answers "no route" with a 400 and a JSON body carrying the code.
                    code = _error_code(e.response)
                    if code in NO_ROUTE_CODES:
                        raise NoRouteFound(f"OSRM {service} found no route ({code})", code=code) from e
                    if e.response.status_code < 500:
                        raise RemoteUnavailable(
                            f"OSRM {service} request rejected with HTTP {e.response.status_code}"
                            + (f" ({code})" if code else ""),
                            code=code,
                        ) from e
                    attempt += 1
                    if attempt > self.max_retries:
                        raise RemoteUnavailable(
                            f"OSRM {service} request failed with HTTP {e.response.status_code}"
                        ) from e
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM {service} request timed out after {self.max_retries} retries: {e}")
                        raise RemoteUnavailable(f"OSRM {service} request timed out") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM {service} timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.TransportError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise RemoteUnavailable(f"Failed to connect to OSRM service at {self.base_url}: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
                except ValueError as e:
                    raise RemoteResponseInvalid(f"OSRM {service} response is not valid JSON") from e
        finally:
            client.close()

    def trip(self, coordinates: Sequence[Coordinate], roundtrip: bool) -> TripResponse:
        """Ask the trip service for a visiting order that starts at the first coordinate."""

        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM trip.")
        params = {
            "roundtrip": "true" if roundtrip else "false",
            "source": "first",
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
        }
        return parse_trip_response(self._get_json("trip", coordinates, params))

    def route(self, coordinates: Sequence[Coordinate]) -> RouteResponse:
        """Get a route through the coordinates in the given order."""

        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "false",
        }
        return parse_route_response(self._get_json("route", coordinates, params))


def _error_code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("code"), str):
        return body["code"]
    return None


def check_health(base_url: str | None = None, get: Callable[..., httpx.Response] = httpx.get) -> bool:
    """Check OSRM service health with a minimal two-point route request."""

    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "14.437800,50.075500;14.420800,50.087400"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError, AttributeError):
        return False
