"""Route provider backed by an OSRM server."""

from __future__ import annotations

import logging
import math

import httpx

from ...config import settings
from ...errors import ProviderError
from ...models.domain import Coordinate
from ...models.routing import RouteResponse, SegmentGeometry
from .base import request_json

logger = logging.getLogger(__name__)


class OSRMRouteProvider:
    """Fetch turn-by-turn routes; each OSRM step becomes one timed segment."""

    name = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        client: httpx.Client | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.max_retries = max_retries if max_retries is not None else settings.provider_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.provider_backoff_seconds
        self._client = client or httpx.Client(timeout=httpx.Timeout(settings.provider_timeout_seconds, connect=10.0))

    def get(self, origin: Coordinate, destination: Coordinate, departure_hint: str | None = None) -> RouteResponse:
        # OSRM has no departure-time input; the hint is only logged.
        coordinate_str = f"{origin[0]},{origin[1]};{destination[0]},{destination[1]}"
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        params = {
            "overview": "false",
            "geometries": "polyline",
            "steps": "true",
        }
        logger.debug(f"OSRM route {coordinate_str} (departure {departure_hint})")
        data = request_json(
            self._client,
            url,
            params,
            provider=self.name,
            max_retries=self.max_retries,
            backoff_seconds=self.backoff_seconds,
        )
        if data.get("code") != "Ok" or not data.get("routes"):
            raise ProviderError(self.name, data.get("message") or f"No route found ({data.get('code')})")
        return parse_route(data["routes"][0])

    def close(self) -> None:
        self._client.close()


def parse_route(route: dict) -> RouteResponse:
    segments: list[SegmentGeometry] = []
    for leg in route.get("legs", []):
        for step in leg.get("steps", []):
            geometry = step.get("geometry")
            if not geometry:
                continue
            coordinates = tuple((lon, lat) for lat, lon in decode_polyline(geometry))
            if len(coordinates) < 2:
                continue
            segments.append(
                SegmentGeometry(
                    coordinates=coordinates,
                    duration=float(step.get("duration", 0.0)),
                    distance=float(step.get("distance", 0.0)),
                    name=step.get("name") or "",
                )
            )
    try:
        duration = float(route["duration"])
        distance = float(route.get("distance") or 0.0)
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(OSRMRouteProvider.name, f"Route without a usable duration: {exc}") from exc
    if not math.isfinite(duration) or duration < 0:
        raise ProviderError(OSRMRouteProvider.name, f"Invalid route duration {duration!r}")
    return RouteResponse(
        duration=duration,
        distance=distance,
        segments=tuple(segments),
        provider=OSRMRouteProvider.name,
    )


def decode_polyline(polyline: str) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates.

    OSRM uses Google's polyline encoding format for route geometry.
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlat = ~(result >> 1) if (result & 1) else (result >> 1)
        lat += dlat

        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlon = ~(result >> 1) if (result & 1) else (result >> 1)
        lon += dlon

        coordinates.append((lat / 1e5, lon / 1e5))

    return coordinates


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM reachability with a minimal two-point route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
