"""Isochrone provider backed by the Mapbox Isochrone API."""

from __future__ import annotations

import logging

import httpx
from shapely.geometry import MultiPolygon, Polygon, shape

from ...config import settings
from ...errors import ProviderError
from ...models.domain import Coordinate
from .base import close_ring, request_json

logger = logging.getLogger(__name__)


class MapboxIsochroneProvider:
    name = "mapbox"

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        profile: str | None = None,
        client: httpx.Client | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.access_token = access_token or settings.mapbox_token
        if not self.access_token:
            raise ValueError("Mapbox access token is not configured.")
        self.base_url = (base_url or settings.mapbox_base_url).rstrip("/")
        self.profile = profile or settings.isochrone_profile
        self.max_retries = max_retries if max_retries is not None else settings.provider_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.provider_backoff_seconds
        self._client = client or httpx.Client(timeout=settings.provider_timeout_seconds)

    def get(self, origin: Coordinate, minutes: int) -> list[Coordinate]:
        url = f"{self.base_url}/isochrone/v1/{self.profile}/{origin[0]},{origin[1]}"
        params = {
            "contours_minutes": minutes,
            "polygons": "true",
            "access_token": self.access_token,
        }
        data = request_json(
            self._client,
            url,
            params,
            provider=self.name,
            max_retries=self.max_retries,
            backoff_seconds=self.backoff_seconds,
        )
        features = data.get("features") or []
        if not features or not features[0].get("geometry"):
            raise ProviderError(self.name, "Isochrone response is empty.")
        return outer_ring(features[0]["geometry"])

    def close(self) -> None:
        self._client.close()


def outer_ring(geometry: dict) -> list[Coordinate]:
    """Exterior ring of a GeoJSON Polygon, or of the largest part of a MultiPolygon."""

    try:
        polygon = shape(geometry)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ProviderError(MapboxIsochroneProvider.name, f"Malformed isochrone geometry: {exc}") from exc
    if isinstance(polygon, MultiPolygon):
        polygon = max(polygon.geoms, key=lambda part: part.area)
    if not isinstance(polygon, Polygon) or polygon.is_empty:
        raise ProviderError(MapboxIsochroneProvider.name, f"Unsupported isochrone geometry '{geometry.get('type')}'.")
    return close_ring(polygon.exterior.coords)
