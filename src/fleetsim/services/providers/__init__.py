"""Provider selection based on configuration."""

from __future__ import annotations

from ...config import settings
from .base import IsochroneProvider, RouteProvider
from .fallback import CircularIsochroneProvider, StraightLineRouteProvider
from .mapbox import MapboxIsochroneProvider
from .osrm_client import OSRMRouteProvider


def get_route_provider(method: str | None = None) -> RouteProvider:
    method = method or ("osrm" if settings.osrm_base_url else "straight_line")
    match method:
        case "osrm":
            return OSRMRouteProvider()
        case "straight_line":
            return StraightLineRouteProvider()
        case _:
            raise ValueError(f"Unknown route provider '{method}'.")


def get_isochrone_provider(method: str | None = None) -> IsochroneProvider:
    method = method or ("mapbox" if settings.mapbox_token else "circle")
    match method:
        case "mapbox":
            return MapboxIsochroneProvider()
        case "circle":
            return CircularIsochroneProvider()
        case _:
            raise ValueError(f"Unknown isochrone provider '{method}'.")


__all__ = [
    "IsochroneProvider",
    "RouteProvider",
    "get_isochrone_provider",
    "get_route_provider",
]
