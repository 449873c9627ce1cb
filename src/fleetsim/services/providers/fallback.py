"""Offline providers used when no routing or isochrone service is configured."""

from __future__ import annotations

import math

from ...config import settings
from ...models.domain import Coordinate
from ...models.routing import RouteResponse, SegmentGeometry
from ..geospatial import destination_point, distance_km
from .base import close_ring


class StraightLineRouteProvider:
    """Direct route at a constant speed, as a single two-vertex segment."""

    name = "straight_line"

    def __init__(self, speed_kmh: float | None = None) -> None:
        self.speed_kmh = speed_kmh or settings.fallback_speed_kmh

    def get(self, origin: Coordinate, destination: Coordinate, departure_hint: str | None = None) -> RouteResponse:
        km = distance_km(origin, destination)
        duration = math.ceil(km * 3600 / self.speed_kmh)
        segment = SegmentGeometry(
            coordinates=(origin, destination),
            duration=duration,
            distance=km * 1000,
            name="Direct route",
        )
        return RouteResponse(duration=duration, distance=km * 1000, segments=(segment,), provider=self.name)

    def close(self) -> None:
        pass


class CircularIsochroneProvider:
    """Geodesic circle whose radius is the distance covered in ``minutes``."""

    name = "circle"

    def __init__(self, speed_kmh: float | None = None, vertices: int = 64) -> None:
        self.speed_kmh = speed_kmh or settings.fallback_speed_kmh
        self.vertices = vertices

    def get(self, origin: Coordinate, minutes: int) -> list[Coordinate]:
        radius_km = self.speed_kmh * minutes / 60.0
        points = [destination_point(origin, 360.0 * i / self.vertices, radius_km) for i in range(self.vertices)]
        return close_ring(points)

    def close(self) -> None:
        pass
