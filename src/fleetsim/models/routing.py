"""Routing domain models."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .domain import Coordinate


@dataclass(slots=True, frozen=True)
class SegmentGeometry:
    """One leg of a provider route: a polyline with its own timing."""

    coordinates: tuple[Coordinate, ...]
    duration: float
    distance: float
    name: str = ""


@dataclass(slots=True, frozen=True)
class RouteResponse:
    """Route provider answer. Durations in seconds, distances in meters."""

    duration: float
    distance: float
    segments: tuple[SegmentGeometry, ...]
    provider: str = ""


@dataclass(slots=True, frozen=True)
class RouteSegment:
    index: int
    name: str
    start_time: float
    end_time: float
    duration: float
    distance: float
    coordinates: tuple[Coordinate, ...]


@dataclass(slots=True, frozen=True)
class Route:
    route_id: str
    vehicle_id: str
    demand_id: str
    start_time: int
    end_time: int
    duration: int
    distance: float
    start_location: Coordinate
    end_location: Coordinate
    segments: tuple[RouteSegment, ...]
    route_type: str = "to_demand"

    @classmethod
    def from_response(
        cls,
        *,
        route_id: str,
        vehicle_id: str,
        demand_id: str,
        response: RouteResponse,
        start_time: int,
        start_location: Coordinate,
        end_location: Coordinate,
    ) -> "Route":
        if response.duration is None or not math.isfinite(response.duration) or response.duration < 0:
            raise ValueError(f"Route duration must be a finite, non-negative number of seconds, got {response.duration!r}.")
        # whole seconds so the one-second clock can hit the arrival exactly
        duration = max(0, math.ceil(response.duration))
        segments: list[RouteSegment] = []
        cumulative = 0.0
        for index, geometry in enumerate(response.segments):
            segments.append(
                RouteSegment(
                    index=index,
                    name=geometry.name or f"Segment {index + 1}",
                    start_time=start_time + cumulative,
                    end_time=start_time + cumulative + geometry.duration,
                    duration=geometry.duration,
                    distance=geometry.distance,
                    coordinates=tuple(geometry.coordinates),
                )
            )
            cumulative += geometry.duration
        return cls(
            route_id=route_id,
            vehicle_id=vehicle_id,
            demand_id=demand_id,
            start_time=start_time,
            end_time=start_time + duration,
            duration=duration,
            distance=response.distance,
            start_location=start_location,
            end_location=end_location,
            segments=tuple(segments),
        )
