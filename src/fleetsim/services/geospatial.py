"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(origin: Coordinate, destination: Coordinate) -> float:
    """Great-circle distance between two (lon, lat) points."""

    return haversine_km(origin[1], origin[0], destination[1], destination[0])


def destination_point(origin: Coordinate, bearing_deg: float, distance: float) -> Coordinate:
    """Point reached from ``origin`` after ``distance`` km on the initial bearing."""

    phi1 = math.radians(origin[1])
    lambda1 = math.radians(origin[0])
    theta = math.radians(bearing_deg)
    delta = distance / EARTH_RADIUS_KM

    phi2 = math.asin(math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta))
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    lon = (math.degrees(lambda2) + 540) % 360 - 180
    return (lon, math.degrees(phi2))


def point_in_polygon(point: Coordinate, ring: Sequence[Sequence[float]]) -> bool:
    """Ray-casting test of a (lon, lat) point against a ring of [lon, lat] vertices."""

    x, y = point[0], point[1]
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def planar_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance in coordinate space, used only for relative weighting."""

    return math.hypot(b[0] - a[0], b[1] - a[1])


def lerp(a: Sequence[float], b: Sequence[float], fraction: float) -> Coordinate:
    return (a[0] + (b[0] - a[0]) * fraction, a[1] + (b[1] - a[1]) * fraction)


def interpolate_polyline(points: Sequence[Sequence[float]], progress: float) -> Coordinate:
    """Position at ``progress`` (0..1) along a polyline.

    Two-vertex lines are interpolated directly. Longer lines are weighted by
    cumulative vertex-to-vertex distance so that progress maps to distance
    travelled rather than to vertex count.
    """

    if not points:
        raise ValueError("Cannot interpolate an empty polyline.")
    if len(points) == 1:
        return (points[0][0], points[0][1])
    if len(points) == 2:
        return lerp(points[0], points[1], progress)

    distances = [planar_distance(points[i], points[i + 1]) for i in range(len(points) - 1)]
    target = sum(distances) * progress
    accumulated = 0.0
    for i, step in enumerate(distances):
        if target <= accumulated + step:
            fraction = (target - accumulated) / step if step > 0 else 0.0
            return lerp(points[i], points[i + 1], fraction)
        accumulated += step
    return (points[-1][0], points[-1][1])
