"""Single-demand dispatch: availability, reachability, capability, proximity."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ...errors import ConfigurationError
from ...models.domain import Coordinate, Demand, Vehicle, VehicleState
from ...models.routing import RouteResponse
from ..geospatial import distance_km, point_in_polygon
from ..providers.base import IsochroneProvider, RouteProvider
from .clock import format_seconds

logger = logging.getLogger(__name__)

MAX_WAIT_TIME_MINUTES = 60


class RejectionReason(str, Enum):
    NO_AVAILABLE_VEHICLE = "no_available_vehicle"
    OUTSIDE_ISOCHRONE = "outside_isochrone"
    JOB_TYPE_MISMATCH = "job_type_mismatch"


@dataclass(slots=True, frozen=True)
class Assignment:
    vehicle: Vehicle
    route: RouteResponse
    distance_km: float
    candidate_ids: tuple[str, ...] = ()


@dataclass(slots=True)
class DispatchResult:
    assignment: Optional[Assignment] = None
    rejection_reason: Optional[RejectionReason] = None

    @property
    def assigned(self) -> bool:
        return self.assignment is not None


def validate_wait_time_limit(minutes: int) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ConfigurationError(f"Wait time limit must be an integer number of minutes, got {minutes!r}.")
    if not 0 < minutes <= MAX_WAIT_TIME_MINUTES:
        raise ConfigurationError(f"Wait time limit must be within (0, {MAX_WAIT_TIME_MINUTES}] minutes, got {minutes}.")
    return minutes


def filter_available(vehicles: Sequence[Vehicle]) -> list[Vehicle]:
    return [v for v in vehicles if v.state is VehicleState.IDLE and v.assigned_demand_id is None]


def filter_in_polygon(vehicles: Sequence[Vehicle], ring: Sequence[Coordinate]) -> list[Vehicle]:
    return [v for v in vehicles if point_in_polygon(v.location, ring)]


def filter_by_job_type(vehicles: Sequence[Vehicle], job_type: str) -> list[Vehicle]:
    return [v for v in vehicles if v.accepts(job_type)]


def select_closest(vehicles: Sequence[Vehicle], target: Coordinate) -> tuple[Optional[Vehicle], float]:
    """Nearest vehicle by great-circle distance; the first in roster order wins ties."""

    closest: Optional[Vehicle] = None
    best = float("inf")
    for vehicle in vehicles:
        distance = distance_km(vehicle.location, target)
        logger.debug(f"  {vehicle.name}: {distance:.3f} km")
        if distance < best:
            best = distance
            closest = vehicle
    return closest, best


class DispatchAlgorithm:
    """Choose at most one vehicle for a demand.

    Provider failures raise :class:`~fleetsim.errors.ProviderError`; the caller
    decides how to record them.
    """

    def __init__(self, isochrone_provider: IsochroneProvider, route_provider: RouteProvider) -> None:
        self.isochrone_provider = isochrone_provider
        self.route_provider = route_provider

    def try_dispatch(
        self,
        demand: Demand,
        roster: Sequence[Vehicle],
        wait_time_limit_minutes: int,
        now: int,
    ) -> DispatchResult:
        validate_wait_time_limit(wait_time_limit_minutes)

        candidates = filter_available(roster)
        logger.debug(f"{demand.demand_id}: {len(candidates)}/{len(roster)} vehicles available")
        if not candidates:
            return DispatchResult(rejection_reason=RejectionReason.NO_AVAILABLE_VEHICLE)

        ring = self.isochrone_provider.get(demand.location, wait_time_limit_minutes)
        candidates = filter_in_polygon(candidates, ring)
        logger.debug(f"{demand.demand_id}: {len(candidates)} vehicles inside {wait_time_limit_minutes} min isochrone")
        if not candidates:
            return DispatchResult(rejection_reason=RejectionReason.OUTSIDE_ISOCHRONE)

        candidates = filter_by_job_type(candidates, demand.job_type)
        logger.debug(f"{demand.demand_id}: {len(candidates)} vehicles accept job type '{demand.job_type}'")
        if not candidates:
            return DispatchResult(rejection_reason=RejectionReason.JOB_TYPE_MISMATCH)

        vehicle, distance = select_closest(candidates, demand.location)
        route = self.route_provider.get(vehicle.location, demand.location, departure_hint=format_seconds(now))
        return DispatchResult(
            assignment=Assignment(
                vehicle=vehicle,
                route=route,
                distance_km=distance,
                candidate_ids=tuple(v.vehicle_id for v in candidates),
            ),
        )
