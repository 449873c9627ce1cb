"""Vehicle roster, state machine and route-following position interpolation."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

from ...errors import InvalidTransitionError, UnknownVehicleError
from ...models.domain import Coordinate, TimelineEntry, Vehicle, VehicleState
from ...models.routing import Route
from ..geospatial import interpolate_polyline, lerp

logger = logging.getLogger(__name__)


class VehicleStateManager:
    """Owns every vehicle record of a run.

    Vehicles are kept in roster order with an id index; transitions are only
    made through :meth:`dispatch`, :meth:`arrive`, :meth:`complete` and
    :meth:`set_out_of_service`.
    """

    def __init__(self, vehicles: Iterable[Vehicle] = ()) -> None:
        self._vehicles: list[Vehicle] = []
        self._index: dict[str, int] = {}
        for vehicle in vehicles:
            self.register(vehicle)

    def register(self, vehicle: Vehicle) -> None:
        if vehicle.vehicle_id in self._index:
            raise ValueError(f"Duplicate vehicle id '{vehicle.vehicle_id}'.")
        self._index[vehicle.vehicle_id] = len(self._vehicles)
        self._vehicles.append(vehicle)
        logger.debug(
            f"Registered {vehicle.name} at {vehicle.location} (job types: {', '.join(vehicle.job_types)})"
        )

    def get(self, vehicle_id: str) -> Vehicle:
        try:
            return self._vehicles[self._index[vehicle_id]]
        except KeyError:
            raise UnknownVehicleError(vehicle_id) from None

    @property
    def vehicles(self) -> list[Vehicle]:
        return list(self._vehicles)

    def __iter__(self) -> Iterator[Vehicle]:
        return iter(self._vehicles)

    def __len__(self) -> int:
        return len(self._vehicles)

    def available(self) -> list[Vehicle]:
        return [v for v in self._vehicles if v.state is VehicleState.IDLE and v.assigned_demand_id is None]

    def in_state(self, state: VehicleState) -> list[Vehicle]:
        return [v for v in self._vehicles if v.state is state]

    def record(self, vehicle: Vehicle, timestamp: int, entry_type: str, **data: Any) -> TimelineEntry:
        entry = TimelineEntry(
            timestamp=timestamp,
            type=entry_type,
            state=vehicle.state.value,
            location=vehicle.location,
            data=data,
        )
        vehicle.timeline.append(entry)
        return entry

    def dispatch(
        self,
        vehicle_id: str,
        demand_id: str,
        route: Route,
        target_location: Coordinate,
        now: int,
    ) -> Vehicle:
        vehicle = self.get(vehicle_id)
        if vehicle.state is not VehicleState.IDLE or vehicle.assigned_demand_id is not None:
            raise InvalidTransitionError(f"{vehicle.name} cannot be dispatched while {vehicle.state.value}.")

        vehicle.assigned_demand_id = demand_id
        vehicle.route = route
        vehicle.route_start_time = now
        vehicle.estimated_arrival = now + route.duration
        vehicle.target_location = target_location
        vehicle.state = VehicleState.MOVING
        self.record(
            vehicle,
            now,
            "demand_assigned",
            demand_id=demand_id,
            route_id=route.route_id,
            target_location=target_location,
            estimated_arrival=vehicle.estimated_arrival,
        )
        logger.debug(f"{vehicle.name} dispatched to {demand_id} (ETA {vehicle.estimated_arrival})")
        return vehicle

    def arrive(self, vehicle_id: str, now: int, service_duration: int) -> Vehicle:
        vehicle = self.get(vehicle_id)
        if vehicle.state is not VehicleState.MOVING or vehicle.route is None:
            raise InvalidTransitionError(f"{vehicle.name} cannot arrive while {vehicle.state.value}.")

        if vehicle.target_location is not None:
            vehicle.location = vehicle.target_location
        vehicle.service_start_time = now
        vehicle.service_end_time = now + service_duration
        vehicle.state = VehicleState.WORKING

        stats = vehicle.statistics
        stats.total_distance_km += vehicle.route.distance / 1000
        stats.moving_time += now - vehicle.route_start_time

        self.record(
            vehicle,
            now,
            "arrived_at_demand",
            demand_id=vehicle.assigned_demand_id,
            service_time=service_duration,
            estimated_completion=vehicle.service_end_time,
        )
        logger.debug(f"{vehicle.name} arrived at {vehicle.assigned_demand_id}")
        return vehicle

    def complete(self, vehicle_id: str, now: int) -> str:
        """Finish the current job and return the id of the completed demand."""

        vehicle = self.get(vehicle_id)
        if vehicle.state is not VehicleState.WORKING:
            raise InvalidTransitionError(f"{vehicle.name} cannot complete work while {vehicle.state.value}.")

        demand_id = vehicle.assigned_demand_id
        stats = vehicle.statistics
        stats.total_jobs += 1
        stats.working_time += vehicle.service_end_time - vehicle.service_start_time

        vehicle.assigned_demand_id = None
        vehicle.route = None
        vehicle.route_start_time = None
        vehicle.estimated_arrival = None
        vehicle.target_location = None
        vehicle.service_start_time = None
        vehicle.service_end_time = None
        vehicle.state = VehicleState.IDLE

        self.record(vehicle, now, "work_completed", demand_id=demand_id)
        logger.debug(f"{vehicle.name} completed {demand_id} ({stats.total_jobs} jobs)")
        return demand_id

    def set_out_of_service(self, vehicle_id: str, now: int) -> Vehicle:
        vehicle = self.get(vehicle_id)
        if vehicle.state is not VehicleState.IDLE:
            raise InvalidTransitionError(f"{vehicle.name} is {vehicle.state.value} and cannot leave service.")
        vehicle.state = VehicleState.OUT_OF_SERVICE
        self.record(vehicle, now, "out_of_service")
        return vehicle

    def position_at(self, vehicle: Vehicle, now: int) -> Coordinate:
        """Where the vehicle is at ``now``.

        Idle and working vehicles stay put. Moving vehicles follow their route:
        the segment whose ``[start_time, end_time)`` holds ``now`` is located and
        the position is interpolated along its polyline. Routes without segment
        geometry fall back to a straight line between the route endpoints.
        """

        route = vehicle.route
        if vehicle.state is not VehicleState.MOVING or route is None:
            return vehicle.location
        if now <= vehicle.route_start_time:
            return route.start_location
        if now >= vehicle.estimated_arrival:
            return route.end_location

        if not route.segments:
            progress = (now - vehicle.route_start_time) / (vehicle.estimated_arrival - vehicle.route_start_time)
            return lerp(route.start_location, route.end_location, progress)

        for segment in route.segments:
            if segment.start_time <= now < segment.end_time:
                progress = (now - segment.start_time) / segment.duration
                return interpolate_polyline(segment.coordinates, progress)

        last = route.segments[-1].coordinates[-1]
        return (last[0], last[1])

    def refresh_positions(self, now: int) -> list[Vehicle]:
        moving = self.in_state(VehicleState.MOVING)
        for vehicle in moving:
            vehicle.location = self.position_at(vehicle, now)
        return moving

    def state_distribution(self) -> dict[str, int]:
        distribution = {state.value: 0 for state in VehicleState}
        for vehicle in self._vehicles:
            distribution[vehicle.state.value] += 1
        return distribution

    def fleet_statistics(self) -> dict:
        total = len(self._vehicles)
        idle = len(self.in_state(VehicleState.IDLE))
        busy = total - idle
        return {
            "total_vehicles": total,
            "idle_vehicles": idle,
            "busy_vehicles": busy,
            "total_jobs": sum(v.statistics.total_jobs for v in self._vehicles),
            "utilization_rate": round(busy / total * 100, 2) if total else 0.0,
        }

    def finalize_idle_time(self, window_duration: int) -> None:
        for vehicle in self._vehicles:
            stats = vehicle.statistics
            stats.idle_time = max(0, window_duration - stats.moving_time - stats.working_time)
