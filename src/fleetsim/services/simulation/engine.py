"""Discrete-time simulation loop.

The clock advances one second at a time over the operating window. Each tick:
check cancellation, dispatch demands requested at this second, refresh the
positions of moving vehicles, then fire arrivals and job completions that fall
exactly on this second.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Sequence

from ...errors import ProviderError
from ...models.domain import Demand, DemandStatus, Event, Vehicle, VehicleState
from ...models.routing import Route
from ..job_types import JobTypeCatalog
from ..providers.base import IsochroneProvider, RouteProvider
from .clock import OperatingWindow, format_seconds
from .dispatch import DispatchAlgorithm, validate_wait_time_limit
from .vehicle_state import VehicleStateManager

if TYPE_CHECKING:
    from ...data.project_repository import SimulationProject

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ProgressUpdate:
    progress: float
    current_time: str
    message: str
    completed: int
    rejected: int
    pending: int
    status: str = "running"

    def to_dict(self) -> dict:
        return asdict(self)


class ProgressSink(Protocol):
    def __call__(self, update: ProgressUpdate) -> None:
        ...


CancellationCheck = Callable[[], bool]


@dataclass(slots=True)
class SimulationStats:
    completed: int = 0
    # includes provider errors
    rejected: int = 0
    errored: int = 0
    total_wait_time: int = 0
    total_service_time: int = 0


@dataclass(slots=True, frozen=True)
class SimulationSummary:
    vehicle_count: int
    demand_count: int
    completed_demands: int
    rejected_demands: int
    errored_demands: int
    completion_rate: float
    average_wait_time: float
    average_service_time: float
    vehicle_utilization_rate: float
    total_duration_seconds: int


class SimulationEngine:
    def __init__(
        self,
        *,
        vehicles: Sequence[Vehicle],
        demands: Sequence[Demand],
        window: OperatingWindow,
        wait_time_limit: int,
        isochrone_provider: IsochroneProvider,
        route_provider: RouteProvider,
        catalog: JobTypeCatalog | None = None,
        name: str = "simulation",
        progress_interval: int = 60,
        log_interval: int = 600,
        snapshot_interval: int = 60,
    ) -> None:
        self.name = name
        self.window = window
        self.wait_time_limit = validate_wait_time_limit(wait_time_limit)
        self.catalog = catalog or JobTypeCatalog()
        self.state = VehicleStateManager(vehicles)
        self.dispatcher = DispatchAlgorithm(isochrone_provider, route_provider)
        self.demands: list[Demand] = sorted(demands, key=lambda d: d.timestamp)
        self._demands_by_id = {demand.demand_id: demand for demand in self.demands}
        self.routes: list[Route] = []
        self.events: list[Event] = []
        self.stats = SimulationStats()
        self.progress_interval = progress_interval
        self.log_interval = log_interval
        self.snapshot_interval = snapshot_interval
        self.now = window.start
        self.cancelled = False
        self.summary: Optional[SimulationSummary] = None

    @classmethod
    def from_project(
        cls,
        project: "SimulationProject",
        *,
        isochrone_provider: IsochroneProvider,
        route_provider: RouteProvider,
        **kwargs: Any,
    ) -> "SimulationEngine":
        return cls(
            vehicles=project.vehicles,
            demands=project.demands,
            window=project.window,
            wait_time_limit=project.wait_time_limit,
            catalog=project.catalog,
            name=project.name,
            isochrone_provider=isochrone_provider,
            route_provider=route_provider,
            **kwargs,
        )

    @property
    def vehicles(self) -> list[Vehicle]:
        return self.state.vehicles

    def run(
        self,
        progress: ProgressSink | None = None,
        is_cancelled: CancellationCheck | None = None,
    ) -> Optional[SimulationSummary]:
        """Run from window start to end. Returns ``None`` when cancelled."""

        window = self.window
        logger.info(
            f"Starting simulation '{self.name}': {len(self.state)} vehicles, {len(self.demands)} demands, "
            f"{format_seconds(window.start)} ~ {format_seconds(window.end)} ({window.duration}s)"
        )
        self._record_event("simulation_start", vehicles=len(self.state), demands=len(self.demands))
        for vehicle in self.state:
            self.state.record(vehicle, self.now, "simulation_start")

        demand_index = 0
        while self.now <= window.end:
            if is_cancelled is not None and is_cancelled():
                self.cancelled = True
                logger.info(f"Simulation '{self.name}' cancelled at {format_seconds(self.now)}")
                return None

            elapsed = self.now - window.start
            if elapsed % self.log_interval == 0:
                logger.info(f"{format_seconds(self.now)} - progress {self._progress_percent():.1f}%")
            if progress is not None and elapsed % self.progress_interval == 0:
                progress(self._progress_update())

            while demand_index < len(self.demands) and self.demands[demand_index].timestamp <= self.now:
                demand = self.demands[demand_index]
                demand_index += 1
                if demand.timestamp < self.now:
                    logger.warning(f"{demand.demand_id} requested before the operating window; left pending")
                    continue
                self._process_demand(demand)

            moving = self.state.refresh_positions(self.now)
            if self.snapshot_interval and elapsed % self.snapshot_interval == 0:
                for vehicle in moving:
                    self.state.record(vehicle, self.now, "position")

            self._check_transitions()
            self.now += 1

        self._record_event(
            "simulation_end",
            completed_demands=self.stats.completed,
            rejected_demands=self.stats.rejected,
            errored_demands=self.stats.errored,
        )
        self.state.finalize_idle_time(window.duration)
        self.summary = self._summarize()
        logger.info(
            f"Simulation '{self.name}' completed: {self.summary.completed_demands}/{self.summary.demand_count} "
            f"completed, {self.summary.rejected_demands} rejected ({self.summary.errored_demands} errors), "
            f"avg wait {self.summary.average_wait_time:.1f}s, utilization {self.summary.vehicle_utilization_rate * 100:.1f}%"
        )
        if progress is not None:
            progress(
                ProgressUpdate(
                    progress=100.0,
                    current_time=format_seconds(window.end),
                    message="Simulation completed",
                    completed=self.stats.completed,
                    rejected=self.stats.rejected,
                    pending=self._pending_count(),
                    status="completed",
                )
            )
        return self.summary

    def _process_demand(self, demand: Demand) -> None:
        self._record_event(
            "demand_occurred",
            demand_id=demand.demand_id,
            location=demand.location,
            job_type=demand.job_type,
        )
        try:
            result = self.dispatcher.try_dispatch(demand, self.state.vehicles, self.wait_time_limit, self.now)
            if result.assigned:
                route = Route.from_response(
                    route_id=f"route_{len(self.routes) + 1:03d}",
                    vehicle_id=result.assignment.vehicle.vehicle_id,
                    demand_id=demand.demand_id,
                    response=result.assignment.route,
                    start_time=self.now,
                    start_location=result.assignment.vehicle.location,
                    end_location=demand.location,
                )
        except ProviderError as exc:
            logger.exception(f"{demand.demand_id}: provider failure: {exc}")
            self._mark_error(demand, str(exc))
            return
        except Exception as exc:
            logger.exception(f"{demand.demand_id}: dispatch failed: {exc}")
            self._mark_error(demand, str(exc))
            return

        if not result.assigned:
            demand.status = DemandStatus.REJECTED
            demand.rejection_reason = result.rejection_reason.value
            self.stats.rejected += 1
            self._record_event("demand_rejected", demand_id=demand.demand_id, reason=demand.rejection_reason)
            logger.debug(f"{demand.demand_id} rejected: {demand.rejection_reason}")
            return

        assignment = result.assignment
        vehicle = assignment.vehicle
        self.routes.append(route)
        self.state.dispatch(vehicle.vehicle_id, demand.demand_id, route, demand.location, self.now)

        demand.status = DemandStatus.ASSIGNED
        demand.assigned_vehicle_id = vehicle.vehicle_id
        demand.timeline.mark("dispatched", self.now)
        demand.dispatch_info = {
            "dispatch_time": self.now,
            "wait_time": self.now - demand.timestamp,
            "wait_time_limit": self.wait_time_limit,
            "candidate_vehicles": list(assignment.candidate_ids),
            "selected_reason": "closest_distance",
            "distance_to_vehicle_km": assignment.distance_km,
        }
        self._record_event(
            "vehicle_dispatched",
            vehicle_id=vehicle.vehicle_id,
            demand_id=demand.demand_id,
            route_id=route.route_id,
        )
        logger.debug(
            f"{demand.demand_id} assigned to {vehicle.name} ({assignment.distance_km:.2f} km, ETA {route.duration}s)"
        )

    def _mark_error(self, demand: Demand, message: str) -> None:
        demand.status = DemandStatus.ERROR
        demand.error = message
        self.stats.rejected += 1
        self.stats.errored += 1
        self._record_event("demand_error", demand_id=demand.demand_id, error=message)

    def _check_transitions(self) -> None:
        for vehicle in self.state:
            if vehicle.state is VehicleState.MOVING and vehicle.estimated_arrival == self.now:
                self._handle_arrival(vehicle)
            if vehicle.state is VehicleState.WORKING and vehicle.service_end_time == self.now:
                self._handle_completion(vehicle)

    def _handle_arrival(self, vehicle: Vehicle) -> None:
        demand = self._demands_by_id[vehicle.assigned_demand_id]
        service_time = self.catalog.service_seconds(demand.job_type)
        self.state.arrive(vehicle.vehicle_id, self.now, service_time)

        demand.timeline.mark("arrived", self.now)
        demand.timeline.mark("work_started", self.now)
        demand.metrics.wait_time = self.now - demand.timestamp
        demand.metrics.service_time = service_time

        self._record_event("vehicle_arrived", vehicle_id=vehicle.vehicle_id, demand_id=demand.demand_id)
        self._record_event("work_started", vehicle_id=vehicle.vehicle_id, demand_id=demand.demand_id)

    def _handle_completion(self, vehicle: Vehicle) -> None:
        demand = self._demands_by_id[self.state.complete(vehicle.vehicle_id, self.now)]

        demand.status = DemandStatus.COMPLETED
        demand.timeline.mark("work_completed", self.now)
        demand.metrics.total_time = self.now - demand.timestamp

        self.stats.completed += 1
        self.stats.total_wait_time += demand.metrics.wait_time
        self.stats.total_service_time += demand.metrics.service_time
        self._record_event("work_completed", vehicle_id=vehicle.vehicle_id, demand_id=demand.demand_id)

    def _record_event(self, event_type: str, **data: Any) -> None:
        self.events.append(Event(timestamp=self.now, type=event_type, data=data))

    def _pending_count(self) -> int:
        return len(self.demands) - self.stats.completed - self.stats.rejected

    def _progress_percent(self) -> float:
        if not self.window.duration:
            return 100.0
        return round((self.now - self.window.start) / self.window.duration * 100, 1)

    def _progress_update(self) -> ProgressUpdate:
        percent = self._progress_percent()
        current = format_seconds(self.now)
        return ProgressUpdate(
            progress=percent,
            current_time=current,
            message=f"Processing: {current} ({percent}%)",
            completed=self.stats.completed,
            rejected=self.stats.rejected,
            pending=self._pending_count(),
        )

    def _summarize(self) -> SimulationSummary:
        vehicles = self.state.vehicles
        completed = self.stats.completed
        demand_count = len(self.demands)
        active_time = sum(v.statistics.moving_time + v.statistics.working_time for v in vehicles)
        capacity = self.window.duration * len(vehicles)
        return SimulationSummary(
            vehicle_count=len(vehicles),
            demand_count=demand_count,
            completed_demands=completed,
            rejected_demands=self.stats.rejected,
            errored_demands=self.stats.errored,
            completion_rate=completed / demand_count if demand_count else 0.0,
            average_wait_time=self.stats.total_wait_time / completed if completed else 0.0,
            average_service_time=self.stats.total_service_time / completed if completed else 0.0,
            vehicle_utilization_rate=active_time / capacity if capacity else 0.0,
            total_duration_seconds=self.window.duration,
        )
