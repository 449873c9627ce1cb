"""Domain models for vehicles, demands and the logs they produce."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .routing import Route

# (longitude, latitude)
Coordinate = tuple[float, float]


class VehicleState(str, Enum):
    IDLE = "idle"
    MOVING = "moving"
    WORKING = "working"
    OUT_OF_SERVICE = "out_of_service"


class DemandStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    REJECTED = "rejected"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class JobType:
    """A job label and the on-site service time it requires."""

    job: str
    service_minutes: int
    job_type_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Event:
    timestamp: int
    type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class TimelineEntry:
    timestamp: int
    type: str
    state: str
    location: Coordinate
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class VehicleStatistics:
    total_jobs: int = 0
    total_distance_km: float = 0.0
    moving_time: int = 0
    working_time: int = 0
    idle_time: int = 0


@dataclass(slots=True)
class Vehicle:
    """A fleet vehicle and its live simulation state."""

    vehicle_id: str
    name: str
    initial_location: Coordinate
    job_types: tuple[str, ...]
    capacity: Optional[int] = None
    location: Optional[Coordinate] = None
    state: VehicleState = VehicleState.IDLE
    assigned_demand_id: Optional[str] = None
    route: Optional["Route"] = None
    route_start_time: Optional[int] = None
    estimated_arrival: Optional[int] = None
    target_location: Optional[Coordinate] = None
    service_start_time: Optional[int] = None
    service_end_time: Optional[int] = None
    timeline: list[TimelineEntry] = field(default_factory=list)
    statistics: VehicleStatistics = field(default_factory=VehicleStatistics)

    def __post_init__(self) -> None:
        if self.location is None:
            self.location = self.initial_location

    def accepts(self, job_type: str) -> bool:
        return job_type in self.job_types


MILESTONES = ("requested", "dispatched", "arrived", "work_started", "work_completed")


@dataclass(slots=True)
class DemandTimeline:
    """Milestone timestamps of a demand. Each is written once, in order."""

    requested: int
    dispatched: Optional[int] = None
    arrived: Optional[int] = None
    work_started: Optional[int] = None
    work_completed: Optional[int] = None

    def mark(self, milestone: str, timestamp: int) -> None:
        if milestone not in MILESTONES:
            raise ValueError(f"Unknown milestone '{milestone}'.")
        if getattr(self, milestone) is not None:
            raise ValueError(f"Milestone '{milestone}' is already set.")
        for earlier in MILESTONES[: MILESTONES.index(milestone)]:
            value = getattr(self, earlier)
            if value is not None and timestamp < value:
                raise ValueError(f"Milestone '{milestone}' at {timestamp} precedes '{earlier}' at {value}.")
        setattr(self, milestone, timestamp)


@dataclass(slots=True)
class DemandMetrics:
    wait_time: Optional[int] = None
    service_time: Optional[int] = None
    total_time: Optional[int] = None


@dataclass(slots=True)
class Demand:
    """A single service request."""

    demand_id: str
    timestamp: int
    location: Coordinate
    job_type: str
    request_time: str = ""
    address: str = ""
    status: DemandStatus = DemandStatus.PENDING
    assigned_vehicle_id: Optional[str] = None
    dispatch_info: Optional[dict[str, Any]] = None
    rejection_reason: Optional[str] = None
    error: Optional[str] = None
    timeline: Optional[DemandTimeline] = None
    metrics: DemandMetrics = field(default_factory=DemandMetrics)

    def __post_init__(self) -> None:
        if self.timeline is None:
            self.timeline = DemandTimeline(requested=self.timestamp)
