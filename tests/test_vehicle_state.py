import pytest

from fleetsim.errors import InvalidTransitionError, UnknownVehicleError
from fleetsim.models.domain import Vehicle, VehicleState
from fleetsim.models.routing import Route, RouteResponse, SegmentGeometry
from fleetsim.services.simulation.vehicle_state import VehicleStateManager


def _vehicle(vid: str = "vehicle_001", location=(0.0, 0.0), job_types=("call",)) -> Vehicle:
    return Vehicle(vehicle_id=vid, name=f"Vehicle {vid}", initial_location=location, job_types=tuple(job_types))


def _route(segments, *, start_time: int = 100, start=(0.0, 0.0), end=(4.0, 0.0), distance: float = 4000.0) -> Route:
    duration = sum(segment.duration for segment in segments) if segments else 40
    response = RouteResponse(duration=duration, distance=distance, segments=tuple(segments))
    return Route.from_response(
        route_id="route_001",
        vehicle_id="vehicle_001",
        demand_id="demand_001",
        response=response,
        start_time=start_time,
        start_location=start,
        end_location=end,
    )


def _two_segment_route(start_time: int = 100) -> Route:
    return _route(
        [
            SegmentGeometry(coordinates=((0.0, 0.0), (1.0, 0.0)), duration=10, distance=1000.0, name="First"),
            SegmentGeometry(
                coordinates=((1.0, 0.0), (2.0, 0.0), (4.0, 0.0)),
                duration=30,
                distance=3000.0,
                name="Second",
            ),
        ],
        start_time=start_time,
    )


def test_full_cycle_updates_state_and_statistics():
    manager = VehicleStateManager([_vehicle()])
    route = _two_segment_route()

    vehicle = manager.dispatch("vehicle_001", "demand_001", route, (4.0, 0.0), now=100)
    assert vehicle.state is VehicleState.MOVING
    assert vehicle.assigned_demand_id == "demand_001"
    assert vehicle.estimated_arrival == 140

    manager.arrive("vehicle_001", now=140, service_duration=900)
    assert vehicle.state is VehicleState.WORKING
    assert vehicle.location == (4.0, 0.0)
    assert (vehicle.service_start_time, vehicle.service_end_time) == (140, 1040)
    assert vehicle.statistics.total_distance_km == pytest.approx(4.0)
    assert vehicle.statistics.moving_time == 40

    assert manager.complete("vehicle_001", now=1040) == "demand_001"
    assert vehicle.state is VehicleState.IDLE
    assert vehicle.assigned_demand_id is None
    assert vehicle.route is None
    assert vehicle.statistics.total_jobs == 1
    assert vehicle.statistics.working_time == 900
    assert [entry.type for entry in vehicle.timeline] == ["demand_assigned", "arrived_at_demand", "work_completed"]
    assert [entry.state for entry in vehicle.timeline] == ["moving", "working", "idle"]


def test_illegal_transitions_raise():
    manager = VehicleStateManager([_vehicle()])
    route = _two_segment_route()

    with pytest.raises(InvalidTransitionError):
        manager.arrive("vehicle_001", now=0, service_duration=60)
    with pytest.raises(InvalidTransitionError):
        manager.complete("vehicle_001", now=0)

    manager.dispatch("vehicle_001", "demand_001", route, (4.0, 0.0), now=100)
    with pytest.raises(InvalidTransitionError):
        manager.dispatch("vehicle_001", "demand_002", route, (4.0, 0.0), now=101)
    with pytest.raises(InvalidTransitionError):
        manager.set_out_of_service("vehicle_001", now=101)


def test_out_of_service_removes_vehicle_from_available():
    manager = VehicleStateManager([_vehicle("vehicle_001"), _vehicle("vehicle_002")])

    manager.set_out_of_service("vehicle_002", now=0)

    assert [v.vehicle_id for v in manager.available()] == ["vehicle_001"]
    assert manager.state_distribution() == {"idle": 1, "moving": 0, "working": 0, "out_of_service": 1}


def test_roster_lookup_and_duplicates():
    manager = VehicleStateManager([_vehicle("vehicle_001")])

    with pytest.raises(UnknownVehicleError):
        manager.get("vehicle_404")
    with pytest.raises(ValueError):
        manager.register(_vehicle("vehicle_001"))
    assert len(manager) == 1


def test_position_follows_segments():
    manager = VehicleStateManager([_vehicle()])
    route = _two_segment_route()
    vehicle = manager.dispatch("vehicle_001", "demand_001", route, (4.0, 0.0), now=100)

    assert manager.position_at(vehicle, 100) == (0.0, 0.0)
    assert manager.position_at(vehicle, 105) == pytest.approx((0.5, 0.0))
    # second segment: 15 of 30 seconds covers half its 3 units of length
    assert manager.position_at(vehicle, 125) == pytest.approx((2.5, 0.0))
    assert manager.position_at(vehicle, 140) == (4.0, 0.0)


def test_position_without_segments_is_straight_line():
    manager = VehicleStateManager([_vehicle()])
    route = _route([], start_time=0)
    vehicle = manager.dispatch("vehicle_001", "demand_001", route, (4.0, 0.0), now=0)

    assert manager.position_at(vehicle, 10) == pytest.approx((1.0, 0.0))


def test_idle_and_working_vehicles_do_not_move():
    manager = VehicleStateManager([_vehicle(location=(3.0, 3.0))])
    vehicle = manager.get("vehicle_001")

    assert manager.position_at(vehicle, 500) == (3.0, 3.0)
    assert manager.refresh_positions(500) == []


def test_fleet_statistics_and_idle_time():
    manager = VehicleStateManager([_vehicle("vehicle_001"), _vehicle("vehicle_002")])
    route = _two_segment_route()
    manager.dispatch("vehicle_001", "demand_001", route, (4.0, 0.0), now=100)
    manager.arrive("vehicle_001", now=140, service_duration=60)
    manager.complete("vehicle_001", now=200)
    manager.finalize_idle_time(1000)

    stats = manager.fleet_statistics()
    assert stats["total_jobs"] == 1
    assert stats["idle_vehicles"] == 2
    assert manager.get("vehicle_001").statistics.idle_time == 1000 - 40 - 60
    assert manager.get("vehicle_002").statistics.idle_time == 1000
