import pytest

from fleetsim.errors import ConfigurationError, ProviderError
from fleetsim.models.domain import Demand, Vehicle, VehicleState
from fleetsim.models.routing import RouteResponse, SegmentGeometry
from fleetsim.services.simulation.dispatch import (
    DispatchAlgorithm,
    RejectionReason,
    select_closest,
    validate_wait_time_limit,
)

ORIGIN = (126.978, 37.5665)


def _vehicle(vid: str, lon: float = ORIGIN[0], lat: float = ORIGIN[1], job_types=("call",)) -> Vehicle:
    return Vehicle(vehicle_id=vid, name=f"Vehicle {vid}", initial_location=(lon, lat), job_types=tuple(job_types))


def _demand(did: str = "demand_001", timestamp: int = 0, job_type: str = "call", location=ORIGIN) -> Demand:
    return Demand(demand_id=did, timestamp=timestamp, location=location, job_type=job_type)


class SquareIsochrone:
    name = "square"

    def __init__(self, half_size: float = 0.05) -> None:
        self.half_size = half_size
        self.calls = []

    def get(self, origin, minutes):
        self.calls.append((origin, minutes))
        lon, lat = origin
        h = self.half_size
        return [(lon - h, lat - h), (lon + h, lat - h), (lon + h, lat + h), (lon - h, lat + h), (lon - h, lat - h)]


class FixedRoute:
    name = "fixed"

    def __init__(self, duration: float = 120.0, distance: float = 1000.0) -> None:
        self.duration = duration
        self.distance = distance
        self.calls = []

    def get(self, origin, destination, departure_hint=None):
        self.calls.append((origin, destination, departure_hint))
        segment = SegmentGeometry(coordinates=(origin, destination), duration=self.duration, distance=self.distance)
        return RouteResponse(duration=self.duration, distance=self.distance, segments=(segment,), provider=self.name)


class FailingRoute:
    name = "failing"

    def get(self, origin, destination, departure_hint=None):
        raise ProviderError(self.name, "service unavailable")


def test_dispatch_assigns_closest_vehicle():
    near = _vehicle("near", ORIGIN[0] + 0.001, ORIGIN[1])
    far = _vehicle("far", ORIGIN[0] + 0.02, ORIGIN[1])
    route_provider = FixedRoute()
    algorithm = DispatchAlgorithm(SquareIsochrone(), route_provider)

    result = algorithm.try_dispatch(_demand(), [far, near], 15, now=3600)

    assert result.assigned
    assert result.assignment.vehicle is near
    assert result.assignment.candidate_ids == ("far", "near")
    assert result.assignment.distance_km == pytest.approx(0.088, abs=0.01)
    assert route_provider.calls == [(near.location, ORIGIN, "01:00:00")]


def test_isochrone_requested_at_demand_with_wait_budget():
    isochrone = SquareIsochrone()
    algorithm = DispatchAlgorithm(isochrone, FixedRoute())

    algorithm.try_dispatch(_demand(location=(127.0, 37.5)), [_vehicle("v1", 127.0, 37.5)], 20, now=0)

    assert isochrone.calls == [((127.0, 37.5), 20)]


def test_ties_go_to_first_vehicle_in_roster_order():
    first = _vehicle("first")
    second = _vehicle("second")

    vehicle, distance = select_closest([first, second], ORIGIN)

    assert vehicle is first
    assert distance == 0.0


def test_rejected_when_no_vehicle_is_available():
    busy = _vehicle("busy")
    busy.state = VehicleState.MOVING
    busy.assigned_demand_id = "demand_000"
    isochrone = SquareIsochrone()
    algorithm = DispatchAlgorithm(isochrone, FixedRoute())

    result = algorithm.try_dispatch(_demand(), [busy], 15, now=0)

    assert not result.assigned
    assert result.rejection_reason is RejectionReason.NO_AVAILABLE_VEHICLE
    assert isochrone.calls == []


def test_rejected_when_vehicle_outside_isochrone():
    distant = _vehicle("distant", ORIGIN[0] + 1.0, ORIGIN[1])
    route_provider = FixedRoute()
    algorithm = DispatchAlgorithm(SquareIsochrone(), route_provider)

    result = algorithm.try_dispatch(_demand(), [distant], 15, now=0)

    assert result.rejection_reason is RejectionReason.OUTSIDE_ISOCHRONE
    assert route_provider.calls == []


def test_job_type_mismatch_rejects_even_when_vehicle_is_on_site():
    delivery = _vehicle("delivery", job_types=("delivery",))
    algorithm = DispatchAlgorithm(SquareIsochrone(), FixedRoute())

    result = algorithm.try_dispatch(_demand(job_type="call"), [delivery], 15, now=0)

    assert not result.assigned
    assert result.rejection_reason is RejectionReason.JOB_TYPE_MISMATCH


def test_vehicle_with_several_job_types_matches_by_membership():
    multi = _vehicle("multi", job_types=("delivery", "call"))
    algorithm = DispatchAlgorithm(SquareIsochrone(), FixedRoute())

    result = algorithm.try_dispatch(_demand(job_type="call"), [multi], 15, now=0)

    assert result.assignment.vehicle is multi


def test_route_provider_failure_propagates():
    algorithm = DispatchAlgorithm(SquareIsochrone(), FailingRoute())

    with pytest.raises(ProviderError):
        algorithm.try_dispatch(_demand(), [_vehicle("v1")], 15, now=0)


@pytest.mark.parametrize("minutes", [0, -5, 61, 15.5, True])
def test_wait_time_limit_out_of_range_is_configuration_error(minutes):
    with pytest.raises(ConfigurationError):
        validate_wait_time_limit(minutes)


def test_wait_time_limit_bounds_are_inclusive_of_sixty():
    assert validate_wait_time_limit(60) == 60
    assert validate_wait_time_limit(1) == 1
