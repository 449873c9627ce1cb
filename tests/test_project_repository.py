import json
from pathlib import Path

import pytest

from fleetsim.data.project_repository import (
    load_demands,
    load_project,
    load_vehicles,
    parse_job_types,
    project_path,
)
from fleetsim.errors import ConfigurationError, ProjectNotFoundError
from fleetsim.services.simulation.clock import OperatingWindow


def _write_project(root: Path, name: str = "seoul", *, config: dict | None = None) -> Path:
    path = root / name
    path.mkdir(parents=True)
    (path / "project.json").write_text(
        json.dumps(config or {"waitTimeLimit": 15, "operatingTime": {"start": "09:00", "end": "18:00"}}),
        encoding="utf-8",
    )
    (path / "vehicle_set.csv").write_text(
        "\ufeffname,lat,lng,capacity,job_type\n"
        "Unit A,37.5665,126.978,1,call\n"
        "Unit B,37.5700,126.990,,call;delivery\n"
        "Broken,,126.990,,call\n",
        encoding="utf-8",
    )
    (path / "demand_data.csv").write_text(
        "requestTime,lat,lng,address,job_type\n"
        "09:30:00,37.5651,126.9895,Jung-gu,call\n"
        "2024-03-01 09:05,37.5600,126.9800,,delivery\n",
        encoding="utf-8",
    )
    (path / "job_type.csv").write_text("id,job,service_time\n1,call,15\n2,delivery,30\n", encoding="utf-8")
    return path


def test_load_project_reads_all_files(tmp_path: Path):
    _write_project(tmp_path)

    project = load_project("seoul", root=tmp_path)

    assert project.name == "seoul"
    assert project.wait_time_limit == 15
    assert (project.window.start, project.window.end) == (32400, 64800)
    assert project.catalog.service_seconds("delivery") == 1800

    assert [v.vehicle_id for v in project.vehicles] == ["vehicle_001", "vehicle_002"]
    unit_a, unit_b = project.vehicles
    assert unit_a.initial_location == (126.978, 37.5665)
    assert unit_a.location == unit_a.initial_location
    assert unit_a.capacity == 1
    assert unit_b.capacity is None
    assert unit_b.job_types == ("call", "delivery")

    # ids follow file order, the list follows request time
    assert [d.demand_id for d in project.demands] == ["demand_002", "demand_001"]
    assert [d.timestamp for d in project.demands] == [32700, 34200]
    assert project.demands[1].address == "Jung-gu"


def test_job_type_file_is_optional(tmp_path: Path):
    path = _write_project(tmp_path)
    (path / "job_type.csv").unlink()

    project = load_project("seoul", root=tmp_path)

    assert project.catalog.all() == []


def test_load_demands_aligns_to_overnight_window(tmp_path: Path):
    path = tmp_path / "demand_data.csv"
    path.write_text(
        "requestTime,lat,lng,address,job_type\n01:00,37.5,127.0,,call\n23:00,37.5,127.0,,call\n",
        encoding="utf-8",
    )

    demands = load_demands(path, OperatingWindow.from_strings("22:00", "02:00"))

    assert [d.timestamp for d in demands] == [23 * 3600, 25 * 3600]


def test_load_demands_rejects_bad_time(tmp_path: Path):
    path = tmp_path / "demand_data.csv"
    path.write_text("requestTime,lat,lng,job_type\nlater,37.5,127.0,call\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_demands(path, OperatingWindow.from_strings("09:00", "18:00"))


def test_missing_vehicle_file_is_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_vehicles(tmp_path / "vehicle_set.csv")


@pytest.mark.parametrize(
    "config",
    [
        {"waitTimeLimit": 0, "operatingTime": {"start": "09:00", "end": "18:00"}},
        {"waitTimeLimit": 61, "operatingTime": {"start": "09:00", "end": "18:00"}},
        {"waitTimeLimit": 10, "operatingTime": {"start": "nine", "end": "18:00"}},
        {"waitTimeLimit": 10},
    ],
)
def test_invalid_project_configuration(tmp_path: Path, config: dict):
    _write_project(tmp_path, config=config)

    with pytest.raises(ConfigurationError):
        load_project("seoul", root=tmp_path)


def test_project_path_validation(tmp_path: Path):
    with pytest.raises(ValueError):
        project_path("../etc", root=tmp_path)
    with pytest.raises(ProjectNotFoundError):
        project_path("missing", root=tmp_path)


def test_parse_job_types():
    assert parse_job_types(" call ; delivery;") == ("call", "delivery")
    assert parse_job_types("") == ()
