"""Load a simulation project (configuration, fleet, demand, job types) from disk."""

from __future__ import annotations

import csv
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..config import settings
from ..errors import ConfigurationError, ProjectNotFoundError
from ..models.domain import Demand, Vehicle
from ..schemas.simulation import ProjectConfig
from ..services.job_types import JobTypeCatalog
from ..services.simulation.clock import OperatingWindow, parse_time_to_seconds

logger = logging.getLogger(__name__)

PROJECT_FILE = "project.json"
VEHICLE_FILE = "vehicle_set.csv"
DEMAND_FILE = "demand_data.csv"
JOB_TYPE_FILE = "job_type.csv"

_PROJECT_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(slots=True)
class SimulationProject:
    name: str
    path: Path
    wait_time_limit: int
    window: OperatingWindow
    vehicles: list[Vehicle]
    demands: list[Demand]
    catalog: JobTypeCatalog


def _coerce_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    try:
        return float(value.replace(",", ""))
    except ValueError as exc:
        raise ConfigurationError(f"Unable to parse float from value '{value}'") from exc


def _field(row: dict, *names: str) -> str:
    for name in names:
        value = row.get(name)
        if value is not None and value.strip():
            return value.strip()
    return ""


def _read_rows(path: Path) -> list[dict]:
    if not path.exists():
        raise ConfigurationError(f"Required project file not found: {path}")
    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ConfigurationError(f"File '{path}' is missing a header row.")
        return [{(key or "").strip(): value or "" for key, value in row.items()} for row in reader]


def parse_job_types(value: str) -> tuple[str, ...]:
    """Split a ``;``-separated job type cell."""

    return tuple(part.strip() for part in value.split(";") if part.strip())


def project_path(name: str, root: Path | None = None) -> Path:
    name = name.strip()
    if not _PROJECT_NAME.match(name):
        raise ValueError(f"Invalid project name '{name}'. Use letters, numbers, - or _.")
    path = (root or settings.projects_root) / name
    if not path.is_dir():
        raise ProjectNotFoundError(f"Project not found: {name}")
    return path


def load_project_config(path: Path) -> ProjectConfig:
    config_path = path / PROJECT_FILE
    if not config_path.exists():
        raise ConfigurationError(f"Project configuration not found: {config_path}")
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8-sig"))
        return ProjectConfig.model_validate(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid project configuration in {config_path}: {exc}") from exc


def load_vehicles(path: Path) -> list[Vehicle]:
    vehicles: list[Vehicle] = []
    for row in _read_rows(path):
        lat = _coerce_float(_field(row, "lat", "latitude", "start_latitude"))
        lon = _coerce_float(_field(row, "lng", "lon", "longitude", "start_longitude"))
        if lat is None or lon is None:
            logger.warning(f"Skipping vehicle row without coordinates: {row}")
            continue
        index = len(vehicles) + 1
        capacity = _field(row, "capacity")
        vehicles.append(
            Vehicle(
                vehicle_id=f"vehicle_{index:03d}",
                name=_field(row, "name") or f"Vehicle_{index}",
                initial_location=(lon, lat),
                job_types=parse_job_types(_field(row, "job_type")),
                capacity=int(capacity) if capacity.isdigit() else None,
            )
        )
    return vehicles


def load_demands(path: Path, window: OperatingWindow) -> list[Demand]:
    """Load demands sorted by request time, placed on the window's clock."""

    demands: list[Demand] = []
    for row in _read_rows(path):
        lat = _coerce_float(_field(row, "lat", "latitude"))
        lon = _coerce_float(_field(row, "lng", "lon", "longitude"))
        request_time = _field(row, "requestTime", "request_time", "call_datetime")
        if lat is None or lon is None or not request_time:
            logger.warning(f"Skipping demand row without time or coordinates: {row}")
            continue
        # accepts "HH:MM[:SS]" or "YYYY-MM-DD HH:MM[:SS]"
        time_of_day = request_time.split()[-1]
        try:
            timestamp = window.align(parse_time_to_seconds(time_of_day))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid demand request time '{request_time}'") from exc
        demands.append(
            Demand(
                demand_id=f"demand_{len(demands) + 1:03d}",
                timestamp=timestamp,
                location=(lon, lat),
                job_type=_field(row, "job_type"),
                request_time=request_time,
                address=_field(row, "address"),
            )
        )
    demands.sort(key=lambda demand: demand.timestamp)
    return demands


def load_project(name: str, root: Path | None = None) -> SimulationProject:
    path = project_path(name, root)
    config = load_project_config(path)
    window = OperatingWindow.from_strings(config.operating_time.start, config.operating_time.end)
    catalog = JobTypeCatalog.from_csv(path / JOB_TYPE_FILE)
    vehicles = load_vehicles(path / VEHICLE_FILE)
    demands = load_demands(path / DEMAND_FILE, window)
    logger.info(
        f"Loaded project '{path.name}': {len(vehicles)} vehicles, {len(demands)} demands, "
        f"window {window.start_label} ~ {window.end_label}, wait limit {config.wait_time_limit} min"
    )
    return SimulationProject(
        name=path.name,
        path=path,
        wait_time_limit=config.wait_time_limit,
        window=window,
        vehicles=vehicles,
        demands=demands,
        catalog=catalog,
    )
