"""Fold the final engine state into the persisted result document."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from ...models.domain import Demand, Event, TimelineEntry, Vehicle
from ...models.routing import Route
from .clock import format_seconds
from .engine import SimulationEngine

RESULT_VERSION = "2.0"


def _timeline_entry(entry: TimelineEntry) -> dict[str, Any]:
    return {
        "timestamp": entry.timestamp,
        "type": entry.type,
        "state": entry.state,
        "location": list(entry.location),
        **entry.data,
    }


def _vehicle(vehicle: Vehicle) -> dict[str, Any]:
    return {
        "id": vehicle.vehicle_id,
        "name": vehicle.name,
        "initial_location": list(vehicle.initial_location),
        "final_location": list(vehicle.location),
        "job_type": list(vehicle.job_types),
        "capacity": vehicle.capacity,
        "state": vehicle.state.value,
        "statistics": asdict(vehicle.statistics),
        "timeline": [_timeline_entry(entry) for entry in vehicle.timeline],
    }


def _route(route: Route) -> dict[str, Any]:
    payload = asdict(route)
    payload["id"] = payload.pop("route_id")
    payload["type"] = payload.pop("route_type")
    return payload


def _demand(demand: Demand) -> dict[str, Any]:
    return {
        "id": demand.demand_id,
        "timestamp": demand.timestamp,
        "request_time": demand.request_time or format_seconds(demand.timestamp),
        "location": list(demand.location),
        "address": demand.address,
        "job_type": demand.job_type,
        "status": demand.status.value,
        "assigned_vehicle": demand.assigned_vehicle_id,
        "dispatch_info": demand.dispatch_info,
        "rejection_reason": demand.rejection_reason,
        "error": demand.error,
        "timeline": asdict(demand.timeline),
        "metrics": asdict(demand.metrics),
    }


def _event(event: Event) -> dict[str, Any]:
    return {"timestamp": event.timestamp, "type": event.type, "data": dict(event.data)}


def build_result(engine: SimulationEngine, *, generated_at: datetime | None = None) -> dict[str, Any]:
    """Assemble the result document of a finished (or cancelled) run."""

    window = engine.window
    summary = engine.summary
    metadata: dict[str, Any] = {
        "project_name": engine.name,
        "generated_at": (generated_at or datetime.now(timezone.utc)).isoformat(),
        "simulation_version": RESULT_VERSION,
        "start_time": window.start_label or format_seconds(window.start),
        "end_time": window.end_label or format_seconds(window.end),
        "start_time_seconds": window.start,
        "end_time_seconds": window.end,
        "total_duration_seconds": window.duration,
        "vehicle_count": len(engine.state),
        "demand_count": len(engine.demands),
        "cancelled": engine.cancelled,
    }
    if summary is not None:
        metadata.update(asdict(summary))
    else:
        metadata.update(
            completed_demands=engine.stats.completed,
            rejected_demands=engine.stats.rejected,
            errored_demands=engine.stats.errored,
        )

    return {
        "metadata": metadata,
        "configuration": {
            "wait_time_limit": engine.wait_time_limit,
            "operating_time": {"start": metadata["start_time"], "end": metadata["end_time"]},
            "job_types": engine.catalog.to_dict(),
            "default_service_minutes": engine.catalog.default_minutes,
        },
        "vehicles": [_vehicle(vehicle) for vehicle in engine.vehicles],
        "routes": [_route(route) for route in engine.routes],
        "demands": [_demand(demand) for demand in engine.demands],
        "events": [_event(event) for event in engine.events],
    }
