"""Simulation configuration and API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..services.simulation.clock import parse_time_to_seconds


class OperatingTime(BaseModel):
    start: str = Field(..., description="Start time of day (HH:MM or HH:MM:SS).")
    end: str = Field(..., description="End time of day; at or before start means the window runs past midnight.")

    @field_validator("start", "end")
    @classmethod
    def _check_time_of_day(cls, value: str) -> str:
        parse_time_to_seconds(value)
        return value.strip()


class ProjectConfig(BaseModel):
    """Contents of a project's ``project.json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    wait_time_limit: int = Field(..., alias="waitTimeLimit", gt=0, le=60, description="Minutes.")
    operating_time: OperatingTime = Field(..., alias="operatingTime")


class RunSummary(BaseModel):
    duration: int
    vehicles: int
    demands: int
    completed: int
    rejected: int
    errored: int
    completion_rate: str
    utilization: str


class SimulationStatus(BaseModel):
    exists: bool
    file_size: Optional[int] = None
    last_modified: Optional[datetime] = None
    metadata: Optional[dict] = None


class CancelResponse(BaseModel):
    success: bool
    message: str
