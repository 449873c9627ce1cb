"""Discrete-time fleet simulation: clock, dispatch and vehicle state machine."""

from .clock import OperatingWindow, format_seconds, parse_time_to_seconds
from .dispatch import Assignment, DispatchAlgorithm, DispatchResult, RejectionReason
from .engine import ProgressUpdate, SimulationEngine, SimulationSummary
from .result import build_result
from .vehicle_state import VehicleStateManager

__all__ = [
    "Assignment",
    "DispatchAlgorithm",
    "DispatchResult",
    "OperatingWindow",
    "ProgressUpdate",
    "RejectionReason",
    "SimulationEngine",
    "SimulationSummary",
    "VehicleStateManager",
    "build_result",
    "format_seconds",
    "parse_time_to_seconds",
]
