"""Exception hierarchy shared by the engine, providers and API."""

from __future__ import annotations


class FleetSimError(Exception):
    """Base class for simulator errors."""


class ConfigurationError(FleetSimError, ValueError):
    """Invalid run configuration. Raised before the simulation loop starts."""


class ProviderError(FleetSimError):
    """An isochrone or route lookup failed for a single demand."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class InvalidTransitionError(FleetSimError):
    """A vehicle was asked to make a state transition its current state forbids."""


class UnknownVehicleError(FleetSimError, KeyError):
    def __str__(self) -> str:
        return f"Unknown vehicle '{self.args[0]}'" if self.args else "Unknown vehicle"


class ProjectNotFoundError(FleetSimError, FileNotFoundError):
    """Project directory or persisted result does not exist."""
