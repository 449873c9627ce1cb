"""API routers."""

from . import health, simulations

__all__ = ["health", "simulations"]
