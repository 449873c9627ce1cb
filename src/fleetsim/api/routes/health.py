"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/providers", status_code=status.HTTP_200_OK)
def health_providers() -> dict:
    """Report which isochrone and route providers a run would use."""
    from ...services.providers.osrm_client import check_health

    return {
        "isochrone_provider": "mapbox" if settings.mapbox_token else "circle",
        "route_provider": "osrm" if settings.osrm_base_url else "straight_line",
        "osrm_healthy": check_health() if settings.osrm_base_url else None,
    }
