"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETSIM_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Fleet Dispatch Simulator API"
    api_prefix: str = "/api"
    projects_root: Path = Field(default=Path("projects"), description="Directory holding one folder per project.")
    result_filename: str = Field(default="simulation_result.json")

    mapbox_token: Optional[str] = Field(
        default=None,
        description="Mapbox access token for isochrones. Without it a circular isochrone is used.",
    )
    mapbox_base_url: str = "https://api.mapbox.com"
    isochrone_profile: str = "mapbox/driving-traffic"
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: str = Field(default="driving", description="OSRM profile used for vehicle routes.")
    provider_max_retries: int = Field(default=3, ge=0)
    provider_backoff_seconds: float = Field(default=1.0, ge=0.0)
    provider_timeout_seconds: float = Field(default=30.0, gt=0.0)
    fallback_speed_kmh: float = Field(
        default=30.0,
        gt=0.0,
        description="Travel speed for straight-line routes and circular isochrones.",
    )

    default_service_minutes: int = Field(default=10, ge=0)
    progress_interval_seconds: int = Field(default=60, ge=1)
    log_interval_seconds: int = Field(default=600, ge=1)
    snapshot_interval_seconds: int = Field(
        default=60,
        ge=0,
        description="Simulated seconds between position snapshots of moving vehicles (0 disables).",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("projects_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
