#!/usr/bin/env python3
"""Helper script to check the simulator configuration and create a template .env file."""

import sys
from pathlib import Path

TEMPLATE = """# Projects (one directory per project with project.json and CSV files)
FLEETSIM_PROJECTS_ROOT=./projects

# Isochrone provider (optional - a circular isochrone is used without a token)
# FLEETSIM_MAPBOX_TOKEN=pk.your-token-here

# Route provider (optional - straight-line routes are used without OSRM)
# FLEETSIM_OSRM_BASE_URL=http://localhost:5000
# FLEETSIM_FALLBACK_SPEED_KMH=30

# API Configuration
FLEETSIM_API_PREFIX=/api
# FLEETSIM_FRONTEND_ALLOWED_ORIGINS accepts a JSON array or a comma-separated list
"""


def _mask(value: str) -> str:
    return value[:8] + "..." + value[-4:] if len(value) > 16 else value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Fleet Dispatch Simulator configuration check")
    print("=" * 60)
    print()

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env file at: {env_file}")
        print("Edit it and run this script again.")
        return

    print(f"Found .env file at: {env_file}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    try:
        from fleetsim.config import settings
        from fleetsim.services.providers.osrm_client import check_health
    except Exception as e:
        print(f"Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    print(f"Projects root:     {settings.projects_root}")
    if settings.projects_root.is_dir():
        projects = sorted(p.name for p in settings.projects_root.iterdir() if (p / "project.json").exists())
        print(f"Projects found:    {', '.join(projects) or 'none'}")
    else:
        print("Projects root does not exist yet")

    if settings.mapbox_token:
        print(f"Isochrones:        Mapbox ({_mask(settings.mapbox_token)})")
    else:
        print(f"Isochrones:        circular fallback at {settings.fallback_speed_kmh} km/h")

    if settings.osrm_base_url:
        status = "reachable" if check_health() else "NOT reachable"
        print(f"Routes:            OSRM at {settings.osrm_base_url} ({status})")
    else:
        print(f"Routes:            straight-line fallback at {settings.fallback_speed_kmh} km/h")
    print()


if __name__ == "__main__":
    main()
