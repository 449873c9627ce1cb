"""Contracts for the external isochrone and route providers."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, Sequence

import httpx

from ...errors import ProviderError
from ...models.domain import Coordinate
from ...models.routing import RouteResponse

logger = logging.getLogger(__name__)


class IsochroneProvider(Protocol):
    name: str

    def get(self, origin: Coordinate, minutes: int) -> list[Coordinate]:
        """Return the outer ring of the area reachable from ``origin`` within ``minutes``."""
        ...

    def close(self) -> None:
        ...


class RouteProvider(Protocol):
    name: str

    def get(self, origin: Coordinate, destination: Coordinate, departure_hint: str | None = None) -> RouteResponse:
        """Return drivable geometry and timing from ``origin`` to ``destination``."""
        ...

    def close(self) -> None:
        ...


def request_json(
    client: httpx.Client,
    url: str,
    params: dict[str, Any],
    *,
    provider: str,
    max_retries: int,
    backoff_seconds: float,
) -> dict:
    """GET ``url`` and decode JSON, retrying transient failures.

    Client errors (4xx other than 429) are not retried. Every failure is
    surfaced as :class:`ProviderError`.
    """

    attempt = 0
    while True:
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code < 500 and status_code != 429:
                raise ProviderError(provider, f"HTTP {status_code} from {url}") from exc
            attempt += 1
            if attempt > max_retries:
                raise ProviderError(provider, f"HTTP {status_code} after {max_retries} retries") from exc
            logger.warning(f"{provider} returned HTTP {status_code}, retrying (attempt {attempt}/{max_retries})")
            time.sleep(backoff_seconds * attempt)
        except httpx.TransportError as exc:
            attempt += 1
            if attempt > max_retries:
                raise ProviderError(provider, f"Failed to reach {url}: {exc}") from exc
            wait_time = backoff_seconds * (2 ** (attempt - 1))
            logger.warning(f"{provider} network error, retrying in {wait_time:.1f}s (attempt {attempt}/{max_retries}): {exc}")
            time.sleep(wait_time)
        except ValueError as exc:
            raise ProviderError(provider, f"Invalid JSON from {url}") from exc


def close_ring(points: Sequence[Coordinate]) -> list[Coordinate]:
    ring = [(float(lon), float(lat)) for lon, lat in points]
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring
