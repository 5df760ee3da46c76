from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from route_runner.core.exceptions import DirectionsUnavailable
from route_runner.services.geo import Location

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RouteGeometry:
    coordinates: list[list[float]]
    type: str = "LineString"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "coordinates": [list(pair) for pair in self.coordinates]}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RouteGeometry":
        return cls(
            type=str(payload.get("type") or "LineString"),
            coordinates=[[float(pair[0]), float(pair[1])] for pair in payload.get("coordinates") or []],
        )


@dataclass(slots=True)
class DirectionsRoute:
    geometry: RouteGeometry
    distance_m: float
    duration_sec: float
    legs: list[dict] = field(default_factory=list)


class DirectionsProvider(abc.ABC):
    @abc.abstractmethod
    async def get_route(self, coordinates: list[Location]) -> DirectionsRoute:
        raise NotImplementedError


def parse_directions_payload(payload: Any) -> DirectionsRoute:
    routes = payload.get("routes") if isinstance(payload, dict) else None
    if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
        raise DirectionsUnavailable("No routes found from directions provider")

    route = routes[0]
    geometry = route.get("geometry")
    if not isinstance(geometry, dict) or not isinstance(geometry.get("coordinates"), list):
        raise DirectionsUnavailable("Directions provider returned a route without geometry")
    legs = route.get("legs")
    return DirectionsRoute(
        geometry=RouteGeometry.from_dict(geometry),
        distance_m=float(route.get("distance") or 0),
        duration_sec=float(route.get("duration") or 0),
        legs=[leg for leg in legs if isinstance(leg, dict)] if isinstance(legs, list) else [],
    )


class MapboxDirectionsProvider(DirectionsProvider):
    def __init__(self, access_token: str, timeout_sec: int = 15, retries: int = 2, backoff: float = 0.5) -> None:
        self.access_token = access_token
        self.timeout_sec = timeout_sec
        self.retries = max(1, retries)
        self.backoff = backoff
        self._base_url = "https://api.mapbox.com/directions/v5/mapbox/walking"

    async def _request(self, coordinates: list[Location]) -> dict:
        # Mapbox expects lng,lat pairs.
        path = ";".join(f"{point.lng},{point.lat}" for point in coordinates)
        params = {
            "geometries": "geojson",
            "overview": "full",
            "steps": "true",
            "access_token": self.access_token,
        }
        async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
            response = await client.get(f"{self._base_url}/{path}", params=params)
        response.raise_for_status()
        return response.json()

    async def get_route(self, coordinates: list[Location]) -> DirectionsRoute:
        last_error: Exception | None = None
        for attempt in range(self.retries):
            try:
                payload = await self._request(coordinates)
                return parse_directions_payload(payload)
            except DirectionsUnavailable:
                raise
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                logger.warning(
                    "Mapbox directions request failed",
                    extra={"attempt": attempt + 1, "retries": self.retries, "points": len(coordinates), "error": str(exc)},
                )
                if attempt + 1 < self.retries:
                    await asyncio.sleep(self.backoff * (2**attempt))
        raise DirectionsUnavailable(f"Mapbox directions API failed: {last_error}")
