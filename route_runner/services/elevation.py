from __future__ import annotations

import logging

import httpx

from route_runner.services.directions import RouteGeometry

logger = logging.getLogger(__name__)

SAMPLE_EVERY = 10


def sample_coordinates(geometry: RouteGeometry) -> list[list[float]]:
    return geometry.coordinates[::SAMPLE_EVERY]


class ElevationEnricher:
    def __init__(self, api_url: str = "https://api.open-elevation.com/api/v1/lookup", timeout_sec: int = 10) -> None:
        self.api_url = api_url
        self.timeout_sec = timeout_sec

    async def _lookup(self, sampled: list[list[float]]) -> dict:
        body = {"locations": [{"latitude": lat, "longitude": lng} for lng, lat in sampled]}
        async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
            response = await client.post(self.api_url, json=body)
        response.raise_for_status()
        return response.json()

    async def fetch(self, geometry: RouteGeometry) -> list[float]:
        sampled = sample_coordinates(geometry)
        if not sampled:
            return []
        try:
            payload = await self._lookup(sampled)
            results = payload["results"]
            return [float(item.get("elevation") or 0) for item in results]
        except Exception as exc:
            logger.warning("Elevation enrichment failed, continuing without elevation", extra={"error": str(exc)})
            return []
