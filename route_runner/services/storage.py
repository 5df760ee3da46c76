from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from redis.asyncio import Redis

from route_runner.services.directions import RouteGeometry
from route_runner.services.stats import RouteStats

ROUTE_TTL_SEC = 24 * 60 * 60


@dataclass(slots=True)
class RouteData:
    session_id: str
    route_id: str
    geometry: RouteGeometry
    stats: RouteStats
    original_query: str
    name: str
    created_at: str
    elevation: list[float] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "routeId": self.route_id,
            "geometry": self.geometry.to_dict(),
            "stats": self.stats.to_dict(),
            "originalQuery": self.original_query,
            "name": self.name,
            "elevation": self.elevation,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RouteData":
        elevation = payload.get("elevation")
        return cls(
            session_id=str(payload["sessionId"]),
            route_id=str(payload["routeId"]),
            geometry=RouteGeometry.from_dict(payload["geometry"]),
            stats=RouteStats.from_dict(payload["stats"]),
            original_query=str(payload.get("originalQuery", "")),
            name=str(payload.get("name", "")),
            elevation=[float(item) for item in elevation] if elevation else None,
            created_at=str(payload.get("createdAt", "")),
        )


def route_key(session_id: str, route_id: str) -> str:
    return f"route:{session_id}:{route_id}"


class RouteStore:
    def __init__(self, redis: Redis) -> None:
        self.redis = redis

    async def put(self, route: RouteData) -> None:
        await self.redis.setex(route_key(route.session_id, route.route_id), ROUTE_TTL_SEC, json.dumps(route.to_dict()))

    async def get(self, session_id: str, route_id: str) -> RouteData | None:
        cached = await self.redis.get(route_key(session_id, route_id))
        if not cached:
            return None
        return RouteData.from_dict(json.loads(cached))
