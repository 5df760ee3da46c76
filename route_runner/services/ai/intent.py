from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from route_runner.core.exceptions import ProviderParseError
from route_runner.services.ai.prompts import ROUTE_NAME_PROMPT, ROUTE_PLANNER_SYSTEM_PROMPT, build_intent_message
from route_runner.services.ai.providers import AIProvider
from route_runner.services.geo import Location, location_from_payload

if TYPE_CHECKING:
    from route_runner.services.stats import RouteStats

logger = logging.getLogger(__name__)

FALLBACK_ROUTE_NAME = "Adventure Run"
_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


@dataclass(slots=True)
class ParsedIntent:
    start: Location
    end: Location
    waypoints: list[Location] = field(default_factory=list)
    distance_miles: float | None = None
    max_elevation_gain_feet: float | None = None
    preferences: list[str] = field(default_factory=list)

    def points(self) -> list[Location]:
        return [self.start, *self.waypoints, self.end]

    @property
    def is_loop(self) -> bool:
        return self.start == self.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.to_dict(),
            "waypoints": [point.to_dict() for point in self.waypoints],
            "end": self.end.to_dict(),
            "distance_miles": self.distance_miles,
            "max_elevation_gain_feet": self.max_elevation_gain_feet,
            "preferences": list(self.preferences),
        }


def strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _CODE_FENCE.search(stripped)
    if match:
        return match.group(1)
    return stripped


def _optional_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_intent_payload(text: str) -> ParsedIntent:
    raw = strip_code_fence(text)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ProviderParseError("Failed to parse provider response as JSON", raw=raw) from exc
    if not isinstance(payload, dict):
        raise ProviderParseError("Provider response is not a JSON object", raw=raw)

    start = location_from_payload(payload.get("start"))
    end = location_from_payload(payload.get("end"))
    if start is None or end is None:
        raise ProviderParseError("Provider response is missing start or end coordinates", raw=raw)

    waypoints: list[Location] = []
    raw_waypoints = payload.get("waypoints") or []
    if not isinstance(raw_waypoints, list):
        raise ProviderParseError("Provider response waypoints are not a list", raw=raw)
    for item in raw_waypoints:
        point = location_from_payload(item)
        if point is None:
            raise ProviderParseError("Provider response contains an invalid waypoint", raw=raw)
        waypoints.append(point)

    preferences = payload.get("preferences") or []
    return ParsedIntent(
        start=start,
        end=end,
        waypoints=waypoints,
        distance_miles=_optional_number(payload.get("distance_miles")),
        max_elevation_gain_feet=_optional_number(payload.get("max_elevation_gain_feet")),
        preferences=[str(item) for item in preferences] if isinstance(preferences, list) else [],
    )


def normalize_route_name(text: str) -> str:
    name = re.sub(r"['\"]", "", text.strip())
    if len(name.split()) != 2:
        return FALLBACK_ROUTE_NAME
    return " ".join(name.split())


class IntentParser:
    """Turns a query into a route intent and names finished routes through one reasoning backend."""

    def __init__(self, provider: AIProvider) -> None:
        self.provider = provider

    async def parse_intent(
        self,
        query: str,
        user_location: Location,
        location_context: str | None = None,
    ) -> ParsedIntent:
        message = build_intent_message(query, user_location.lat, user_location.lng, location_context)
        result = await self.provider.chat(message, system_prompt=ROUTE_PLANNER_SYSTEM_PROMPT, max_tokens=1024)
        intent = parse_intent_payload(result.text)
        logger.info(
            "Parsed route intent",
            extra={"provider": result.provider, "model": result.model, "intent": intent.to_dict()},
        )
        return intent

    async def generate_name(self, query: str, stats: RouteStats) -> str:
        prompt = ROUTE_NAME_PROMPT.format(
            query=query,
            distance_miles=stats.distance_miles,
            elevation_gain_feet=stats.elevation_gain_feet,
        )
        try:
            result = await self.provider.chat(prompt, max_tokens=50)
        except Exception as exc:
            logger.warning("Route name generation failed, using fallback", extra={"error": str(exc)})
            return FALLBACK_ROUTE_NAME
        return normalize_route_name(result.text)
