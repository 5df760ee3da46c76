from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from route_runner.services.ai.intent import IntentParser, ParsedIntent
from route_runner.services.ai.prompts import build_correction_query
from route_runner.services.directions import DirectionsProvider, DirectionsRoute
from route_runner.services.geo import Location
from route_runner.services.stats import RouteStats, calculate_stats

logger = logging.getLogger(__name__)

CORRECTION_THRESHOLD = 0.15


@dataclass(slots=True)
class RouteAttempt:
    intent: ParsedIntent
    route: DirectionsRoute
    stats: RouteStats
    corrected: bool = False


def needs_correction(actual_miles: float, target_miles: float | None) -> bool:
    if not target_miles or target_miles <= 0:
        return False
    # Distances carry two decimals, so an exact 15% miss can float a hair above the threshold.
    return round(abs(actual_miles - target_miles) / target_miles, 9) > CORRECTION_THRESHOLD


class RouteBuilder:
    def __init__(self, directions: DirectionsProvider, intent_parser: IntentParser) -> None:
        self.directions = directions
        self.intent_parser = intent_parser

    async def generate_route(self, intent: ParsedIntent) -> DirectionsRoute:
        return await self.directions.get_route(intent.points())

    async def _attempt(self, intent: ParsedIntent, *, corrected: bool = False) -> RouteAttempt:
        route = await self.generate_route(intent)
        return RouteAttempt(intent=intent, route=route, stats=calculate_stats(route, []), corrected=corrected)

    async def _corrective_attempt(
        self,
        query: str,
        user_location: Location,
        location_context: str | None,
        first: RouteAttempt,
    ) -> RouteAttempt:
        target = first.intent.distance_miles or 0.0
        correction_query = build_correction_query(query, first.stats.distance_miles, target)
        revised = await self.intent_parser.parse_intent(correction_query, user_location, location_context)
        # Only the waypoints are taken; start and end stay as first parsed.
        intent = replace(first.intent, waypoints=list(revised.waypoints))
        return await self._attempt(intent, corrected=True)

    async def build(
        self,
        query: str,
        user_location: Location,
        location_context: str | None,
        intent: ParsedIntent,
    ) -> RouteAttempt:
        first = await self._attempt(intent)
        target = intent.distance_miles
        if not needs_correction(first.stats.distance_miles, target):
            return first

        logger.info(
            "Route distance off target, requesting one correction",
            extra={"actual_miles": first.stats.distance_miles, "target_miles": target},
        )
        try:
            second = await self._corrective_attempt(query, user_location, location_context, first)
        except Exception as exc:
            logger.warning("Route correction failed, keeping original route", extra={"error": str(exc)})
            return first

        logger.info(
            "Route corrected",
            extra={
                "before_miles": first.stats.distance_miles,
                "after_miles": second.stats.distance_miles,
                "target_miles": target,
            },
        )
        return second
