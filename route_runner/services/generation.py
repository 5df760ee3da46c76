from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from uuid import uuid4

from redis.asyncio import Redis

from route_runner.core.config import Settings
from route_runner.core.exceptions import ConfigurationError, NotFoundError
from route_runner.services.ai.intent import IntentParser
from route_runner.services.ai.selector import ModelSelector
from route_runner.services.directions import DirectionsProvider, MapboxDirectionsProvider
from route_runner.services.distance import augment_intent
from route_runner.services.elevation import ElevationEnricher
from route_runner.services.geo import Location
from route_runner.services.locations import LocationResolver, MapboxGeocoder, format_locations_for_prompt
from route_runner.services.route_builder import RouteBuilder
from route_runner.services.stats import calculate_stats
from route_runner.services.storage import RouteData, RouteStore

logger = logging.getLogger(__name__)


class RouteGenerationService:
    def __init__(
        self,
        selector: ModelSelector,
        resolver: LocationResolver,
        directions: DirectionsProvider | None,
        elevation: ElevationEnricher,
        store: RouteStore,
    ) -> None:
        self.selector = selector
        self.resolver = resolver
        self.directions = directions
        self.elevation = elevation
        self.store = store

    async def generate(self, query: str, location: Location, session_id: str | None = None) -> RouteData:
        # Fails on missing credentials before anything goes over the network.
        parser = IntentParser(self.selector.get_provider(query))
        if self.directions is None:
            raise ConfigurationError("MAPBOX_TOKEN is not configured")
        directions = self.directions

        resolved = await self.resolver.resolve(query, location)
        location_context = format_locations_for_prompt(resolved.locations) or None

        intent = await parser.parse_intent(query, location, location_context)
        intent = augment_intent(intent)

        attempt = await RouteBuilder(directions, parser).build(query, location, location_context, intent)

        elevation, name = await asyncio.gather(
            self.elevation.fetch(attempt.route.geometry),
            parser.generate_name(query, attempt.stats),
        )
        stats = calculate_stats(attempt.route, elevation)

        if intent.distance_miles:
            logger.info(
                "Route distance accuracy",
                extra={
                    "target_miles": intent.distance_miles,
                    "actual_miles": stats.distance_miles,
                    "accuracy_pct": round(stats.distance_miles / intent.distance_miles * 100, 1),
                    "corrected": attempt.corrected,
                },
            )

        route = RouteData(
            session_id=session_id or str(uuid4()),
            route_id=str(uuid4()),
            geometry=attempt.route.geometry,
            stats=stats,
            original_query=query,
            name=name,
            elevation=elevation or None,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        await self.store.put(route)
        logger.info(
            "Route generated",
            extra={"session_id": route.session_id, "route_id": route.route_id, "stats": stats.to_dict()},
        )
        return route

    async def get_route(self, session_id: str, route_id: str) -> RouteData:
        route = await self.store.get(session_id, route_id)
        if route is None:
            raise NotFoundError("Route not found")
        return route


def build_route_generation_service(redis: Redis, settings: Settings) -> RouteGenerationService:
    geocoder = None
    directions = None
    if settings.mapbox_token:
        geocoder = MapboxGeocoder(settings.mapbox_token, timeout_sec=settings.geocode_timeout_sec)
        directions = MapboxDirectionsProvider(
            settings.mapbox_token,
            timeout_sec=settings.route_request_timeout_sec,
            retries=settings.route_retry_attempts,
            backoff=settings.route_retry_backoff_sec,
        )
    return RouteGenerationService(
        selector=ModelSelector(settings),
        resolver=LocationResolver(geocoder),
        directions=directions,
        elevation=ElevationEnricher(settings.elevation_api_url, timeout_sec=settings.elevation_timeout_sec),
        store=RouteStore(redis),
    )
