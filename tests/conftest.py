from __future__ import annotations

import json
from collections.abc import AsyncGenerator

import fakeredis
import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient

from route_runner.api import deps
from route_runner.main import app
from route_runner.services.ai.providers import AIProviderResult
from route_runner.services.directions import DirectionsRoute, RouteGeometry
from route_runner.services.generation import RouteGenerationService
from route_runner.services.geo import Location
from route_runner.services.locations import LocationResolver
from route_runner.services.storage import RouteStore

SPACE_NEEDLE = Location(lat=47.6205, lng=-122.3493)
METERS_PER_MILE = 1609.344

LOOP_INTENT = {
    "start": {"lat": 47.6205, "lng": -122.3493},
    "waypoints": [
        {"lat": 47.6300, "lng": -122.3600},
        {"lat": 47.6400, "lng": -122.3450},
        {"lat": 47.6280, "lng": -122.3300},
    ],
    "end": {"lat": 47.6205, "lng": -122.3493},
    "distance_miles": 5,
    "max_elevation_gain_feet": None,
    "preferences": [],
}


class FakeProvider:
    """Answers route prompts (sent with a system prompt) with an intent and name prompts with a name."""

    name = "fake"

    def __init__(self, intent_payloads: list[dict] | None = None, route_name: str = "Needle Loop") -> None:
        self.intent_payloads = list(intent_payloads or [LOOP_INTENT])
        self.route_name = route_name
        self.messages: list[str] = []
        self.system_prompts: list[str | None] = []

    async def chat(self, message: str, system_prompt: str | None = None, max_tokens: int = 1024) -> AIProviderResult:
        self.messages.append(message)
        self.system_prompts.append(system_prompt)
        if system_prompt is None:
            return AIProviderResult(text=self.route_name, provider=self.name, model="fake-model")
        payload = self.intent_payloads.pop(0) if len(self.intent_payloads) > 1 else self.intent_payloads[0]
        return AIProviderResult(text=json.dumps(payload), provider=self.name, model="fake-model")


class FakeSelector:
    def __init__(self, provider: FakeProvider) -> None:
        self.provider = provider
        self.queries: list[str] = []

    def get_provider(self, query: str) -> FakeProvider:
        self.queries.append(query)
        return self.provider


class FakeGeocoder:
    def __init__(self, features: dict[str, list[dict]] | None = None, failing: set[str] | None = None) -> None:
        self.features = features or {}
        self.failing = failing or set()
        self.calls: list[str] = []

    async def search(self, text: str, proximity: Location, limit: int = 5) -> list[dict]:
        self.calls.append(text)
        if text in self.failing:
            raise RuntimeError(f"geocoder failed for {text}")
        return self.features.get(text, [])


class FakeDirections:
    def __init__(self, routes: list[DirectionsRoute]) -> None:
        self.routes = list(routes)
        self.calls: list[list[Location]] = []

    async def get_route(self, coordinates: list[Location]) -> DirectionsRoute:
        self.calls.append(list(coordinates))
        if len(self.routes) > 1:
            return self.routes.pop(0)
        return self.routes[0]


class FakeElevation:
    def __init__(self, samples: list[float]) -> None:
        self.samples = samples
        self.calls = 0

    async def fetch(self, geometry: RouteGeometry) -> list[float]:
        self.calls += 1
        return list(self.samples)


def make_route(miles: float, *, points: int = 30, closed: bool = True) -> DirectionsRoute:
    coordinates = [[-122.3493 + index * 0.001, 47.6205 + (index % 7) * 0.001] for index in range(points)]
    if closed:
        coordinates[-1] = list(coordinates[0])
    steps = [
        {"maneuver": {"type": "depart", "instruction": "Head north"}},
        {"maneuver": {"type": "turn", "instruction": "Turn right"}},
        {"maneuver": {"type": "turn", "instruction": "Turn left"}},
        {"maneuver": {"type": "arrive", "instruction": "You have arrived"}},
    ]
    return DirectionsRoute(
        geometry=RouteGeometry(coordinates=coordinates),
        distance_m=miles * METERS_PER_MILE,
        duration_sec=miles * 10 * 60,
        legs=[{"steps": steps}],
    )


def space_needle_feature() -> dict:
    return {
        "text": "Space Needle",
        "place_type": ["poi"],
        "center": [-122.3493, 47.6205],
        "relevance": 0.98,
        "geometry": {"type": "Point", "coordinates": [-122.3493, 47.6205]},
    }


@pytest.fixture()
def redis_client():
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture()
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def fake_geocoder() -> FakeGeocoder:
    return FakeGeocoder(features={"Space Needle": [space_needle_feature()]})


@pytest.fixture()
def fake_directions() -> FakeDirections:
    return FakeDirections([make_route(5.1)])


@pytest.fixture()
def route_service(redis_client, fake_provider, fake_geocoder, fake_directions) -> RouteGenerationService:
    return RouteGenerationService(
        selector=FakeSelector(fake_provider),  # type: ignore[arg-type]
        resolver=LocationResolver(fake_geocoder),
        directions=fake_directions,
        elevation=FakeElevation([50.0, 60.0, 55.0]),  # type: ignore[arg-type]
        store=RouteStore(redis_client),
    )


@pytest.fixture()
async def app_client(route_service) -> AsyncGenerator[AsyncClient, None]:
    async def override_route_service():
        return route_service

    app.dependency_overrides[deps.get_route_service] = override_route_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
