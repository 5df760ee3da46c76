from __future__ import annotations

import json

import pytest

from conftest import (
    SPACE_NEEDLE,
    FakeDirections,
    FakeElevation,
    FakeGeocoder,
    FakeProvider,
    FakeSelector,
    make_route,
)
from route_runner.core.config import Settings
from route_runner.core.exceptions import ConfigurationError, NotFoundError, ProviderParseError
from route_runner.services.ai.selector import ModelSelector
from route_runner.services.generation import RouteGenerationService, build_route_generation_service
from route_runner.services.locations import LocationResolver
from route_runner.services.storage import RouteStore


@pytest.mark.asyncio
async def test_five_mile_loop_from_space_needle(route_service, fake_provider, fake_geocoder, redis_client):
    route = await route_service.generate("5 mile loop from Space Needle", SPACE_NEEDLE)

    assert route.stats.distance_miles == 5.1
    assert route.stats.elevation_gain_feet == 33
    assert route.stats.num_turns == 2
    assert route.name == "Needle Loop"
    assert route.elevation == [50.0, 60.0, 55.0]
    assert route.geometry.coordinates[0] == route.geometry.coordinates[-1]
    assert route.original_query == "5 mile loop from Space Needle"
    assert route.created_at.endswith("+00:00")

    assert fake_geocoder.calls == ["Space Needle"]
    assert "Nearby locations:\nSpace Needle | poi" in fake_provider.messages[0]

    stored = json.loads(await redis_client.get(f"route:{route.session_id}:{route.route_id}"))
    assert stored["name"] == "Needle Loop"
    assert stored["stats"]["distance_miles"] == 5.1


@pytest.mark.asyncio
async def test_generate_keeps_caller_session_and_issues_fresh_route_ids(route_service):
    first = await route_service.generate("5 mile loop from Space Needle", SPACE_NEEDLE, session_id="runner-1")
    second = await route_service.generate("5 mile loop from Space Needle", SPACE_NEEDLE, session_id="runner-1")

    assert first.session_id == second.session_id == "runner-1"
    assert first.route_id != second.route_id
    assert (await route_service.get_route("runner-1", first.route_id)).route_id == first.route_id


@pytest.mark.asyncio
async def test_missing_elevation_is_stored_as_none(redis_client, fake_provider, fake_geocoder):
    service = RouteGenerationService(
        selector=FakeSelector(fake_provider),
        resolver=LocationResolver(fake_geocoder),
        directions=FakeDirections([make_route(5.1)]),
        elevation=FakeElevation([]),  # type: ignore[arg-type]
        store=RouteStore(redis_client),
    )

    route = await service.generate("5 mile loop", SPACE_NEEDLE)

    assert route.elevation is None
    assert route.stats.elevation_gain_feet == 0


@pytest.mark.asyncio
async def test_unparseable_intent_fails_generation(redis_client):
    class ChattyProvider(FakeProvider):
        async def chat(self, message, system_prompt=None, max_tokens=1024):
            result = await super().chat(message, system_prompt, max_tokens)
            result.text = "I would love to help you plan a run!"
            return result

    directions = FakeDirections([make_route(5.1)])
    service = RouteGenerationService(
        selector=FakeSelector(ChattyProvider()),
        resolver=LocationResolver(FakeGeocoder()),
        directions=directions,
        elevation=FakeElevation([]),  # type: ignore[arg-type]
        store=RouteStore(redis_client),
    )

    with pytest.raises(ProviderParseError) as exc_info:
        await service.generate("5 mile loop", SPACE_NEEDLE)

    assert exc_info.value.raw == "I would love to help you plan a run!"
    assert directions.calls == []
    assert await redis_client.keys("route:*") == []


@pytest.mark.asyncio
async def test_missing_credentials_fail_before_any_network_call(redis_client):
    settings = Settings(_env_file=None, anthropic_api_key="", openai_api_key="", gemini_api_key="")
    geocoder = FakeGeocoder()
    directions = FakeDirections([make_route(5.1)])
    service = RouteGenerationService(
        selector=ModelSelector(settings),
        resolver=LocationResolver(geocoder),
        directions=directions,
        elevation=FakeElevation([]),  # type: ignore[arg-type]
        store=RouteStore(redis_client),
    )

    with pytest.raises(ConfigurationError):
        await service.generate("5 mile loop from Space Needle", SPACE_NEEDLE)

    assert geocoder.calls == []
    assert directions.calls == []


@pytest.mark.asyncio
async def test_service_without_mapbox_token_can_still_read_routes(redis_client):
    settings = Settings(_env_file=None, anthropic_api_key="a-key", mapbox_token="")
    service = build_route_generation_service(redis_client, settings)

    with pytest.raises(ConfigurationError):
        await service.generate("5 mile loop", SPACE_NEEDLE)
    with pytest.raises(NotFoundError):
        await service.get_route("nobody", "nothing")


@pytest.mark.asyncio
async def test_get_route_not_found(route_service):
    with pytest.raises(NotFoundError) as exc_info:
        await route_service.get_route("session", "missing")

    assert exc_info.value.status_code == 404
