from __future__ import annotations

from fastapi import Depends
from redis.asyncio import Redis

from route_runner.core.config import get_settings
from route_runner.integrations.redis import get_redis
from route_runner.services.generation import RouteGenerationService, build_route_generation_service


async def get_redis_client() -> Redis:
    return await get_redis()


async def get_route_service(redis: Redis = Depends(get_redis_client)) -> RouteGenerationService:
    return build_route_generation_service(redis, get_settings())
