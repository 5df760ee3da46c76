import json
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    env: Literal["dev", "prod"] = "dev"
    log_level: str = "INFO"
    project_name: str = "Route Runner"
    api_prefix: str = "/api"

    redis_url: str = "redis://redis:6379/0"
    frontend_origins: list[str] = Field(default_factory=lambda: ["*"])

    anthropic_api_key: str = ""
    openai_api_key: str = ""
    gemini_api_key: str = ""
    ai_timeout_ms: int = 30000

    mapbox_token: str = ""
    geocode_timeout_sec: int = 8
    route_request_timeout_sec: int = 15
    route_retry_attempts: int = 2
    route_retry_backoff_sec: float = 0.5

    elevation_api_url: str = "https://api.open-elevation.com/api/v1/lookup"
    elevation_timeout_sec: int = 10

    @field_validator("frontend_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: object) -> list[str]:
        def _normalize_origin(origin_value: object) -> str:
            origin = str(origin_value).strip()
            if not origin:
                return ""
            # Browser `Origin` header never includes a trailing slash.
            return origin.rstrip("/")

        if isinstance(value, str):
            if not value.strip():
                return []
            if value.strip().startswith("["):
                try:
                    parsed = json.loads(value)
                    if isinstance(parsed, list):
                        return [_normalize_origin(origin) for origin in parsed if _normalize_origin(origin)]
                except json.JSONDecodeError:
                    pass
            return [_normalize_origin(origin) for origin in value.split(",") if _normalize_origin(origin)]
        if isinstance(value, list):
            return [_normalize_origin(item) for item in value if _normalize_origin(item)]
        return []

    def api_key_for(self, provider: str) -> str:
        return {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "gemini": self.gemini_api_key,
        }.get(provider, "")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
