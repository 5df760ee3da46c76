from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from route_runner.core.config import Settings
from route_runner.core.enums import AIProviderName, ModelTier
from route_runner.core.exceptions import ConfigurationError
from route_runner.services.ai.providers import PROVIDER_CLASSES, AIProvider

logger = logging.getLogger(__name__)

INTELLIGENT_KEYWORDS = ("scenic", "avoid", "flat", "hilly", "challenging", "view", "waterfront")
INTELLIGENT_WORD_COUNT = 20
BALANCED_WORD_COUNT = 10


@dataclass(slots=True, frozen=True)
class ProviderConfig:
    provider: AIProviderName
    model: str


TIER_CANDIDATES: dict[ModelTier, tuple[ProviderConfig, ...]] = {
    ModelTier.INTELLIGENT: (
        ProviderConfig(AIProviderName.OPENAI, "gpt-4o"),
        ProviderConfig(AIProviderName.ANTHROPIC, "claude-3-sonnet-20240229"),
        ProviderConfig(AIProviderName.GEMINI, "gemini-1.5-pro"),
    ),
    ModelTier.BALANCED: (
        ProviderConfig(AIProviderName.OPENAI, "gpt-4o-mini"),
        ProviderConfig(AIProviderName.ANTHROPIC, "claude-haiku-4-5-20251001"),
    ),
    ModelTier.FAST: (
        ProviderConfig(AIProviderName.GEMINI, "gemini-1.5-flash"),
        ProviderConfig(AIProviderName.ANTHROPIC, "claude-haiku-4-5-20251001"),
    ),
}

FALLBACK_ORDER: tuple[ProviderConfig, ...] = (
    ProviderConfig(AIProviderName.ANTHROPIC, "claude-haiku-4-5-20251001"),
    ProviderConfig(AIProviderName.OPENAI, "gpt-4o-mini"),
    ProviderConfig(AIProviderName.GEMINI, "gemini-2.0-flash"),
)


def determine_tier(query: str) -> ModelTier:
    lower = query.lower()
    word_count = len(query.split())

    if any(keyword in lower for keyword in INTELLIGENT_KEYWORDS) or word_count > INTELLIGENT_WORD_COUNT:
        return ModelTier.INTELLIGENT
    if re.search(r"[A-Z]", query) or word_count > BALANCED_WORD_COUNT:
        return ModelTier.BALANCED
    return ModelTier.FAST


class ModelSelector:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _has_credential(self, config: ProviderConfig) -> bool:
        return bool(self.settings.api_key_for(config.provider.value))

    def select(self, query: str) -> ProviderConfig:
        tier = determine_tier(query)
        for config in (*TIER_CANDIDATES[tier], *FALLBACK_ORDER):
            if self._has_credential(config):
                logger.info(
                    "Selected reasoning provider",
                    extra={"tier": tier.value, "provider": config.provider.value, "model": config.model},
                )
                return config
        raise ConfigurationError("No AI API keys configured")

    def build(self, config: ProviderConfig) -> AIProvider:
        provider_cls = PROVIDER_CLASSES[config.provider.value]
        return provider_cls(
            api_key=self.settings.api_key_for(config.provider.value),
            model=config.model,
            timeout_ms=self.settings.ai_timeout_ms,
        )

    def get_provider(self, query: str) -> AIProvider:
        return self.build(self.select(query))
