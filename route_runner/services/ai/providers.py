from __future__ import annotations

import abc
import json
from dataclasses import dataclass

import httpx

from route_runner.core.exceptions import ProviderRequestError


@dataclass(slots=True)
class AIProviderResult:
    text: str
    provider: str
    model: str
    tokens_in: int = 0
    tokens_out: int = 0


async def _post_json(url: str, body: dict, headers: dict[str, str], timeout: float) -> dict:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=body, headers=headers)
    except httpx.TimeoutException as exc:
        raise ProviderRequestError(f"timeout:{exc}") from exc
    except httpx.HTTPError as exc:
        raise ProviderRequestError(f"provider_error:network:{exc}") from exc

    if response.status_code == 429:
        raise ProviderRequestError(f"rate_limit:http_429:{response.text[:240]}")
    if response.status_code >= 400:
        raise ProviderRequestError(f"provider_error:http_{response.status_code}:{response.text[:240]}")

    try:
        payload = response.json()
    except json.JSONDecodeError as exc:
        raise ProviderRequestError("provider_error:invalid_json") from exc
    if not isinstance(payload, dict):
        raise ProviderRequestError("provider_error:invalid_payload")
    return payload


class AIProvider(abc.ABC):
    name: str = ""

    def __init__(self, api_key: str, model: str, timeout_ms: int = 30000) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout_ms / 1000

    @abc.abstractmethod
    async def chat(self, message: str, system_prompt: str | None = None, max_tokens: int = 1024) -> AIProviderResult:
        raise NotImplementedError


class AnthropicProvider(AIProvider):
    name = "anthropic"
    base_url = "https://api.anthropic.com/v1"

    async def chat(self, message: str, system_prompt: str | None = None, max_tokens: int = 1024) -> AIProviderResult:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }
        body: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": message}],
        }
        if system_prompt:
            body["system"] = system_prompt
        payload = await _post_json(f"{self.base_url}/messages", body, headers, self.timeout)
        try:
            text = payload["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderRequestError("provider_error:anthropic_empty_content") from exc
        usage = payload.get("usage", {})
        return AIProviderResult(
            text=str(text),
            provider=self.name,
            model=payload.get("model", self.model),
            tokens_in=usage.get("input_tokens", 0),
            tokens_out=usage.get("output_tokens", 0),
        )


class OpenAIProvider(AIProvider):
    name = "openai"
    base_url = "https://api.openai.com/v1"

    async def chat(self, message: str, system_prompt: str | None = None, max_tokens: int = 1024) -> AIProviderResult:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": message})
        body = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": 0.2,
        }
        payload = await _post_json(f"{self.base_url}/chat/completions", body, headers, self.timeout)
        try:
            text = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderRequestError("provider_error:openai_empty_choices") from exc
        usage = payload.get("usage", {})
        return AIProviderResult(
            text=str(text),
            provider=self.name,
            model=payload.get("model", self.model),
            tokens_in=usage.get("prompt_tokens", 0),
            tokens_out=usage.get("completion_tokens", 0),
        )


class GeminiProvider(AIProvider):
    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1/models"

    async def chat(self, message: str, system_prompt: str | None = None, max_tokens: int = 1024) -> AIProviderResult:
        # The v1 endpoint has no system role; the instructions are prepended to the user turn.
        text_in = f"{system_prompt}\n\n{message}" if system_prompt else message
        body = {
            "contents": [{"parts": [{"text": text_in}]}],
            "generationConfig": {"maxOutputTokens": max_tokens},
        }
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}
        payload = await _post_json(f"{self.base_url}/{self.model}:generateContent", body, headers, self.timeout)
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise ProviderRequestError("provider_error:gemini_no_candidates")
        try:
            text = candidates[0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderRequestError("provider_error:gemini_empty_content") from exc
        usage = payload.get("usageMetadata", {})
        return AIProviderResult(
            text=str(text),
            provider=self.name,
            model=self.model,
            tokens_in=usage.get("promptTokenCount", 0),
            tokens_out=usage.get("candidatesTokenCount", 0),
        )


PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    AnthropicProvider.name: AnthropicProvider,
    OpenAIProvider.name: OpenAIProvider,
    GeminiProvider.name: GeminiProvider,
}
