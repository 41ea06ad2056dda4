"""
AI provider gateway: one generate(prompt) -> text contract over two
generation back-ends.

Back-ends:
- Gemini: REST generateContent, API key in x-goog-api-key
- OpenRouter: OpenAI-compatible chat completions, bearer auth

Fallback policy: the configured primary provider is tried first, then the
other one. Each provider gets exactly one attempt per call; any failure
(missing key, transport error, non-2xx, unexpected body) is recorded and the
next provider is tried. When all fail, ProviderExhaustedError carries the
last underlying error message.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from scriptdesk.errors import ProviderExhaustedError
from scriptdesk.models import AIProvider, Profile
from scriptdesk.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A single provider attempt failed."""


@dataclass(frozen=True)
class ProviderConfig:
    gemini_api_key: str | None = None
    openrouter_api_key: str | None = None
    primary_provider: AIProvider = AIProvider.gemini

    def api_key_for(self, provider: AIProvider) -> str | None:
        if provider is AIProvider.gemini:
            return self.gemini_api_key
        return self.openrouter_api_key

    @classmethod
    def from_profile(cls, profile: Profile | None, settings: Settings | None = None) -> "ProviderConfig":
        """Profile credentials first, server-wide keys from settings as fallback."""
        settings = settings or get_settings()
        gemini_key = (profile.gemini_api_key if profile else None) or settings.gemini_api_key
        openrouter_key = (profile.openrouter_api_key if profile else None) or settings.openrouter_api_key
        primary = (profile.primary_provider if profile else None) or settings.default_primary_provider
        try:
            primary_provider = AIProvider(primary)
        except ValueError:
            primary_provider = AIProvider.gemini
        return cls(
            gemini_api_key=gemini_key or None,
            openrouter_api_key=openrouter_key or None,
            primary_provider=primary_provider,
        )


def provider_order(config: ProviderConfig) -> list[AIProvider]:
    if config.primary_provider is AIProvider.openrouter:
        return [AIProvider.openrouter, AIProvider.gemini]
    return [AIProvider.gemini, AIProvider.openrouter]


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.reason_phrase or resp.text[:200]
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return resp.reason_phrase or str(data)[:200]


class ProviderBackend(ABC):
    provider: AIProvider
    missing_key_message: str

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.ai_request_timeout_sec, transport=self._transport)

    @abstractmethod
    async def complete(
        self,
        api_key: str,
        prompt: str,
        *,
        temperature: float,
        structured: bool,
        json_schema: dict[str, Any] | None,
    ) -> str:
        ...


class GeminiBackend(ProviderBackend):
    provider = AIProvider.gemini
    missing_key_message = "Google Gemini API key is not configured."

    async def complete(self, api_key, prompt, *, temperature, structured, json_schema):
        url = f"{self.settings.gemini_base_url}/models/{self.settings.gemini_model}:generateContent"
        generation_config: dict[str, Any] = {"temperature": temperature}
        if structured:
            generation_config["responseMimeType"] = "application/json"
            if json_schema:
                generation_config["responseSchema"] = json_schema
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}

        async with self._client() as client:
            resp = await client.post(url, json=body, headers=headers)
        if resp.status_code >= 400:
            raise ProviderError(f"Gemini API error ({resp.status_code}): {_error_message(resp)}")

        data = resp.json()
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback") or {}
            raise ProviderError(f"Gemini returned no candidates (blockReason={feedback.get('blockReason')})")
        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not text:
            raise ProviderError(f"Gemini returned an empty response (finishReason={candidate.get('finishReason')})")
        return text


class OpenRouterBackend(ProviderBackend):
    provider = AIProvider.openrouter
    missing_key_message = "OpenRouter API key is not configured."

    async def complete(self, api_key, prompt, *, temperature, structured, json_schema):
        url = f"{self.settings.openrouter_base_url}/chat/completions"
        body: dict[str, Any] = {
            "model": self.settings.openrouter_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if structured:
            # OpenRouter has no portable schema field; the schema travels in the prompt.
            body["response_format"] = {"type": "json_object"}
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.settings.openrouter_referer,
            "X-Title": self.settings.openrouter_title,
        }

        async with self._client() as client:
            resp = await client.post(url, json=body, headers=headers)
        if resp.status_code >= 400:
            raise ProviderError(f"OpenRouter API error ({resp.status_code}): {_error_message(resp)}")

        data = resp.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(f"OpenRouter returned an unexpected body: {str(data)[:200]}") from exc
        if not content:
            raise ProviderError("OpenRouter returned an empty response")
        return content


class ProviderGateway:
    """Ordered-fallback front for the provider back-ends."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        backends: dict[AIProvider, ProviderBackend] | None = None,
    ):
        settings = settings or get_settings()
        self.backends = backends or {
            AIProvider.gemini: GeminiBackend(settings, transport),
            AIProvider.openrouter: OpenRouterBackend(settings, transport),
        }

    async def generate(
        self,
        prompt: str,
        config: ProviderConfig,
        *,
        temperature: float = 0.0,
        structured: bool = False,
        json_schema: dict[str, Any] | None = None,
    ) -> str:
        attempts: list[tuple[str, str]] = []
        for provider in provider_order(config):
            backend = self.backends[provider]
            try:
                logger.info(f"[ai] attempting provider {provider.value} (structured={structured})")
                api_key = config.api_key_for(provider)
                if not api_key:
                    raise ProviderError(backend.missing_key_message)
                return await backend.complete(
                    api_key,
                    prompt,
                    temperature=temperature,
                    structured=structured,
                    json_schema=json_schema,
                )
            except Exception as exc:  # noqa: BLE001
                message = str(exc) or exc.__class__.__name__
                logger.warning(f"[ai] provider {provider.value} failed: {message}")
                attempts.append((provider.value, message))

        raise ProviderExhaustedError(attempts[-1][1] if attempts else None, attempts)


# Singleton: swap in tests or to point at different endpoints
_gateway: ProviderGateway | None = None


def get_provider_gateway() -> ProviderGateway:
    global _gateway
    if _gateway is None:
        _gateway = ProviderGateway()
    return _gateway


def set_provider_gateway(gateway: ProviderGateway | None) -> None:
    global _gateway
    _gateway = gateway
