"""Adapter selection for a routed provider.

This module maps a ``Provider`` to a configured adapter instance.
"""

from typing import Any

import httpx

from falcon_core.config import ProviderSettings
from falcon_core.interfaces.provider import ProviderAdapter
from falcon_core.providers.anthropic import AnthropicAdapter
from falcon_core.providers.errors import ProviderNotConfiguredError
from falcon_core.providers.gemini import GeminiAdapter
from falcon_core.providers.openai_compatible import OpenAICompatibleAdapter
from falcon_core.providers.router import Provider

__all__ = [
    "AdapterFactory",
    "create_http_client",
]


def create_http_client(settings: ProviderSettings) -> httpx.AsyncClient:
    """Create the shared HTTP client used for upstream provider calls."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout),
    )


class AdapterFactory:
    """Builds the adapter for a provider from settings.

    Example:
        factory = AdapterFactory(settings, http_client)
        adapter = factory.create(Provider.ANTHROPIC)
        result = await adapter.stream(request, sink)
    """

    def __init__(
        self,
        settings: ProviderSettings,
        http_client: httpx.AsyncClient,
        gemini_client: Any | None = None,
    ) -> None:
        """Initialize the factory.

        Args:
            settings: Provider credentials and endpoints
            http_client: Shared client for SSE-based adapters
            gemini_client: Optional pre-built google-genai client
        """
        self._settings = settings
        self._http = http_client
        self._gemini_client = gemini_client

    def create(self, provider: Provider) -> ProviderAdapter:
        """Create the adapter for ``provider``.

        Raises:
            ProviderNotConfiguredError: If the provider has no API key
        """
        settings = self._settings
        match provider:
            case Provider.OPENROUTER:
                return OpenAICompatibleAdapter(
                    self._http,
                    settings.openrouter_url,
                    self._require_key(provider, settings.openrouter_api_key),
                    provider_name=provider.value,
                    extra_headers={
                        "HTTP-Referer": settings.openrouter_referer,
                        "X-Title": settings.openrouter_title,
                    },
                )
            case Provider.OPENAI:
                return OpenAICompatibleAdapter(
                    self._http,
                    settings.openai_url,
                    self._require_key(provider, settings.openai_api_key),
                    provider_name=provider.value,
                )
            case Provider.ANTHROPIC:
                return AnthropicAdapter(
                    self._http,
                    settings.anthropic_url,
                    self._require_key(provider, settings.anthropic_api_key),
                    api_version=settings.anthropic_version,
                )
            case Provider.GOOGLE:
                if self._gemini_client is not None:
                    return GeminiAdapter("", client=self._gemini_client)
                adapter = GeminiAdapter(
                    self._require_key(provider, settings.gemini_api_key),
                    base_url=settings.gemini_base_url,
                )
                # Reuse one SDK client across requests
                self._gemini_client = adapter.client
                return adapter

    @staticmethod
    def _require_key(provider: Provider, key: Any) -> str:
        if key is None or not key.get_secret_value():
            raise ProviderNotConfiguredError(provider.value)
        return key.get_secret_value()
