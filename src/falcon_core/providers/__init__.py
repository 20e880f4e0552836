"""Upstream LLM provider routing and adapters for falcon_core."""

from falcon_core.providers.anthropic import AnthropicAdapter
from falcon_core.providers.errors import ProviderError, ProviderNotConfiguredError
from falcon_core.providers.factory import AdapterFactory, create_http_client
from falcon_core.providers.gemini import GeminiAdapter
from falcon_core.providers.openai_compatible import OpenAICompatibleAdapter
from falcon_core.providers.router import Provider, ProviderRoute, detect_provider

__all__ = [
    "AdapterFactory",
    "AnthropicAdapter",
    "GeminiAdapter",
    "OpenAICompatibleAdapter",
    "Provider",
    "ProviderError",
    "ProviderNotConfiguredError",
    "ProviderRoute",
    "create_http_client",
    "detect_provider",
]
