"""Model identifier routing.

Model ids are plain strings: bare provider-native ids (``gpt-4o``,
``claude-4-opus``, ``gemini-2.5-flash``) or ``openrouter/<upstream-id>``.
"""

from dataclasses import dataclass
from enum import StrEnum

__all__ = [
    "FALLBACK_MODEL",
    "OPENROUTER_PREFIX",
    "Provider",
    "ProviderRoute",
    "detect_provider",
]

OPENROUTER_PREFIX = "openrouter/"
FALLBACK_MODEL = "gemini-2.5-flash"

_OPENAI_PREFIXES = ("gpt-", "o1-", "o3-")


class Provider(StrEnum):
    """Upstream LLM providers."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


@dataclass(frozen=True)
class ProviderRoute:
    """Selected provider and the model id to forward to it."""

    provider: Provider
    model_id: str


def detect_provider(model: str | None) -> ProviderRoute:
    """Pick the provider for a model id.

    First match wins. Unknown or empty ids fall back to Gemini Flash, so every
    input resolves to some provider.

    Args:
        model: Model identifier as selected in the UI

    Returns:
        ProviderRoute with the forwarded model id
    """
    model = model or ""
    if model.startswith(OPENROUTER_PREFIX):
        return ProviderRoute(Provider.OPENROUTER, model[len(OPENROUTER_PREFIX) :])
    if model.startswith(_OPENAI_PREFIXES):
        return ProviderRoute(Provider.OPENAI, model)
    if model.startswith("claude-"):
        return ProviderRoute(Provider.ANTHROPIC, model)
    if model.startswith("gemini-"):
        return ProviderRoute(Provider.GOOGLE, model)
    return ProviderRoute(Provider.GOOGLE, FALLBACK_MODEL)
