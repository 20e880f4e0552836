"""Request models for falcon_core chat turns.

``ChatRequestOptions`` is what the browser sends for one turn.
``ProviderRequest`` is the provider-agnostic request handed to an adapter.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "ChatRequestOptions",
    "ProviderMessage",
    "ProviderRequest",
]


class ChatRequestOptions(BaseModel):
    """Options for sending one chat message.

    Accepts both snake_case and the camelCase keys the browser posts.

    Attributes:
        conversation_id: Target conversation
        content: User message text
        model: Model identifier (see ``detect_provider``); default model when None
        temperature: Sampling temperature override
        max_tokens: Completion length override
        top_p: Nucleus sampling override
        attachments: Opaque attachment metadata, stored with the user message
        system_instructions: User-level general instructions
        template_system_prompt: Prompt from the selected output template
        skill_system_prompt: Prompt from the selected skill
        enabled_mcp_tools: Tool names enabled in the UI
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    conversation_id: int
    content: str
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    top_p: float | None = None
    attachments: list[Any] | None = None
    system_instructions: str | None = None
    template_system_prompt: str | None = None
    skill_system_prompt: str | None = None
    enabled_mcp_tools: list[str] | None = None


class ProviderMessage(BaseModel, frozen=True):
    """One role/content pair in a provider request.

    ``role`` is kept as a plain string; adapters remap it per provider
    (``model`` and ``assistant`` are both accepted).
    """

    role: str
    content: str


class ProviderRequest(BaseModel):
    """Provider-agnostic chat completion request."""

    model_config = ConfigDict(frozen=True)

    model: str
    messages: list[ProviderMessage] = Field(default_factory=list)
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
