"""Request/response bodies for the falcon_core HTTP API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "CreateConversationRequest",
    "SendMessageRequest",
    "TitleResponse",
]


class SendMessageRequest(BaseModel):
    """Body of ``POST /conversations/{id}/messages`` (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: str = Field(min_length=1)
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0, le=2)
    max_tokens: int | None = Field(default=None, gt=0)
    top_p: float | None = Field(default=None, ge=0, le=1)
    attachments: list[Any] | None = None
    system_instructions: str | None = None
    template_system_prompt: str | None = None
    skill_system_prompt: str | None = None
    enabled_mcp_tools: list[str] | None = None


class CreateConversationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    project_id: int | None = None


class TitleResponse(BaseModel):
    title: str
