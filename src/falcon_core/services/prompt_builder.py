"""System prompt merging and provider message assembly."""

from falcon_core.models.chat import MessageDTO
from falcon_core.models.request import ProviderMessage

__all__ = [
    "build_provider_messages",
    "merge_system_prompt",
]

_SEPARATOR = "\n\n"


def merge_system_prompt(
    project_prompt: str | None = None,
    system_instructions: str | None = None,
    template_prompt: str | None = None,
    skill_prompt: str | None = None,
) -> str:
    """Merge prompt fragments in fixed precedence.

    The project prompt replaces the user's general instructions outright
    (the two are never combined). Template and skill prompts are then
    appended, each separated by a blank line.

    Args:
        project_prompt: Prompt of the conversation's project
        system_instructions: User-level general instructions
        template_prompt: Output template prompt
        skill_prompt: Skill prompt

    Returns:
        Merged prompt, empty if no fragment is set
    """
    base = project_prompt or system_instructions or ""
    parts = [p for p in (base, template_prompt, skill_prompt) if p]
    return _SEPARATOR.join(parts)


def build_provider_messages(
    history: list[MessageDTO],
    system_prompt: str = "",
) -> list[ProviderMessage]:
    """Build the provider message list from the full conversation history.

    The merged system prompt, when non-empty, is prepended as a ``system``
    message.
    """
    messages: list[ProviderMessage] = []
    if system_prompt:
        messages.append(ProviderMessage(role="system", content=system_prompt))
    messages.extend(ProviderMessage(role=m.role, content=m.content) for m in history)
    return messages
