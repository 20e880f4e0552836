"""Domain exceptions for falcon_core.

Provider-level errors live in ``falcon_core.providers.errors``.
"""

__all__ = [
    "ConversationNotFoundError",
]


class ConversationNotFoundError(LookupError):
    """The referenced conversation does not exist."""

    def __init__(self, conversation_id: int) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")
