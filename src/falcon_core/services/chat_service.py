"""Chat turn lifecycle for falcon_core.

This module provides the ChatService, which owns one chat turn end to end:
persist the user message, assemble prompt and history, stream through the
ChatProxy, persist the assistant message and emit the terminal event. It
also generates conversation titles from the first exchange.
"""

import re

from falcon_core.config import ChatSettings
from falcon_core.exceptions import ConversationNotFoundError
from falcon_core.interfaces.sink import ChunkSink
from falcon_core.interfaces.storage import ConversationStorageInterface
from falcon_core.logging import get_logger
from falcon_core.models.chat import MessageDTO
from falcon_core.models.request import ChatRequestOptions, ProviderMessage, ProviderRequest
from falcon_core.models.stream import StreamResult, done_event
from falcon_core.services.chat_proxy import ChatProxy
from falcon_core.services.prompt_builder import build_provider_messages, merge_system_prompt
from falcon_core.streaming.sinks import CollectSink

__all__ = [
    "ChatService",
    "clean_title",
]

logger = get_logger(__name__)

TITLE_SYSTEM_PROMPT = (
    "You write short conversation titles. Reply with a title of at most six words, "
    "in the same language as the conversation, without quotes or punctuation at the end."
)

_QUOTES = "\"'`«»“”‘’"
_TITLE_PREFIX = re.compile(r"^(title|العنوان)\s*[:：]\s*", re.IGNORECASE)


def clean_title(raw: str, max_length: int = 60) -> str:
    """Normalize model output into a single-line title.

    Takes the first non-empty line, drops a leading "Title:" label and
    surrounding quotes, collapses whitespace and truncates to ``max_length``.
    Returns an empty string when nothing usable remains.
    """
    line = next((ln.strip() for ln in raw.splitlines() if ln.strip()), "")
    line = _TITLE_PREFIX.sub("", line).strip().strip(_QUOTES).strip()
    line = line.strip("#*").strip()
    line = " ".join(line.split())
    if len(line) > max_length:
        line = line[:max_length].rstrip()
    return line


class ChatService:
    """Runs chat turns and title generation.

    Example:
        service = ChatService(storage, proxy, settings)
        result = await service.send_message(options, sink)
    """

    def __init__(
        self,
        storage: ConversationStorageInterface,
        proxy: ChatProxy,
        settings: ChatSettings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            storage: Conversation storage
            proxy: Streaming orchestrator
            settings: Chat defaults (default model, title model)
        """
        self._storage = storage
        self._proxy = proxy
        self._settings = settings or ChatSettings()

    async def send_message(
        self,
        options: ChatRequestOptions,
        sink: ChunkSink,
    ) -> StreamResult:
        """Run one chat turn.

        The user message is stored before streaming begins. Exactly one
        assistant message is stored once the stream has returned, followed by
        a ``done`` event. If the turn is cancelled mid-stream nothing further
        is stored.

        Args:
            options: Request options for this turn
            sink: Destination for stream events

        Returns:
            Aggregated assistant text and usage

        Raises:
            ConversationNotFoundError: If the conversation does not exist
        """
        conversation_id = options.conversation_id
        conversation = await self._storage.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        await self._storage.add_message(
            conversation_id,
            "user",
            options.content,
            options.attachments,
        )
        history = await self._storage.get_messages(conversation_id)

        project_prompt = None
        if conversation.project_id is not None:
            project_prompt = await self._storage.get_project_system_prompt(
                conversation.project_id
            )
        system_prompt = merge_system_prompt(
            project_prompt=project_prompt,
            system_instructions=options.system_instructions,
            template_prompt=options.template_system_prompt,
            skill_prompt=options.skill_system_prompt,
        )

        if options.enabled_mcp_tools:
            logger.debug(
                "mcp_tools_not_forwarded",
                conversation_id=conversation_id,
                tools=options.enabled_mcp_tools,
            )

        request = ProviderRequest(
            model=options.model or self._settings.default_model,
            messages=build_provider_messages(history, system_prompt),
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            top_p=options.top_p,
        )
        result = await self._proxy.stream_chat_response(request, sink)

        await self._storage.add_message(conversation_id, "assistant", result.full_response)
        await sink.write(done_event(result.usage))

        logger.info(
            "chat_turn_completed",
            conversation_id=conversation_id,
            model=request.model,
            failed=result.error is not None,
        )
        return result

    async def generate_title(self, conversation_id: int) -> str:
        """Generate and store a title from the first exchange.

        Falls back to the (truncated) first user message when the model call
        fails or returns nothing usable.

        Args:
            conversation_id: Conversation to title

        Returns:
            The stored title (unchanged title if there is no user message yet)

        Raises:
            ConversationNotFoundError: If the conversation does not exist
        """
        conversation = await self._storage.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        messages = await self._storage.get_messages(conversation_id)
        first_user, first_reply = self._first_exchange(messages)
        if first_user is None:
            return conversation.title

        exchange = f"User: {first_user.content[:1000]}"
        if first_reply is not None:
            exchange += f"\n\nAssistant: {first_reply.content[:1000]}"

        request = ProviderRequest(
            model=self._settings.title_model,
            messages=[
                ProviderMessage(role="system", content=TITLE_SYSTEM_PROMPT),
                ProviderMessage(role="user", content=exchange),
            ],
            temperature=0.3,
            max_tokens=32,
        )
        sink = CollectSink()
        result = await self._proxy.stream_chat_response(request, sink)

        max_length = self._settings.title_max_length
        title = "" if result.error else clean_title(sink.text, max_length)
        if not title:
            title = clean_title(first_user.content, max_length) or conversation.title
            logger.info("title_fallback_used", conversation_id=conversation_id)

        await self._storage.update_conversation_title(conversation_id, title)
        return title

    @staticmethod
    def _first_exchange(
        messages: list[MessageDTO],
    ) -> tuple[MessageDTO | None, MessageDTO | None]:
        first_user = next((m for m in messages if m.role == "user"), None)
        if first_user is None:
            return None, None
        first_reply = next(
            (m for m in messages if m.role == "assistant" and m.id > first_user.id),
            None,
        )
        return first_user, first_reply
