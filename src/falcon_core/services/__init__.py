"""Chat services for falcon_core."""

from falcon_core.services.chat_proxy import SSE_HEADERS, SSE_MEDIA_TYPE, ChatProxy
from falcon_core.services.chat_service import ChatService
from falcon_core.services.prompt_builder import build_provider_messages, merge_system_prompt

__all__ = [
    "SSE_HEADERS",
    "SSE_MEDIA_TYPE",
    "ChatProxy",
    "ChatService",
    "build_provider_messages",
    "merge_system_prompt",
]
