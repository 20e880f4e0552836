"""Conversation routes for the falcon_core HTTP API.

Thin layer: HTTP concerns only. Chat turns are delegated to ChatService and
streamed back as Server-Sent Events.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import StreamingResponse

from falcon_core.api.schemas import CreateConversationRequest, SendMessageRequest, TitleResponse
from falcon_core.exceptions import ConversationNotFoundError
from falcon_core.interfaces.storage import ConversationStorageInterface
from falcon_core.logging import bound_context, get_logger
from falcon_core.models.chat import ConversationDTO, ConversationWithMessagesDTO
from falcon_core.models.request import ChatRequestOptions
from falcon_core.models.stream import error_event
from falcon_core.services.chat_proxy import SSE_HEADERS, SSE_MEDIA_TYPE
from falcon_core.services.chat_service import ChatService
from falcon_core.streaming.sinks import QueueSink

__all__ = [
    "router",
    "stream_chat_turn",
]

logger = get_logger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


def get_storage(request: Request) -> ConversationStorageInterface:
    return request.app.state.storage


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


async def _require_conversation(
    storage: ConversationStorageInterface,
    conversation_id: int,
) -> ConversationDTO:
    conversation = await storage.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found",
        )
    return conversation


async def stream_chat_turn(
    service: ChatService,
    options: ChatRequestOptions,
) -> AsyncIterator[str]:
    """Run a chat turn in a task and yield its SSE frames.

    Failures after the stream has started are sent as one ``{"error": ...}``
    event. If the consumer goes away (browser disconnect) the turn task is
    cancelled, so no assistant message is stored.
    """
    sink = QueueSink()

    async def run() -> None:
        try:
            with bound_context(conversation_id=options.conversation_id):
                await service.send_message(options, sink)
        except Exception as e:
            logger.exception(
                "chat_turn_failed",
                conversation_id=options.conversation_id,
                error=str(e),
            )
            await sink.write(error_event(str(e) or "Failed to send message"))
        finally:
            sink.close()

    task = asyncio.create_task(run())
    try:
        async for frame in sink.frames():
            yield frame
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("chat_turn_cancelled", conversation_id=options.conversation_id)


@router.get("", response_model=list[ConversationDTO])
async def list_conversations(
    storage: ConversationStorageInterface = Depends(get_storage),
) -> list[ConversationDTO]:
    return await storage.list_conversations()


@router.post("", response_model=ConversationDTO, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    body: CreateConversationRequest,
    storage: ConversationStorageInterface = Depends(get_storage),
) -> ConversationDTO:
    return await storage.create_conversation(
        title=body.title or "New Chat",
        project_id=body.project_id,
    )


@router.get("/{conversation_id}", response_model=ConversationWithMessagesDTO)
async def get_conversation(
    conversation_id: int,
    storage: ConversationStorageInterface = Depends(get_storage),
) -> ConversationWithMessagesDTO:
    conversation = await _require_conversation(storage, conversation_id)
    messages = await storage.get_messages(conversation_id)
    return ConversationWithMessagesDTO(**conversation.model_dump(), messages=messages)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: int,
    storage: ConversationStorageInterface = Depends(get_storage),
) -> Response:
    await storage.delete_conversation(conversation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{conversation_id}/messages")
async def send_message(
    conversation_id: int,
    body: SendMessageRequest,
    storage: ConversationStorageInterface = Depends(get_storage),
    service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """Send a message and stream the assistant reply as SSE."""
    await _require_conversation(storage, conversation_id)
    options = ChatRequestOptions(conversation_id=conversation_id, **body.model_dump())
    return StreamingResponse(
        stream_chat_turn(service, options),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )


@router.post("/{conversation_id}/auto-title", response_model=TitleResponse)
async def auto_title(
    conversation_id: int,
    service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    try:
        title = await service.generate_title(conversation_id)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"title": title}
