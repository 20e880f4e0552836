"""Client orchestrator for streaming chat turns.

``StreamingChatClient`` drives one send at a time against the falcon_core
API: it inserts an optimistic user message into the cache, POSTs with
retry and exponential backoff, reads the SSE reply through ``SSEParser``
and exposes the accumulated text, usage and status as it goes.

Status flow::

    idle -> connecting -> streaming -> idle | error | stopped

A single abort event spans the whole send. Every awaited network call and
every backoff sleep is raced against it, so ``stop_generation()`` takes
effect immediately and no further chunks are read.
"""

import asyncio
import contextlib
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import StrEnum
from typing import Any, Self, TypeVar

import httpx
from pydantic import ValidationError

from falcon_core.client.cache import CONVERSATIONS_KEY, ConversationCache, conversation_key
from falcon_core.config import ClientSettings
from falcon_core.logging import get_logger
from falcon_core.models.chat import utcnow
from falcon_core.models.request import ChatRequestOptions
from falcon_core.models.stream import TokenUsage
from falcon_core.streaming.sse_parser import SSEParseError, SSEParser

__all__ = [
    "ChatInFlightError",
    "ChatRequestError",
    "StreamAborted",
    "StreamingChatClient",
    "StreamingStatus",
    "generate_temp_id",
    "is_retryable_status",
]

logger = get_logger(__name__)

T = TypeVar("T")


class StreamingStatus(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    ERROR = "error"
    STOPPED = "stopped"


class ChatInFlightError(RuntimeError):
    """Raised when a send is started while another one is running."""


class StreamAborted(Exception):
    """Raised internally when the abort event fires."""


class ChatRequestError(Exception):
    """The message POST was answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def generate_temp_id() -> float:
    """Return an id for an optimistic message.

    Values lie in the open interval (-2, -1) and are never integral, so they
    can't collide with server-assigned positive ids.
    """
    while True:
        value = -1.0 - random.random()
        if -2.0 < value < -1.0 and not value.is_integer():
            return value


def is_retryable_status(status_code: int) -> bool:
    """Whether a POST answered with ``status_code`` should be retried."""
    return status_code == 429 or status_code >= 500


class StreamingChatClient:
    """Streams chat turns from the falcon_core API.

    Example:
        async with StreamingChatClient.from_settings(ClientSettings()) as chat:
            await chat.send_message(ChatRequestOptions(conversation_id=1, content="Hi"))
            print(chat.streaming_content, chat.last_usage)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: ConversationCache | None = None,
        settings: ClientSettings | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_change: Callable[["StreamingChatClient"], None] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Client whose ``base_url`` points at the API
            cache: Conversation cache shared with the UI
            settings: Retry settings
            sleep: Backoff sleep (injectable for tests)
            on_change: Called after every status or content change
        """
        self._http = http_client
        self._cache = cache or ConversationCache()
        self._settings = settings or ClientSettings()
        self._sleep = sleep
        self._on_change = on_change

        self._status = StreamingStatus.IDLE
        self._content = ""
        self._usage: TokenUsage | None = None
        self._error: str | None = None
        self._abort = asyncio.Event()
        self._background: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> Self:
        """Build a client with its own HTTP connection pool."""
        http_client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=httpx.Timeout(None, connect=10.0),
        )
        return cls(http_client, settings=settings, **kwargs)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Wait for background requests and close the HTTP client."""
        await self.drain()
        await self._http.aclose()

    async def drain(self) -> None:
        """Wait for pending fire-and-forget requests (auto-title)."""
        if self._background:
            await asyncio.gather(*self._background)

    @property
    def cache(self) -> ConversationCache:
        return self._cache

    @property
    def status(self) -> StreamingStatus:
        return self._status

    @property
    def streaming_content(self) -> str:
        """Text accumulated from ``content`` events of the current send."""
        return self._content

    @property
    def last_usage(self) -> TokenUsage | None:
        return self._usage

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_streaming(self) -> bool:
        return self._status in (StreamingStatus.CONNECTING, StreamingStatus.STREAMING)

    def clear_error(self) -> None:
        self._error = None
        if self._status == StreamingStatus.ERROR:
            self._set_status(StreamingStatus.IDLE)

    def stop_generation(self) -> None:
        """Abort the send in flight, if any."""
        if self.is_streaming:
            logger.info("chat_stop_requested")
        self._abort.set()

    async def create_conversation(self, title: str | None = None) -> dict[str, Any]:
        """Create a conversation on the server and invalidate the list."""
        response = await self._http.post("/conversations", json={"title": title})
        response.raise_for_status()
        self._cache.invalidate(CONVERSATIONS_KEY)
        return response.json()

    async def fetch_conversation(self, conversation_id: int) -> dict[str, Any]:
        """Load a conversation with its messages through the cache."""

        async def load() -> dict[str, Any]:
            response = await self._http.get(f"/conversations/{conversation_id}")
            response.raise_for_status()
            return response.json()

        return await self._cache.get_or_fetch(conversation_key(conversation_id), load)

    async def send_message(self, options: ChatRequestOptions) -> None:
        """Send a message and stream the reply.

        Outcomes are reported through ``status`` and ``error``; transport
        and HTTP failures do not raise. Cancelling the calling task sets
        ``stopped`` and propagates the cancellation.

        Raises:
            ChatInFlightError: If another send is still running
        """
        if self.is_streaming:
            raise ChatInFlightError("A message is already being generated")

        conversation_id = options.conversation_id
        self._abort = asyncio.Event()
        self._content = ""
        self._usage = None
        self._error = None
        self._set_status(StreamingStatus.CONNECTING)
        self._insert_optimistic_message(options)

        completed = False
        try:
            response = await self._post_with_retry(options)
            try:
                self._check_abort()
                self._set_status(StreamingStatus.STREAMING)
                await self._read_stream(response)
            finally:
                await response.aclose()
            completed = True
            self._set_status(StreamingStatus.IDLE)
        except StreamAborted:
            self._set_status(StreamingStatus.STOPPED)
            logger.info("chat_stream_stopped", conversation_id=conversation_id)
        except asyncio.CancelledError:
            self._set_status(StreamingStatus.STOPPED)
            logger.info("chat_stream_cancelled", conversation_id=conversation_id)
            raise
        except (ChatRequestError, httpx.HTTPError) as e:
            self._error = str(e) or type(e).__name__
            self._set_status(StreamingStatus.ERROR)
            logger.warning("chat_stream_failed", conversation_id=conversation_id, error=self._error)
        except Exception:
            self._set_status(StreamingStatus.ERROR)
            raise
        finally:
            self._invalidate(conversation_id)

        if completed and self._content:
            self._schedule_auto_title(conversation_id)

    # Request
    async def _post_with_retry(self, options: ChatRequestOptions) -> httpx.Response:
        url = f"/conversations/{options.conversation_id}/messages"
        body = options.model_dump(by_alias=True, exclude_none=True, exclude={"conversation_id"})
        max_retries = self._settings.max_retries
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            self._check_abort()
            request = self._http.build_request("POST", url, json=body)
            try:
                response = await self._race(self._http.send(request, stream=True))
            except httpx.TransportError as e:
                last_error = e
                logger.warning("chat_request_network_error", attempt=attempt, error=str(e))
            else:
                if response.is_success:
                    return response
                error = await self._request_error(response)
                if not is_retryable_status(response.status_code):
                    raise error
                last_error = error
                logger.warning(
                    "chat_request_retryable_status",
                    attempt=attempt,
                    status_code=response.status_code,
                )

            if attempt < max_retries:
                delay = self._settings.base_delay * 2**attempt
                self._check_abort()
                await self._race(self._sleep(delay))

        assert last_error is not None
        raise last_error

    @staticmethod
    async def _request_error(response: httpx.Response) -> ChatRequestError:
        try:
            await response.aread()
        finally:
            await response.aclose()

        message = response.text or response.reason_phrase
        with contextlib.suppress(ValueError):
            data = response.json()
            if isinstance(data, dict):
                detail = data.get("detail") or data.get("error")
                if detail:
                    message = str(detail)
        return ChatRequestError(response.status_code, f"HTTP {response.status_code}: {message}")

    # Stream
    async def _read_stream(self, response: httpx.Response) -> None:
        parser = SSEParser(on_error=self._log_parse_error)
        chunks = response.aiter_text()
        try:
            while True:
                self._check_abort()
                chunk = await self._race(_next_chunk(chunks))
                self._check_abort()
                if chunk is None:
                    break
                for event in parser.feed(chunk):
                    self._handle_event(event.data)
            for event in parser.flush():
                self._handle_event(event.data)
        finally:
            await chunks.aclose()

    def _handle_event(self, data: Any) -> None:
        if not isinstance(data, dict):
            return
        content = data.get("content")
        if isinstance(content, str) and content:
            self._content += content
            self._notify()
        if data.get("error"):
            # Recorded only; the stream keeps going and may still finish with done
            self._error = str(data["error"])
            logger.warning("chat_stream_error_event", error=self._error)
            self._notify()
        if data.get("done"):
            try:
                self._usage = TokenUsage.model_validate(data.get("usage") or {})
            except ValidationError as e:
                logger.warning("chat_stream_usage_invalid", usage=data.get("usage"), error=str(e))

    @staticmethod
    def _log_parse_error(err: SSEParseError) -> None:
        logger.warning("chat_stream_parse_error", raw=err.raw, error=str(err.error))

    # Abort handling
    def _check_abort(self) -> None:
        if self._abort.is_set():
            raise StreamAborted

    async def _race(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the abort event fires first."""
        task = asyncio.ensure_future(awaitable)
        abort_wait = asyncio.ensure_future(self._abort.wait())
        try:
            done, _ = await asyncio.wait({task, abort_wait}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The inner task must finish before callers close the stream it reads
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            raise
        finally:
            abort_wait.cancel()

        if task in done:
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise StreamAborted

    # Cache
    def _insert_optimistic_message(self, options: ChatRequestOptions) -> None:
        message = {
            "id": generate_temp_id(),
            "conversationId": options.conversation_id,
            "role": "user",
            "content": options.content,
            "attachments": options.attachments,
            "createdAt": utcnow().isoformat(),
        }

        def append(conversation: dict[str, Any] | None) -> dict[str, Any] | None:
            if conversation is None:
                return None
            return {**conversation, "messages": [*conversation.get("messages", []), message]}

        self._cache.set_query_data(conversation_key(options.conversation_id), append)

    def _invalidate(self, conversation_id: int) -> None:
        self._cache.invalidate(conversation_key(conversation_id))
        self._cache.invalidate(CONVERSATIONS_KEY)

    # Auto-title
    def _schedule_auto_title(self, conversation_id: int) -> None:
        task = asyncio.create_task(self._auto_title(conversation_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _auto_title(self, conversation_id: int) -> None:
        try:
            response = await self._http.post(f"/conversations/{conversation_id}/auto-title")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("auto_title_failed", conversation_id=conversation_id, error=str(e))
            return
        self._invalidate(conversation_id)

    def _set_status(self, status: StreamingStatus) -> None:
        self._status = status
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)


async def _next_chunk(chunks: AsyncIterator[str]) -> str | None:
    try:
        return await anext(chunks)
    except StopAsyncIteration:
        return None
