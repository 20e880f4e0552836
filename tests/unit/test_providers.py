"""Unit tests for provider adapters and the adapter factory."""

import json
from collections.abc import AsyncIterator, Callable
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from falcon_core.config import ProviderSettings
from falcon_core.models.request import ProviderMessage, ProviderRequest
from falcon_core.models.stream import TokenUsage
from falcon_core.providers.anthropic import AnthropicAdapter
from falcon_core.providers.errors import ProviderError, ProviderNotConfiguredError
from falcon_core.providers.factory import AdapterFactory
from falcon_core.providers.gemini import GeminiAdapter
from falcon_core.providers.openai_compatible import OpenAICompatibleAdapter
from falcon_core.providers.router import Provider
from falcon_core.streaming.sinks import CollectSink

OPENAI_URL = "https://api.openai.test/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.test/v1/messages"


async def _chunks(*parts: str) -> AsyncIterator[bytes]:
    for part in parts:
        yield part.encode("utf-8")


def _sse(*payloads: Any, done: bool = False) -> list[str]:
    frames = [f"data: {json.dumps(p)}\n\n" for p in payloads]
    if done:
        frames.append("data: [DONE]\n\n")
    return frames


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _request(**overrides: Any) -> ProviderRequest:
    fields: dict[str, Any] = {
        "model": "gpt-4o",
        "messages": [
            ProviderMessage(role="system", content="Be brief."),
            ProviderMessage(role="user", content="Hi"),
            ProviderMessage(role="assistant", content="Hello!"),
            ProviderMessage(role="user", content="How are you?"),
        ],
    }
    fields.update(overrides)
    return ProviderRequest(**fields)


class RecordingSink:
    """Sink recording every event written to it."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def write(self, event: dict[str, Any]) -> None:
        self.events.append(event)


class TestOpenAICompatibleAdapter:
    """Tests for OpenAICompatibleAdapter."""

    @pytest.mark.asyncio
    async def test_three_chunk_stream(self) -> None:
        frames = _sse(
            {"choices": [{"delta": {"content": "Hel"}}]},
            {"choices": [{"delta": {"content": "lo"}}]},
            {"usage": {"total_tokens": 42, "prompt_tokens": 10, "completion_tokens": 32}},
            done=True,
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(*frames))

        sink = RecordingSink()
        async with _client(handler) as http:
            adapter = OpenAICompatibleAdapter(http, OPENAI_URL, "sk-test")
            result = await adapter.stream(_request(), sink)

        assert sink.events == [{"content": "Hel"}, {"content": "lo"}]
        assert result.full_response == "Hello"
        assert result.usage.to_wire() == {
            "totalTokens": 42,
            "promptTokens": 10,
            "completionTokens": 32,
        }

    @pytest.mark.asyncio
    async def test_chunks_split_mid_json(self) -> None:
        body = "".join(
            _sse(
                {"choices": [{"delta": {"content": "abc"}}]},
                {"choices": [{"delta": {"content": "def"}}]},
                done=True,
            )
        )
        pieces = [body[:17], body[17:40], body[40:]]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(*pieces))

        sink = CollectSink()
        async with _client(handler) as http:
            result = await OpenAICompatibleAdapter(http, OPENAI_URL, "k").stream(_request(), sink)

        assert sink.text == "abcdef"
        assert result.full_response == "abcdef"
        assert result.usage.is_empty

    @pytest.mark.asyncio
    async def test_payload_and_headers(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=_chunks(*_sse(done=True)))

        async with _client(handler) as http:
            adapter = OpenAICompatibleAdapter(
                http,
                OPENAI_URL,
                "sk-test",
                provider_name="openrouter",
                extra_headers={"X-Title": "Falcon Core AI"},
            )
            await adapter.stream(
                _request(
                    messages=[ProviderMessage(role="model", content="earlier reply")],
                    max_tokens=100,
                ),
                RecordingSink(),
            )

        request = captured[0]
        payload = json.loads(request.content)
        assert request.headers["authorization"] == "Bearer sk-test"
        assert request.headers["x-title"] == "Falcon Core AI"
        assert payload["stream"] is True
        assert payload["stream_options"] == {"include_usage": True}
        assert payload["messages"] == [{"role": "assistant", "content": "earlier reply"}]
        assert payload["temperature"] == 0.7
        assert payload["max_tokens"] == 100
        assert payload["top_p"] == 1.0

    @pytest.mark.asyncio
    async def test_non_success_raises_before_any_write(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "Incorrect API key"}})

        sink = RecordingSink()
        async with _client(handler) as http:
            adapter = OpenAICompatibleAdapter(http, OPENAI_URL, "bad")
            with pytest.raises(ProviderError) as exc_info:
                await adapter.stream(_request(), sink)

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "openai"
        assert "Incorrect API key" in str(exc_info.value)
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_in_stream_error_raises(self) -> None:
        frames = _sse(
            {"choices": [{"delta": {"content": "par"}}]},
            {"error": {"message": "Rate limit exceeded", "code": 429}},
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(*frames))

        sink = RecordingSink()
        async with _client(handler) as http:
            with pytest.raises(ProviderError) as exc_info:
                await OpenAICompatibleAdapter(http, OPENAI_URL, "k").stream(_request(), sink)

        assert exc_info.value.status_code == 429
        assert sink.events == [{"content": "par"}]

    @pytest.mark.asyncio
    async def test_malformed_upstream_line_skipped(self) -> None:
        frames = [
            'data: {"choices": [{"delta": {"content": "a"}}]}\n\n',
            "data: {oops\n\n",
            'data: {"choices": [{"delta": {"content": "b"}}]}\n\n',
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(*frames))

        sink = CollectSink()
        async with _client(handler) as http:
            await OpenAICompatibleAdapter(http, OPENAI_URL, "k").stream(_request(), sink)

        assert sink.text == "ab"


class TestAnthropicAdapter:
    """Tests for AnthropicAdapter."""

    @pytest.mark.asyncio
    async def test_stream_and_usage(self) -> None:
        frames = [
            "event: message_start\n",
            'data: {"type": "message_start", "message": {"usage": {"input_tokens": 15}}}\n\n',
            "event: content_block_delta\n",
            'data: {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Hi "}}\n\n',
            'data: {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "there"}}\n\n',
            'data: {"type": "message_delta", "usage": {"output_tokens": 7}}\n\n',
            'data: {"type": "message_stop"}\n\n',
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(*frames))

        sink = RecordingSink()
        async with _client(handler) as http:
            adapter = AnthropicAdapter(http, ANTHROPIC_URL, "sk-ant")
            result = await adapter.stream(_request(model="claude-4-opus"), sink)

        assert sink.events == [{"content": "Hi "}, {"content": "there"}]
        assert result.full_response == "Hi there"
        assert result.usage == TokenUsage(total_tokens=22, prompt_tokens=15, completion_tokens=7)

    @pytest.mark.asyncio
    async def test_total_unset_without_output_tokens(self) -> None:
        frames = [
            'data: {"type": "message_start", "message": {"usage": {"input_tokens": 15}}}\n\n',
            'data: {"type": "content_block_delta", "delta": {"text": "x"}}\n\n',
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(*frames))

        async with _client(handler) as http:
            result = await AnthropicAdapter(http, ANTHROPIC_URL, "k").stream(
                _request(model="claude-4-opus"), RecordingSink()
            )

        assert result.usage.prompt_tokens == 15
        assert result.usage.completion_tokens is None
        assert result.usage.total_tokens is None

    def test_payload_lifts_system_prompt(self) -> None:
        adapter = AnthropicAdapter(httpx.AsyncClient(), ANTHROPIC_URL, "k")
        payload = adapter.build_payload(
            _request(
                model="claude-4-opus",
                messages=[
                    ProviderMessage(role="system", content="Be brief."),
                    ProviderMessage(role="user", content="Hi"),
                    ProviderMessage(role="model", content="Hello"),
                    ProviderMessage(role="tool", content="42"),
                ],
            )
        )

        assert payload["system"] == "Be brief."
        assert payload["messages"] == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
            {"role": "user", "content": "42"},
        ]
        assert payload["stream"] is True
        assert payload["max_tokens"] == 4096

    def test_headers(self) -> None:
        adapter = AnthropicAdapter(httpx.AsyncClient(), ANTHROPIC_URL, "sk-ant", api_version="2023-06-01")
        headers = adapter.build_headers()
        assert headers["x-api-key"] == "sk-ant"
        assert headers["anthropic-version"] == "2023-06-01"

    @pytest.mark.asyncio
    async def test_error_event_raises(self) -> None:
        frames = ['data: {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}\n\n']

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(*frames))

        async with _client(handler) as http:
            with pytest.raises(ProviderError, match="Overloaded"):
                await AnthropicAdapter(http, ANTHROPIC_URL, "k").stream(
                    _request(model="claude-4-opus"), RecordingSink()
                )


class FakeGeminiModels:
    """Stand-in for ``client.aio.models``."""

    def __init__(self, texts: list[str | None]) -> None:
        self._texts = texts
        self.calls: list[dict[str, Any]] = []

    async def generate_content_stream(self, **kwargs: Any) -> AsyncIterator[Any]:
        self.calls.append(kwargs)

        async def gen() -> AsyncIterator[Any]:
            for text in self._texts:
                yield SimpleNamespace(text=text)

        return gen()


def _fake_gemini(texts: list[str | None]) -> tuple[Any, FakeGeminiModels]:
    models = FakeGeminiModels(texts)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


class TestGeminiAdapter:
    """Tests for GeminiAdapter."""

    @pytest.mark.asyncio
    async def test_stream_forwards_text(self) -> None:
        client, models = _fake_gemini(["Hel", None, "lo"])
        sink = RecordingSink()

        result = await GeminiAdapter("key", client=client).stream(
            _request(model="gemini-2.5-flash"), sink
        )

        assert sink.events == [{"content": "Hel"}, {"content": "lo"}]
        assert result.full_response == "Hello"
        assert result.usage.is_empty

        call = models.calls[0]
        assert call["model"] == "gemini-2.5-flash"
        assert call["config"]["system_instruction"] == "Be brief."
        assert call["config"]["max_output_tokens"] == 4096
        assert [c["role"] for c in call["contents"]] == ["user", "model", "user"]

    def test_build_contents_without_system(self) -> None:
        contents, system = GeminiAdapter.build_contents(
            _request(messages=[ProviderMessage(role="user", content="Hi")])
        )
        assert contents == [{"role": "user", "parts": [{"text": "Hi"}]}]
        assert system is None

    @pytest.mark.asyncio
    async def test_api_error_becomes_provider_error(self) -> None:
        from google.genai import errors

        class FailingModels:
            async def generate_content_stream(self, **kwargs: Any) -> Any:
                raise errors.APIError(
                    400,
                    {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}},
                )

        client = SimpleNamespace(aio=SimpleNamespace(models=FailingModels()))
        with pytest.raises(ProviderError) as exc_info:
            await GeminiAdapter("bad", client=client).stream(_request(), RecordingSink())

        assert exc_info.value.provider == "google"
        assert exc_info.value.status_code == 400


class TestAdapterFactory:
    """Tests for AdapterFactory."""

    def test_creates_adapter_per_provider(self, provider_settings: ProviderSettings) -> None:
        gemini_client, _ = _fake_gemini([])
        factory = AdapterFactory(provider_settings, httpx.AsyncClient(), gemini_client=gemini_client)

        openai = factory.create(Provider.OPENAI)
        openrouter = factory.create(Provider.OPENROUTER)
        anthropic = factory.create(Provider.ANTHROPIC)
        google = factory.create(Provider.GOOGLE)

        assert isinstance(openai, OpenAICompatibleAdapter)
        assert openai.provider_name == "openai"
        assert isinstance(openrouter, OpenAICompatibleAdapter)
        assert openrouter.provider_name == "openrouter"
        assert openrouter.build_headers()["HTTP-Referer"] == provider_settings.openrouter_referer
        assert isinstance(anthropic, AnthropicAdapter)
        assert isinstance(google, GeminiAdapter)
        assert google.client is gemini_client

    @pytest.mark.parametrize(
        "provider",
        [Provider.OPENAI, Provider.OPENROUTER, Provider.ANTHROPIC, Provider.GOOGLE],
    )
    def test_missing_key_raises(self, provider: Provider) -> None:
        settings = ProviderSettings(
            openai_api_key=None,
            openrouter_api_key=None,
            anthropic_api_key=None,
            gemini_api_key=None,
        )
        factory = AdapterFactory(settings, httpx.AsyncClient())

        with pytest.raises(ProviderNotConfiguredError, match=f"{provider.value} API key not configured"):
            factory.create(provider)
