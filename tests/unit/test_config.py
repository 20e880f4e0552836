"""Unit tests for configuration and logging setup."""

import logging

import pytest
import structlog

from falcon_core.config import ChatSettings, ClientSettings, ProviderSettings
from falcon_core.logging import bound_context, configure_logging


class TestSettings:
    """Tests for environment-driven settings."""

    def test_provider_keys_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FALCON_CORE_PROVIDER_ANTHROPIC_API_KEY", "sk-ant-env")
        settings = ProviderSettings()
        assert settings.anthropic_api_key is not None
        assert settings.anthropic_api_key.get_secret_value() == "sk-ant-env"
        assert "sk-ant-env" not in repr(settings)

    def test_chat_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FALCON_CORE_CHAT_DEFAULT_MODEL", raising=False)
        monkeypatch.setenv("FALCON_CORE_CHAT_TITLE_MODEL", "gpt-4o-mini")
        settings = ChatSettings()
        assert settings.default_model == "gemini-2.5-flash"
        assert settings.title_model == "gpt-4o-mini"

    def test_client_retry_defaults(self) -> None:
        settings = ClientSettings(base_url="http://localhost:9000")
        assert settings.max_retries == 2
        assert settings.base_delay == 1.0


class TestLogging:
    """Tests for logging helpers."""

    def test_bound_context_binds_and_restores(self) -> None:
        with bound_context(conversation_id=7):
            assert structlog.contextvars.get_contextvars()["conversation_id"] == 7
        assert "conversation_id" not in structlog.contextvars.get_contextvars()

    def test_level_by_name(self) -> None:
        try:
            configure_logging(level="debug")
            assert logging.getLogger().level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            configure_logging()
