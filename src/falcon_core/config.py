"""Configuration management for falcon_core.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
"""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "MongoSettings",
    "ProviderSettings",
    "ChatSettings",
    "ClientSettings",
    "ServerSettings",
    "FalconCoreConfig",
]


class MongoSettings(BaseSettings):
    """MongoDB connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="FALCON_CORE_MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: SecretStr = SecretStr("mongodb://localhost:27017")
    database: str = "falcon_core"
    collection_prefix: str = ""
    server_selection_timeout_ms: int = 5000


class ProviderSettings(BaseSettings):
    """Upstream LLM provider credentials and endpoints.

    A provider without an API key is treated as not configured; requests
    routed to it fail with an in-band error message.
    """

    model_config = SettingsConfigDict(
        env_prefix="FALCON_CORE_PROVIDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr | None = None
    openai_url: str = "https://api.openai.com/v1/chat/completions"

    openrouter_api_key: SecretStr | None = None
    openrouter_url: str = "https://openrouter.ai/api/v1/chat/completions"
    openrouter_referer: str = "https://falconcore.ai"
    openrouter_title: str = "Falcon Core AI"

    anthropic_api_key: SecretStr | None = None
    anthropic_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_version: str = "2023-06-01"

    gemini_api_key: SecretStr | None = None
    gemini_base_url: str | None = None

    # Seconds
    request_timeout: float = 120.0
    connect_timeout: float = 10.0


class ChatSettings(BaseSettings):
    """Defaults applied to chat turns."""

    model_config = SettingsConfigDict(
        env_prefix="FALCON_CORE_CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_model: str = "gemini-2.5-flash"
    title_model: str = "gemini-2.5-flash"
    title_max_length: int = 60


class ClientSettings(BaseSettings):
    """Settings for the streaming chat client."""

    model_config = SettingsConfigDict(
        env_prefix="FALCON_CORE_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:8000"
    max_retries: int = 2
    base_delay: float = 1.0  # seconds, doubled per attempt


class ServerSettings(BaseSettings):
    """HTTP server bind settings."""

    model_config = SettingsConfigDict(
        env_prefix="FALCON_CORE_SERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = []


class FalconCoreConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = FalconCoreConfig()
        api_key = config.providers.openai_api_key
    """

    model_config = SettingsConfigDict(
        env_prefix="FALCON_CORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mongo: MongoSettings = MongoSettings()
    providers: ProviderSettings = ProviderSettings()
    chat: ChatSettings = ChatSettings()
    client: ClientSettings = ClientSettings()
    server: ServerSettings = ServerSettings()

    log_level: str = "INFO"
    log_json: bool = False
