"""Provider error types for falcon_core."""

__all__ = [
    "ProviderError",
    "ProviderNotConfiguredError",
]


class ProviderError(Exception):
    """Upstream provider rejected a request or failed mid-stream.

    Attributes:
        provider: Provider name ("openai", "anthropic", ...)
        status_code: HTTP status, or None for in-stream errors
        body: Response body or upstream error message
    """

    def __init__(self, provider: str, status_code: int | None, body: str) -> None:
        self.provider = provider
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"{provider} error: {body}")
        else:
            super().__init__(f"{provider} error ({status_code}): {body}")


class ProviderNotConfiguredError(Exception):
    """No API key is configured for the selected provider."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"{provider} API key not configured")
