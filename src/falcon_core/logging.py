"""Structured logging for falcon_core.

structlog renders JSON lines in production and a colored console in
development. Chat turns bind ``conversation_id`` into structlog contextvars
through ``bound_context``, so every event logged while a turn is streaming
(proxy, adapters, storage) carries it without threading it through calls.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

__all__ = [
    "bound_context",
    "configure_logging",
    "get_logger",
]

# Third-party loggers that are chatty at INFO (per-request lines, pool events)
_QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "motor",
    "pymongo",
    "google_genai",
    "uvicorn.access",
)


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping()[level.upper()]


def configure_logging(
    level: int | str = logging.INFO,
    json_output: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog and stdlib logging for the application.

    Args:
        level: Logging level, as a number or a name such as ``"DEBUG"``
        json_output: If True, output JSON; if False, pretty console output
        add_timestamp: If True, add ISO timestamp to log entries
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_output:
        # Model output is often non-ASCII (Arabic titles, emoji); keep it readable
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(_resolve_level(level))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


@contextmanager
def bound_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` to every event logged inside the block.

    Bindings live in contextvars, so they are local to the current task and
    are restored on exit.

    Example:
        with bound_context(conversation_id=7):
            await service.send_message(options, sink)
    """
    tokens = structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


configure_logging()
