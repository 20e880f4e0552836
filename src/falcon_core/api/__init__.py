"""HTTP API for falcon_core."""

from falcon_core.api.app import create_app
from falcon_core.api.routes import router, stream_chat_turn

__all__ = [
    "create_app",
    "router",
    "stream_chat_turn",
]
