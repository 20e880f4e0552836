#!/usr/bin/env python
"""End-to-end chat script for falcon_core.

Creates a conversation on a running falcon_core server, streams one reply to
stdout, then prints usage and the generated title.

Usage:
    python -m falcon_core            # in another terminal
    python scripts/e2e_chat.py "Plan a day in Kyoto" gpt-4o

Environment variables (via .env):
    FALCON_CORE_CLIENT_BASE_URL=http://localhost:8000
    FALCON_CORE_PROVIDER_OPENAI_API_KEY=your_api_key   # server side
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from falcon_core.client.streaming_chat import StreamingChatClient, StreamingStatus
from falcon_core.config import ClientSettings
from falcon_core.models.request import ChatRequestOptions


class StdoutPrinter:
    """Prints newly streamed text as it arrives."""

    def __init__(self) -> None:
        self._printed = 0

    def __call__(self, client: StreamingChatClient) -> None:
        text = client.streaming_content
        if len(text) > self._printed:
            print(text[self._printed :], end="", flush=True)
            self._printed = len(text)


async def main() -> None:
    """Main entry point."""
    content = sys.argv[1] if len(sys.argv) > 1 else "Say hello in three languages."
    model = sys.argv[2] if len(sys.argv) > 2 else None

    settings = ClientSettings()
    async with StreamingChatClient.from_settings(settings, on_change=StdoutPrinter()) as client:
        conversation_id = (await client.create_conversation())["id"]
        print(f"Conversation {conversation_id} ({model or 'default model'})\n")

        await client.send_message(
            ChatRequestOptions(conversation_id=conversation_id, content=content, model=model)
        )
        print("\n")

        if client.status == StreamingStatus.ERROR:
            print(f"ERROR: {client.error}")
            sys.exit(1)

        await client.drain()
        conversation = await client.fetch_conversation(conversation_id)

        print("=" * 60)
        print(f"Status: {client.status}")
        print(f"Usage:  {client.last_usage.to_wire() if client.last_usage else {}}")
        print(f"Title:  {conversation['title']}")
        print(f"Stored messages: {len(conversation['messages'])}")


if __name__ == "__main__":
    asyncio.run(main())
