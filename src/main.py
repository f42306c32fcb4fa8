"""CLI chat interface for the inventory chat agent.

A terminal chat loop for development and testing.  For production, use the
FastAPI server (src/server.py).

Usage:
    uv run python -m src.main            # normal mode (quiet)
    uv run python -m src.main --debug    # debug mode (shows API calls)
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from dotenv import load_dotenv

from src.agent import InventoryAgent, create_inventory_agent
from src.errors import AgentError

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("src").setLevel(logging.DEBUG if debug else logging.INFO)


async def chat_loop(agent: InventoryAgent) -> None:
    """Read messages from stdin until the user quits."""
    thread_id: str | None = None

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "You: ")).strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            return

        if not user_input:
            continue
        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye! Happy furnishing!")
            return
        if user_input.lower() == "new":
            thread_id = None
            print("\n>> Next message starts a new conversation.\n")
            continue

        try:
            reply = await agent.run(thread_id, user_input)
        except AgentError as e:
            logger.exception("Turn failed")
            print(f"\nAssistant: {e.user_message}\n")
            continue

        thread_id = reply.thread_id
        print(f"\nAssistant: {reply.response}\n")


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="Inventory chat agent CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  Furniture Store Assistant - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' for a new conversation.")
    print("=" * 60 + "\n")

    agent = create_inventory_agent()
    try:
        asyncio.run(chat_loop(agent))
    finally:
        agent.conversations.close()


if __name__ == "__main__":
    main()
