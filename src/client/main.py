#!/usr/bin/env python3
"""
Chat Client Application

Terminal client for the chat room. Lines typed on stdin are sent as chat
messages; "/join NAME" joins, "/quit" disconnects and exits.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Set

from .chat_client import ConnectionState, ReconnectingClient
from .service import DEFAULT_SERVER_URL
from .session import ChatSession

logger = logging.getLogger(__name__)


def print_update(category: str, session: ChatSession):
    """Echo session changes to the console."""
    if category == "connection":
        print("* connected" if session.connected else "* disconnected")
    elif category == "user_count":
        print(f"* {session.user_count} online")
    elif category == "history":
        for entry in session.messages:
            print(f"[{entry.username}] {entry.message}")
    elif category in ("chat", "system", "presence-joined", "presence-left"):
        entry = session.messages[-1]
        print(f"[{entry.username}] {entry.message}")
    elif category == "error":
        print(f"! {session.messages[-1].message}")


def start_auto_join(
    client: ReconnectingClient, username: str, pending: Set[asyncio.Task]
) -> asyncio.Task:
    """
    Join in the background once connected.

    The task is kept in ``pending`` until it finishes; a failed join is
    logged rather than left unretrieved.
    """
    task = asyncio.ensure_future(client.join_room(username))
    pending.add(task)

    def on_done(done: asyncio.Task):
        pending.discard(done)
        if not done.cancelled() and done.exception() is not None:
            logger.error("Automatic join failed: %s", done.exception())

    task.add_done_callback(on_done)
    return task


async def run_client(server_url: str, username: str = None):
    """
    Run the interactive client until /quit or end of input.

    Args:
        server_url: WebSocket URL of the chat server
        username: Optional username to join with once connected
    """
    session = ChatSession()
    pending_joins: Set[asyncio.Task] = set()

    def on_update(category: str, current: ChatSession):
        print_update(category, current)
        if (
            category == "connection"
            and current.connected
            and username
            and not current.in_room
        ):
            start_auto_join(client, username, pending_joins)

    session.set_on_update(on_update)
    client = ReconnectingClient(server_url, session=session)

    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            if line == "/quit":
                break
            if line.startswith("/join "):
                await client.join_room(line[len("/join "):])
            elif client.state is ConnectionState.GAVE_UP:
                print("! connection lost, restart the client to reconnect")
            elif not await client.send_message(line):
                print("! not sent, join first with /join NAME")
    finally:
        await client.disconnect()


def main():
    """Main entry point for the chat client."""
    parser = argparse.ArgumentParser(description="Chat room terminal client")
    parser.add_argument(
        "--url",
        default=os.environ.get("CHAT_SERVER_URL", DEFAULT_SERVER_URL),
        help="WebSocket URL of the chat server",
    )
    parser.add_argument("--username", help="Join automatically as USERNAME")
    args = parser.parse_args()

    # Log to file to avoid interfering with the console
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler("chat_client.log", mode="a")],
    )

    logger.info("Starting chat client...")

    try:
        asyncio.run(run_client(args.url, args.username))
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
